"""Unit tests for password hashing and strength rules."""

import pytest

from fitvibe.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestHashing:
    def test_hash_is_argon2id(self):
        hashed = hash_password("SecureP@ss1")
        assert hashed.startswith("$argon2id$")

    def test_hashes_are_salted(self):
        assert hash_password("SecureP@ss1") != hash_password("SecureP@ss1")

    def test_verify_correct_password(self):
        hashed = hash_password("SecureP@ss1")
        assert verify_password("SecureP@ss1", hashed) is True

    def test_verify_wrong_password(self):
        hashed = hash_password("SecureP@ss1")
        assert verify_password("securep@ss1", hashed) is False

    def test_verify_garbage_hash(self):
        assert verify_password("SecureP@ss1", "not-a-hash") is False

    def test_fresh_hash_needs_no_rehash(self):
        assert check_needs_rehash(hash_password("SecureP@ss1")) is False


class TestStrength:
    @pytest.mark.parametrize("password", ["SecureP@ss1", "Abcdefg1", "LongerPassphrase2024"])
    def test_accepts_strong_passwords(self, password):
        validate_password_strength(password)

    @pytest.mark.parametrize(
        ("password", "fragment"),
        [
            ("", "empty"),
            ("   ", "empty"),
            ("Ab1", "at least 8"),
            ("alllowercase1", "uppercase"),
            ("ALLUPPERCASE1", "lowercase"),
            ("NoDigitsHere", "digit"),
            ("A" + "a1" * 100, "exceed"),
        ],
    )
    def test_rejects_weak_passwords(self, password, fragment):
        with pytest.raises(PasswordStrengthError, match=fragment):
            validate_password_strength(password)

    def test_strength_error_is_value_error(self):
        assert issubclass(PasswordStrengthError, ValueError)
