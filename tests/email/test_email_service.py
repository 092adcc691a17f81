"""Tests for email templates, providers and the rate-limited service."""

from unittest.mock import AsyncMock

import pytest

from fitvibe.config import get_settings
from fitvibe.email.service import (
    BaseEmailProvider,
    EmailService,
    ResendProvider,
    SMTPProvider,
    _create_provider,
)
from fitvibe.email.templates import TEMPLATES


class RecordingProvider(BaseEmailProvider):
    name = "recording"

    def __init__(self, fail: bool = False) -> None:
        super().__init__("noreply@fitnessvibe.app", "FitnessVibe")
        self.fail = fail
        self.sent: list[tuple[str, str, str, str]] = []

    async def _deliver(self, to_email, subject, html_body, text_body):
        if self.fail:
            raise ConnectionError("relay unavailable")
        self.sent.append((to_email, subject, html_body, text_body))


class TestTemplates:
    def test_all_templates_registered(self):
        assert set(TEMPLATES) == {"welcome", "verify_email", "password_reset", "password_changed"}

    def test_welcome_contains_link(self):
        subject, html, text = TEMPLATES["welcome"](display_name="Alice", verify_url="https://x/verify?token=abc")
        assert "Welcome" in subject
        assert "https://x/verify?token=abc" in html
        assert "https://x/verify?token=abc" in text
        assert "Hi Alice," in text

    def test_display_name_is_escaped(self):
        _, html, _ = TEMPLATES["welcome"](display_name="<script>", verify_url="https://x")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_password_reset_validity_wording(self):
        _, _, text = TEMPLATES["password_reset"](reset_url="https://x/reset")
        assert "1 hour" in text
        _, _, text = TEMPLATES["password_reset"](reset_url="https://x/reset", expires_minutes=15)
        assert "15 minutes" in text

    def test_unknown_context_keys_ignored(self):
        subject, _, _ = TEMPLATES["password_changed"](display_name="Bob", extra="ignored")
        assert subject == "Your password was changed"


class TestEmailService:
    async def test_send_template_renders_and_delivers(self):
        provider = RecordingProvider()
        service = EmailService(provider=provider, max_per_hour=5)
        ok = await service.send_template(
            "alice@example.com", "verify_email", {"verify_url": "https://x/verify?token=t"}
        )
        assert ok is True
        to_email, subject, _, text = provider.sent[0]
        assert to_email == "alice@example.com"
        assert subject == "Confirm your email address"
        assert "token=t" in text

    async def test_unknown_template_raises(self):
        service = EmailService(provider=RecordingProvider(), max_per_hour=5)
        with pytest.raises(ValueError, match="Unknown template"):
            await service.send_template("a@example.com", "newsletter", {})

    async def test_provider_failure_returns_false(self):
        service = EmailService(provider=RecordingProvider(fail=True), max_per_hour=5)
        assert await service.send_email("a@example.com", "s", "<p>h</p>", "t") is False

    async def test_rate_limit_blocks_after_max(self):
        redis = AsyncMock()
        redis.incr.side_effect = [1, 2, 3]
        provider = RecordingProvider()
        service = EmailService(provider=provider, redis=redis, max_per_hour=2)

        assert await service.send_email("a@example.com", "s", "h", "t") is True
        assert await service.send_email("a@example.com", "s", "h", "t") is True
        assert await service.send_email("a@example.com", "s", "h", "t") is False
        assert len(provider.sent) == 2
        redis.expire.assert_awaited_once()

    async def test_no_redis_means_no_limit(self):
        provider = RecordingProvider()
        service = EmailService(provider=provider, max_per_hour=1)
        for _ in range(3):
            assert await service.send_email("a@example.com", "s", "h", "t") is True
        assert len(provider.sent) == 3


class TestProviders:
    def test_smtp_message_has_both_parts(self):
        provider = SMTPProvider(
            host="localhost",
            port=587,
            username="",
            password="",
            from_address="noreply@fitnessvibe.app",
            from_name="FitnessVibe",
        )
        msg = provider.build_message("a@example.com", "Hello", "<p>Hi</p>", "Hi")
        assert msg["From"] == "FitnessVibe <noreply@fitnessvibe.app>"
        assert msg["To"] == "a@example.com"
        assert [part.get_content_type() for part in msg.get_payload()] == ["text/plain", "text/html"]

    def test_create_provider_from_settings(self, monkeypatch):
        monkeypatch.setenv("FV_EMAIL_PROVIDER", "resend")
        monkeypatch.setenv("FV_RESEND_API_KEY", "re_test")
        get_settings.cache_clear()
        try:
            provider = _create_provider()
            assert isinstance(provider, ResendProvider)
            assert provider.api_key == "re_test"
        finally:
            monkeypatch.delenv("FV_EMAIL_PROVIDER")
            monkeypatch.delenv("FV_RESEND_API_KEY")
            get_settings.cache_clear()

    def test_unknown_provider_rejected(self, monkeypatch):
        monkeypatch.setenv("FV_EMAIL_PROVIDER", "carrier-pigeon")
        get_settings.cache_clear()
        try:
            with pytest.raises(ValueError, match="Unsupported email provider"):
                _create_provider()
        finally:
            monkeypatch.delenv("FV_EMAIL_PROVIDER")
            get_settings.cache_clear()
