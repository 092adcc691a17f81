"""Tests for login, token refresh rotation and logout."""

from httpx import AsyncClient

from conftest import register_user


class TestLogin:
    async def test_login_success(self, client: AsyncClient, alice: dict):
        response = await client.post(
            "/api/v1/auth/login", json={"email": alice["email"], "password": alice["password"]}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == alice["id"]
        assert data["user"]["login_count"] == 2

    async def test_login_email_case_insensitive(self, client: AsyncClient, alice: dict):
        response = await client.post(
            "/api/v1/auth/login", json={"email": "ALICE@Example.com", "password": alice["password"]}
        )
        assert response.status_code == 200

    async def test_login_wrong_password(self, client: AsyncClient, alice: dict):
        response = await client.post(
            "/api/v1/auth/login", json={"email": alice["email"], "password": "WrongP@ss1"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login", json={"email": "ghost@example.com", "password": "SecureP@ss1"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_me_returns_current_user(self, client: AsyncClient, alice: dict):
        response = await client.get("/api/v1/auth/me", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["email"] == "alice@example.com"

    async def test_me_rejects_garbage_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    async def test_me_rejects_refresh_token(self, client: AsyncClient, alice: dict):
        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {alice['refresh_token']}"}
        )
        assert response.status_code == 401


class TestRefresh:
    async def test_refresh_rotates_tokens(self, client: AsyncClient, alice: dict):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": alice["refresh_token"]})
        assert response.status_code == 200
        data = response.json()
        assert data["refresh_token"] != alice["refresh_token"]

        me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.status_code == 200

    async def test_refresh_reuse_revokes_family(self, client: AsyncClient, alice: dict):
        first = await client.post("/api/v1/auth/refresh", json={"refresh_token": alice["refresh_token"]})
        new_refresh = first.json()["refresh_token"]

        reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": alice["refresh_token"]})
        assert reused.status_code == 401

        # The rotated token was revoked along with the rest of the family
        after = await client.post("/api/v1/auth/refresh", json={"refresh_token": new_refresh})
        assert after.status_code == 401

    async def test_refresh_rejects_access_token(self, client: AsyncClient, alice: dict):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": alice["access_token"]})
        assert response.status_code == 401


class TestLogout:
    async def test_logout_revokes_refresh_token(self, client: AsyncClient, alice: dict):
        response = await client.post("/api/v1/auth/logout", json={"refresh_token": alice["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["status"] == "logged_out"

        refresh = await client.post("/api/v1/auth/refresh", json={"refresh_token": alice["refresh_token"]})
        assert refresh.status_code == 401

    async def test_logout_ignores_invalid_token(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/logout", json={"refresh_token": "garbage"})
        assert response.status_code == 200

    async def test_logout_all(self, client: AsyncClient):
        user = await register_user(client, "multi@example.com")
        second = await client.post(
            "/api/v1/auth/login", json={"email": user["email"], "password": user["password"]}
        )
        other_refresh = second.json()["refresh_token"]

        response = await client.post("/api/v1/auth/logout-all", headers=user["headers"])
        assert response.status_code == 200
        assert response.json()["revoked_count"] == "2"

        for token in (user["refresh_token"], other_refresh):
            refresh = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
            assert refresh.status_code == 401
