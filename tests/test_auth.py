"""Admin bearer-token checks on the admin routes."""

import pytest

from commerce_ops.api.auth import create_access_token, decode_access_token
from commerce_ops.core_settings import Settings, get_settings
from commerce_ops.main import app


@pytest.fixture
def auth_settings(client):
    settings = Settings(AUTH_ENABLED=True, JWT_SECRET="unit-test-secret-0123456789abcdef0123")
    app.dependency_overrides[get_settings] = lambda: settings
    return settings


class TestTokens:
    def test_roundtrip(self):
        settings = Settings(JWT_SECRET="roundtrip-secret-0123456789abcdef0123")
        claims = decode_access_token(create_access_token("admin@example.com", "ADMIN", settings), settings)
        assert claims["sub"] == "admin@example.com"
        assert claims["role"] == "ADMIN"

    def test_expired_token(self):
        settings = Settings(JWT_SECRET="roundtrip-secret-0123456789abcdef0123")
        assert decode_access_token(create_access_token("a", "ADMIN", settings, expires_minutes=-1), settings) is None

    def test_wrong_secret(self):
        token = create_access_token("a", "ADMIN", Settings(JWT_SECRET="first-secret-0123456789abcdef01234567"))
        assert decode_access_token(token, Settings(JWT_SECRET="second-secret-0123456789abcdef0123456")) is None


class TestAdminGuard:
    def test_missing_token(self, client, auth_settings):
        assert client.get("/orders/").status_code == 401

    def test_garbage_token(self, client, auth_settings):
        response = client.get("/orders/", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_non_admin_role(self, client, auth_settings):
        token = create_access_token("u1", "CUSTOMER", auth_settings)
        response = client.get("/orders/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403

    def test_admin_role(self, client, auth_settings):
        token = create_access_token("u1", "SUPER_ADMIN", auth_settings)
        response = client.get("/orders/", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200

    def test_public_routes_stay_open(self, client, auth_settings):
        response = client.post(
            "/inquiries/contact",
            json={"name": "Mo", "email": "mo@example.com", "subject": "Hi", "message": "Hello"},
        )
        assert response.status_code == 201
        assert client.get("/health").status_code == 200
