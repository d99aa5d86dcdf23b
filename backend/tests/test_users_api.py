"""Tests for user registration, login, logout and profile endpoints."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import event

from app.core import PersistenceError
from app.services.auth import TokenService
from tests.conftest import TEST_JWT_SECRET, TEST_USER_EMAIL, TEST_USER_PASSWORD

pytestmark = pytest.mark.asyncio


async def _login(async_client, email=TEST_USER_EMAIL, password=TEST_USER_PASSWORD):
    return await async_client.post(
        "/v1/users/login",
        json={"email": email, "password": password},
    )


class TestRegister:
    """Tests for POST /v1/users/register."""

    async def test_register_creates_user(self, async_client):
        response = await async_client.post(
            "/v1/users/register",
            json={"email": "bob@example.com", "name": "Bob", "password": "Secur3!pass"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "bob@example.com"
        assert data["name"] == "Bob"
        assert "id" in data
        assert "password" not in data
        assert "password_hash" not in data

    async def test_register_duplicate_email(self, async_client, test_user):
        response = await async_client.post(
            "/v1/users/register",
            json={"email": TEST_USER_EMAIL, "name": "Another", "password": "Secur3!pass"},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == "User with this email already exists"

    async def test_register_duplicate_email_case_insensitive(self, async_client, test_user):
        response = await async_client.post(
            "/v1/users/register",
            json={"email": TEST_USER_EMAIL.upper(), "name": "Another", "password": "Secur3!pass"},
        )

        assert response.status_code == 409

    @pytest.mark.parametrize(
        "password",
        [
            "short!A",  # too short
            "alllowercase!",  # no upper-case letter
            "ALLUPPERCASE!",  # no lower-case letter
            "NoSpecials123",  # no special character
        ],
    )
    async def test_register_weak_password_rejected(self, async_client, password):
        response = await async_client.post(
            "/v1/users/register",
            json={"email": "weak@example.com", "name": "Weak", "password": password},
        )

        assert response.status_code == 422

    async def test_register_invalid_email_rejected(self, async_client):
        response = await async_client.post(
            "/v1/users/register",
            json={"email": "not-an-email", "name": "Nobody", "password": "Secur3!pass"},
        )

        assert response.status_code == 422

    async def test_register_short_name_rejected(self, async_client):
        response = await async_client.post(
            "/v1/users/register",
            json={"email": "x@example.com", "name": "X", "password": "Secur3!pass"},
        )

        assert response.status_code == 422


class TestLogin:
    """Tests for POST /v1/users/login."""

    async def test_login_success(self, async_client, test_user):
        response = await _login(async_client)

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 3600

    async def test_login_wrong_password(self, async_client, test_user):
        response = await _login(async_client, password="Wr0ng!password")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email/password"

    async def test_login_unknown_email(self, async_client):
        response = await _login(async_client, email="nobody@example.com")

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email/password"

    async def test_register_then_login(self, async_client):
        await async_client.post(
            "/v1/users/register",
            json={"email": "carol@example.com", "name": "Carol", "password": "Secur3!pass"},
        )

        response = await _login(async_client, email="carol@example.com", password="Secur3!pass")

        assert response.status_code == 200


class TestProtectedAccess:
    """Tests for bearer token authentication on protected routes."""

    async def test_me_with_valid_token(self, async_client, test_user, auth_headers):
        response = await async_client.get("/v1/users/me", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["email"] == TEST_USER_EMAIL

    async def test_missing_header(self, async_client):
        response = await async_client.get("/v1/users/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization header required"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize("header", ["Basic abc", "Bearer", "token abc"])
    async def test_malformed_header(self, async_client, header):
        response = await async_client.get("/v1/users/me", headers={"Authorization": header})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid authorization header format"

    async def test_garbage_token(self, async_client):
        response = await async_client.get(
            "/v1/users/me", headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    async def test_expired_token(self, async_client, test_user):
        issued = datetime.now(UTC) - timedelta(hours=2)
        old_tokens = TokenService(secret_key=TEST_JWT_SECRET, clock=lambda: issued)
        token = old_tokens.issue(test_user.id, test_user.email)

        response = await async_client.get(
            "/v1/users/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"


class TestLogout:
    """Tests for POST /v1/users/logout."""

    async def test_login_use_logout_then_rejected(self, async_client, test_user):
        token = (await _login(async_client)).json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        assert (await async_client.get("/v1/users/me", headers=headers)).status_code == 200

        logout = await async_client.post("/v1/users/logout", headers=headers)
        assert logout.status_code == 204

        response = await async_client.get("/v1/users/me", headers=headers)
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    async def test_double_logout_succeeds(self, async_client, auth_headers):
        first = await async_client.post("/v1/users/logout", headers=auth_headers)
        second = await async_client.post("/v1/users/logout", headers=auth_headers)

        assert first.status_code == 204
        assert second.status_code == 204

    async def test_logout_only_revokes_presented_token(
        self, async_client, test_user, auth_headers_for
    ):
        first = auth_headers_for(test_user)
        second = auth_headers_for(test_user)

        await async_client.post("/v1/users/logout", headers=first)

        assert (await async_client.get("/v1/users/me", headers=second)).status_code == 200

    async def test_logout_expired_token_accepted(self, async_client, test_user):
        issued = datetime.now(UTC) - timedelta(hours=2)
        token = TokenService(secret_key=TEST_JWT_SECRET, clock=lambda: issued).issue(
            test_user.id, test_user.email
        )

        response = await async_client.post(
            "/v1/users/logout", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 204

    async def test_logout_bad_signature(self, async_client, test_user):
        token = TokenService(secret_key="x" * 40).issue(test_user.id, test_user.email)

        response = await async_client.post(
            "/v1/users/logout", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    async def test_logout_without_header(self, async_client):
        response = await async_client.post("/v1/users/logout")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization header required"

    async def test_logout_store_failure(self, async_client, auth_headers):
        with patch(
            "app.api.users.RevocationStore.record",
            new=AsyncMock(side_effect=PersistenceError("down")),
        ):
            response = await async_client.post("/v1/users/logout", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to logout"



@pytest.fixture
def broken_revocation_lookup(db_engine):
    """Point revocation lookups at a missing table so the database rejects them."""
    failed: list[str] = []

    def _rewrite(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("SELECT") and "blacklisted_tokens" in statement:
            failed.append(statement)
            statement = statement.replace("blacklisted_tokens", "missing_blacklisted_tokens")
        return statement, parameters

    event.listen(db_engine.sync_engine, "before_cursor_execute", _rewrite, retval=True)
    yield failed
    event.remove(db_engine.sync_engine, "before_cursor_execute", _rewrite)


class TestRevocationLookupFailure:
    """Protected routes keep working when the revocation lookup errors."""

    async def test_me_still_served(
        self, async_client, test_user, auth_headers, broken_revocation_lookup
    ):
        response = await async_client.get("/v1/users/me", headers=auth_headers)

        assert broken_revocation_lookup
        assert response.status_code == 200
        assert response.json()["email"] == TEST_USER_EMAIL

    async def test_org_routes_still_served(
        self, async_client, test_user, auth_headers, org_factory, broken_revocation_lookup
    ):
        org = await org_factory(test_user)

        fetched = await async_client.get(f"/v1/orgs/{org.id}", headers=auth_headers)
        created = await async_client.post(
            f"/v1/orgs/{org.id}/services",
            json={"name": "Billing API", "description": "Handles invoices and billing"},
            headers=auth_headers,
        )

        assert broken_revocation_lookup
        assert fetched.status_code == 200
        assert created.status_code == 201
        assert created.json()["organization_id"] == str(org.id)
