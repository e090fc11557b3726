"""
API tests for authentication endpoints.

Tests:
- POST /api/v1/auth/signup - Account creation (owner and provider)
- POST /api/v1/auth/login - Email and password sign in
- POST /api/v1/auth/refresh - Token refresh
- GET /api/v1/auth/me - Get current user
- PUT /api/v1/auth/profile - Update own profile
- GET /api/v1/auth/csrf - CSRF token issue
- Role and provider-status guards
"""

from datetime import timedelta
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.core.security import create_access_token
from app.db.postgres.models import AuditLog, ProviderProfile


@pytest.fixture
def signup_data() -> dict:
    return {
        "email": "New.Customer@Example.com",
        "password": "SecurePass123!",
        "name": "  Nina Newcomer ",
        "phone": "+1 415 555 0199",
    }


class TestSignup:
    """Tests for POST /api/v1/auth/signup endpoint."""

    @pytest.mark.asyncio
    async def test_signup_owner_success(self, async_client: AsyncClient, signup_data: dict):
        """Test owner signup returns 201 with tokens and the user."""
        response = await async_client.post("/api/v1/auth/signup", json=signup_data)

        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"

        user = data["user"]
        assert user["email"] == "new.customer@example.com"
        assert user["name"] == "Nina Newcomer"
        assert user["roles"] == ["owner"]
        assert user["provider_status"] == "none"
        assert "hashed_password" not in user
        assert "password" not in response.text.lower()

    @pytest.mark.asyncio
    async def test_signup_provider_gets_draft_profile(
        self, async_client: AsyncClient, db_session, signup_data: dict
    ):
        """Test provider signup adds both roles, draft status and an inactive profile."""
        signup_data["role"] = "provider"
        response = await async_client.post("/api/v1/auth/signup", json=signup_data)

        assert response.status_code == 201
        user = response.json()["user"]
        assert set(user["roles"]) == {"owner", "provider"}
        assert user["provider_status"] == "draft"

        profile = (
            await db_session.execute(select(ProviderProfile).where(ProviderProfile.user_id == UUID(user["id"])))
        ).scalar_one()
        assert profile.is_active is False

    @pytest.mark.asyncio
    async def test_signup_writes_audit_entry(self, async_client: AsyncClient, db_session, signup_data: dict):
        """Test account creation is recorded in the audit log."""
        response = await async_client.post("/api/v1/auth/signup", json=signup_data)
        user_id = response.json()["user"]["id"]

        entries = (
            await db_session.execute(select(AuditLog).where(AuditLog.entity_type == "User"))
        ).scalars().all()
        assert [entry.action for entry in entries] == ["CREATE"]
        assert entries[0].entity_id.replace("-", "") == user_id.replace("-", "")

    @pytest.mark.asyncio
    async def test_signup_duplicate_email_returns_409(
        self, async_client: AsyncClient, owner_user, signup_data: dict
    ):
        """Test duplicate email (case-insensitive) returns 409 Conflict."""
        signup_data["email"] = "OWNER@example.com"
        response = await async_client.post("/api/v1/auth/signup", json=signup_data)

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "ERR_1008"
        assert error["message"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_signup_short_password_returns_400(self, async_client: AsyncClient, signup_data: dict):
        """Test body validation errors are reported as 400 with field details."""
        signup_data["password"] = "short"
        response = await async_client.post("/api/v1/auth/signup", json=signup_data)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "ERR_1001"
        fields = [item["field"] for item in error["details"]["validation_errors"]]
        assert "body -> password" in fields

    @pytest.mark.asyncio
    async def test_signup_rejects_admin_role(self, async_client: AsyncClient, signup_data: dict):
        """Test the admin role cannot be self-assigned."""
        signup_data["role"] = "admin"
        response = await async_client.post("/api/v1/auth/signup", json=signup_data)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_signup_invalid_email_returns_400(self, async_client: AsyncClient, signup_data: dict):
        signup_data["email"] = "not-an-email"
        response = await async_client.post("/api/v1/auth/signup", json=signup_data)

        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/v1/auth/login endpoint."""

    @pytest.mark.asyncio
    async def test_login_success(self, async_client: AsyncClient, owner_user, test_user_password: str):
        """Test successful login returns the user and a token pair."""
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": owner_user.email, "password": test_user_password},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == str(owner_user.id)
        assert data["access_token"]
        assert data["refresh_token"]

    @pytest.mark.asyncio
    async def test_login_is_case_insensitive_on_email(
        self, async_client: AsyncClient, owner_user, test_user_password: str
    ):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": "Owner@Example.com", "password": test_user_password},
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_login_wrong_password_returns_401(self, async_client: AsyncClient, owner_user):
        """Test wrong password returns 401 with the generic message."""
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": owner_user.email, "password": "WrongPassword123!"},
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        error = response.json()["error"]
        assert error["code"] == "ERR_5001"
        assert error["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_unknown_email_returns_401(self, async_client: AsyncClient, test_user_password: str):
        """Test unknown email gets the same answer as a wrong password."""
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": test_user_password},
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_login_inactive_user_returns_403(
        self, async_client: AsyncClient, inactive_user, test_user_password: str
    ):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": inactive_user.email, "password": test_user_password},
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ERR_5005"


class TestTokenRefresh:
    """Tests for POST /api/v1/auth/refresh endpoint."""

    @pytest.mark.asyncio
    async def test_refresh_success(self, async_client: AsyncClient, owner_refresh_token: str):
        response = await async_client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": owner_refresh_token},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        assert data["token_type"] == "bearer"

    @pytest.mark.asyncio
    async def test_refresh_with_access_token_returns_401(self, async_client: AsyncClient, owner_token: str):
        """Test an access token is not accepted as a refresh token."""
        response = await async_client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": owner_token},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ERR_5004"

    @pytest.mark.asyncio
    async def test_refresh_with_garbage_returns_401(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/refresh",
            json={"refresh_token": "not.a.jwt"},
        )

        assert response.status_code == 401


class TestCurrentUser:
    """Tests for GET /api/v1/auth/me endpoint."""

    @pytest.mark.asyncio
    async def test_me_returns_user(self, async_client: AsyncClient, owner_user, owner_headers: dict):
        response = await async_client.get("/api/v1/auth/me", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(owner_user.id)
        assert data["email"] == owner_user.email
        assert data["roles"] == ["owner"]

    @pytest.mark.asyncio
    async def test_me_flattens_provider_profile(self, async_client: AsyncClient, provider_headers: dict):
        """Test provider profile fields appear on the user."""
        response = await async_client.get("/api/v1/auth/me", headers=provider_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["business_name"] == "Bayside Auto Care"
        assert data["service_types"] == ["oil-change", "brake-service"]
        assert data["shop_city"] == "San Francisco"
        assert data["hourly_rate"] == 95.0

    @pytest.mark.asyncio
    async def test_me_without_token_returns_401(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/auth/me")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_with_invalid_token_returns_401(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/auth/me",
            headers={"Authorization": "Bearer invalid.token.here"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ERR_5003"

    @pytest.mark.asyncio
    async def test_me_with_expired_token_returns_401(self, async_client: AsyncClient, owner_user):
        token = create_access_token(subject=str(owner_user.id), expires_delta=timedelta(minutes=-5))
        response = await async_client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ERR_5002"

    @pytest.mark.asyncio
    async def test_me_inactive_user_returns_403(self, async_client: AsyncClient, inactive_headers: dict):
        response = await async_client.get("/api/v1/auth/me", headers=inactive_headers)

        assert response.status_code == 403


class TestProfileUpdate:
    """Tests for PUT /api/v1/auth/profile endpoint."""

    @pytest.mark.asyncio
    async def test_update_personal_details(self, async_client: AsyncClient, owner_headers: dict):
        response = await async_client.put(
            "/api/v1/auth/profile",
            headers=owner_headers,
            json={"name": "Olivia O.", "city": "Oakland", "state": "CA"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Olivia O."
        assert data["city"] == "Oakland"
        assert data["phone"] == "+1 415 555 0101"

    @pytest.mark.asyncio
    async def test_provider_fields_create_profile(self, async_client: AsyncClient, owner_headers: dict):
        """Test business fields upsert the provider profile."""
        response = await async_client.put(
            "/api/v1/auth/profile",
            headers=owner_headers,
            json={"business_name": "Olivia's Detailing", "service_types": ["mobile-detailing"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["business_name"] == "Olivia's Detailing"
        assert data["service_types"] == ["mobile-detailing"]


class TestCsrfToken:
    """Tests for GET /api/v1/auth/csrf endpoint."""

    @pytest.mark.asyncio
    async def test_csrf_token_issued_with_cookie(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/auth/csrf")

        assert response.status_code == 200
        token = response.json()["csrf_token"]
        assert token
        assert f"csrf_token={token}" in response.headers["set-cookie"]


class TestGuards:
    """Role and provider-status guards."""

    @pytest.mark.asyncio
    async def test_role_guard_reports_roles(self, async_client: AsyncClient, owner_headers: dict):
        """Test a missing role returns 403 with required and actual roles."""
        response = await async_client.get("/api/v1/quotes/mine", headers=owner_headers)

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "ERR_1004"
        assert error["details"]["requiredRoles"] == ["provider"]
        assert error["details"]["userRoles"] == ["owner"]

    @pytest.mark.asyncio
    async def test_provider_status_guard(
        self, async_client: AsyncClient, draft_provider_headers: dict, test_request
    ):
        """Test a draft provider cannot quote and is told why."""
        response = await async_client.post(
            "/api/v1/quotes",
            headers=draft_provider_headers,
            json={"request_id": str(test_request.id), "amount": 100},
        )

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "ERR_4002"
        assert error["message"] == "Please complete your provider profile to access this feature"
        assert error["details"]["currentStatus"] == "draft"
        assert error["details"]["requiredStatuses"] == ["active"]
