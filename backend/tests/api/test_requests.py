"""
API tests for service request endpoints.

Tests:
- GET /api/v1/requests/public/recent - Landing page teaser (no auth)
- GET /api/v1/requests - Own requests for owners, open requests for providers
- POST /api/v1/requests - Post a request for an owned vehicle
- GET /api/v1/requests/{id} - Request with its quotes
- PUT /api/v1/requests/{id} - Edit own request
- POST /api/v1/requests/{id}/cancel - Cancel own request
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.db.postgres.models import Activity, AuditLog, Quote, RequestStatus, ServiceRequest


@pytest.fixture
def request_data(test_vehicle) -> dict:
    return {
        "vehicle_id": str(test_vehicle.id),
        "title": "Oil change due",
        "description": "Synthetic 0W-20, car is parked in the driveway.",
        "urgency": "low",
        "service_type": "oil-change",
        "preferred_location": "Oakland, CA",
    }


class TestCreateRequest:
    """Tests for POST /api/v1/requests endpoint."""

    @pytest.mark.asyncio
    async def test_create_request_success(
        self, async_client: AsyncClient, db_session, owner_user, owner_headers: dict, request_data: dict
    ):
        response = await async_client.post("/api/v1/requests", headers=owner_headers, json=request_data)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "open"
        assert data["owner_id"] == str(owner_user.id)
        assert data["urgency"] == "low"
        assert data["vehicle"] == {
            "id": request_data["vehicle_id"],
            "make": "Toyota",
            "model": "Camry",
            "year": 2019,
        }

        activity = (await db_session.execute(select(Activity))).scalar_one()
        assert activity.type == "request_created"
        assert activity.description == "Created service request: Oil change due"

    @pytest.mark.asyncio
    async def test_create_request_default_urgency(
        self, async_client: AsyncClient, owner_headers: dict, request_data: dict
    ):
        del request_data["urgency"]
        response = await async_client.post("/api/v1/requests", headers=owner_headers, json=request_data)

        assert response.status_code == 201
        assert response.json()["urgency"] == "medium"

    @pytest.mark.asyncio
    async def test_create_request_for_other_users_vehicle_returns_403(
        self, async_client: AsyncClient, other_owner_headers: dict, request_data: dict
    ):
        response = await async_client.post("/api/v1/requests", headers=other_owner_headers, json=request_data)

        assert response.status_code == 403
        assert response.json()["error"]["details"] == {"vehicleId": request_data["vehicle_id"]}

    @pytest.mark.asyncio
    async def test_create_request_for_missing_vehicle_returns_404(
        self, async_client: AsyncClient, owner_headers: dict, request_data: dict
    ):
        request_data["vehicle_id"] = str(uuid4())
        response = await async_client.post("/api/v1/requests", headers=owner_headers, json=request_data)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_create_request_invalid_urgency_returns_400(
        self, async_client: AsyncClient, owner_headers: dict, request_data: dict
    ):
        request_data["urgency"] = "yesterday"
        response = await async_client.post("/api/v1/requests", headers=owner_headers, json=request_data)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_request_too_many_images_returns_400(
        self, async_client: AsyncClient, owner_headers: dict, request_data: dict
    ):
        request_data["image_urls"] = [f"https://cdn.example.com/{i}.jpg" for i in range(11)]
        response = await async_client.post("/api/v1/requests", headers=owner_headers, json=request_data)

        assert response.status_code == 400


class TestListRequests:
    """Tests for GET /api/v1/requests endpoint."""

    @pytest.mark.asyncio
    async def test_owner_sees_own_requests_in_any_status(
        self, async_client: AsyncClient, db_session, test_request, owner_headers: dict, other_owner_headers: dict
    ):
        test_request.status = RequestStatus.CANCELLED.value
        await db_session.commit()

        response = await async_client.get("/api/v1/requests", headers=owner_headers)
        assert response.status_code == 200
        assert [r["id"] for r in response.json()["data"]] == [str(test_request.id)]

        response = await async_client.get("/api/v1/requests", headers=other_owner_headers)
        assert response.json()["meta"]["total"] == 0

    @pytest.mark.asyncio
    async def test_provider_sees_only_open_requests(
        self, async_client: AsyncClient, db_session, test_request, owner_user, test_vehicle, provider_headers: dict
    ):
        db_session.add(
            ServiceRequest(
                owner_id=owner_user.id,
                vehicle_id=test_vehicle.id,
                title="Old job",
                description="Already done",
                status=RequestStatus.COMPLETED.value,
            )
        )
        await db_session.commit()

        response = await async_client.get("/api/v1/requests", headers=provider_headers)

        assert response.status_code == 200
        data = response.json()
        assert [r["title"] for r in data["data"]] == ["Front brakes squeal"]
        assert data["data"][0]["vehicle"]["make"] == "Toyota"


class TestRecentPublicRequests:
    """Tests for GET /api/v1/requests/public/recent endpoint."""

    @pytest.mark.asyncio
    async def test_recent_requests_without_auth(self, async_client: AsyncClient, test_quote, test_request):
        response = await async_client.get("/api/v1/requests/public/recent")

        assert response.status_code == 200
        data = response.json()
        assert len(data) == 1
        assert data[0]["id"] == str(test_request.id)
        assert data[0]["quoteCount"] == 1
        assert data[0]["status"] == "quoted"
        assert "owner_id" not in data[0]
        assert "description" not in data[0]

    @pytest.mark.asyncio
    async def test_recent_requests_capped_at_four(
        self, async_client: AsyncClient, db_session, owner_user, test_vehicle
    ):
        for n in range(6):
            db_session.add(
                ServiceRequest(
                    owner_id=owner_user.id,
                    vehicle_id=test_vehicle.id,
                    title=f"Request {n}",
                    description="Needs work",
                    status=RequestStatus.OPEN.value,
                )
            )
        await db_session.commit()

        response = await async_client.get("/api/v1/requests/public/recent")

        assert response.status_code == 200
        assert len(response.json()) == 4


class TestGetRequest:
    """Tests for GET /api/v1/requests/{id} endpoint."""

    @pytest.mark.asyncio
    async def test_owner_sees_quotes_with_provider(
        self, async_client: AsyncClient, test_request, test_quote, owner_headers: dict
    ):
        response = await async_client.get(f"/api/v1/requests/{test_request.id}", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data["quotes"]) == 1
        quote = data["quotes"][0]
        assert quote["id"] == str(test_quote.id)
        assert quote["amount"] == 320.0
        assert quote["provider"]["name"] == "Pat Provider"

    @pytest.mark.asyncio
    async def test_provider_can_view_request(self, async_client: AsyncClient, test_request, provider_headers: dict):
        response = await async_client.get(f"/api/v1/requests/{test_request.id}", headers=provider_headers)

        assert response.status_code == 200
        assert response.json()["quotes"] == []

    @pytest.mark.asyncio
    async def test_other_owner_cannot_view_request(
        self, async_client: AsyncClient, test_request, other_owner_headers: dict
    ):
        response = await async_client.get(f"/api/v1/requests/{test_request.id}", headers=other_owner_headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_request_returns_404(self, async_client: AsyncClient, owner_headers: dict):
        response = await async_client.get(f"/api/v1/requests/{uuid4()}", headers=owner_headers)

        assert response.status_code == 404


class TestUpdateRequest:
    """Tests for PUT /api/v1/requests/{id} endpoint."""

    @pytest.mark.asyncio
    async def test_update_request(self, async_client: AsyncClient, db_session, test_request, owner_headers: dict):
        response = await async_client.put(
            f"/api/v1/requests/{test_request.id}",
            headers=owner_headers,
            json={"urgency": "urgent", "title": "Brakes grinding now"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["urgency"] == "urgent"
        assert data["title"] == "Brakes grinding now"
        assert data["description"] == test_request.description

        audit = (
            await db_session.execute(select(AuditLog).where(AuditLog.entity_type == "ServiceRequest"))
        ).scalar_one()
        assert audit.changes["urgency"] == {"old": "high", "new": "urgent"}

    @pytest.mark.asyncio
    async def test_update_by_provider_returns_403(
        self, async_client: AsyncClient, test_request, provider_headers: dict
    ):
        response = await async_client.put(
            f"/api/v1/requests/{test_request.id}",
            headers=provider_headers,
            json={"title": "Hijacked"},
        )

        assert response.status_code == 403


class TestCancelRequest:
    """Tests for POST /api/v1/requests/{id}/cancel endpoint."""

    @pytest.mark.asyncio
    async def test_cancel_rejects_pending_quotes(
        self, async_client: AsyncClient, db_session, test_request, test_quote, owner_headers: dict
    ):
        response = await async_client.post(f"/api/v1/requests/{test_request.id}/cancel", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        quote = (await db_session.execute(select(Quote).where(Quote.id == test_quote.id))).scalar_one()
        assert quote.status == "rejected"

        audit = (
            await db_session.execute(select(AuditLog).where(AuditLog.action == "SOFT_DELETE"))
        ).scalar_one()
        assert audit.changes == {"status": {"old": "quoted", "new": "cancelled"}}
        assert audit.audit_metadata == {"rejectedQuotes": 1}

    @pytest.mark.asyncio
    async def test_cancel_in_progress_request_returns_400(
        self, async_client: AsyncClient, test_job, test_request, owner_headers: dict
    ):
        response = await async_client.post(f"/api/v1/requests/{test_request.id}/cancel", headers=owner_headers)

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "ERR_4001"
        assert error["details"] == {"status": "in_progress"}

    @pytest.mark.asyncio
    async def test_cancel_by_other_owner_returns_403(
        self, async_client: AsyncClient, test_request, other_owner_headers: dict
    ):
        response = await async_client.post(
            f"/api/v1/requests/{test_request.id}/cancel", headers=other_owner_headers
        )

        assert response.status_code == 403
