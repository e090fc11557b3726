"""
API tests for vehicle and maintenance endpoints.

Tests:
- GET /api/v1/vehicles - List own vehicles (paginated)
- POST /api/v1/vehicles - Add a vehicle
- GET /api/v1/vehicles/{id} - Get a vehicle with its owner
- PUT /api/v1/vehicles/{id} - Update a vehicle
- PATCH /api/v1/vehicles/{id}/mileage - Update odometer reading
- DELETE /api/v1/vehicles/{id} - Delete a vehicle
- GET/POST /api/v1/vehicles/{id}/maintenance - Maintenance log
- DELETE /api/v1/maintenance/{id} - Delete a maintenance record
"""

from datetime import date
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.db.postgres.models import Activity, AuditLog, Vehicle


@pytest.fixture
def vehicle_data() -> dict:
    return {
        "make": "Honda",
        "model": "Accord",
        "year": 2020,
        "vin": "1hgcv1f30la012345",
        "license_plate": "7XYZ987",
        "mileage": 15000,
    }


class TestCreateVehicle:
    """Tests for POST /api/v1/vehicles endpoint."""

    @pytest.mark.asyncio
    async def test_create_vehicle_success(
        self, async_client: AsyncClient, owner_user, owner_headers: dict, vehicle_data: dict
    ):
        """Test vehicle is created for the caller with an upper-cased VIN."""
        response = await async_client.post("/api/v1/vehicles", headers=owner_headers, json=vehicle_data)

        assert response.status_code == 201
        data = response.json()
        assert data["owner_id"] == str(owner_user.id)
        assert data["make"] == "Honda"
        assert data["vin"] == "1HGCV1F30LA012345"

    @pytest.mark.asyncio
    async def test_create_vehicle_records_activity_and_audit(
        self, async_client: AsyncClient, db_session, owner_headers: dict, vehicle_data: dict
    ):
        response = await async_client.post("/api/v1/vehicles", headers=owner_headers, json=vehicle_data)
        vehicle_id = response.json()["id"]

        activity = (await db_session.execute(select(Activity))).scalar_one()
        assert activity.type == "vehicle_added"
        assert activity.description == "Added 2020 Honda Accord"
        assert activity.activity_metadata == {"vehicleId": vehicle_id}

        audit = (
            await db_session.execute(select(AuditLog).where(AuditLog.entity_type == "Vehicle"))
        ).scalar_one()
        assert audit.action == "CREATE"
        assert audit.changes["make"] == "Honda"

    @pytest.mark.asyncio
    async def test_create_vehicle_year_too_old_returns_400(
        self, async_client: AsyncClient, owner_headers: dict, vehicle_data: dict
    ):
        vehicle_data["year"] = 1899
        response = await async_client.post("/api/v1/vehicles", headers=owner_headers, json=vehicle_data)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_vehicle_year_in_far_future_returns_400(
        self, async_client: AsyncClient, owner_headers: dict, vehicle_data: dict
    ):
        vehicle_data["year"] = date.today().year + 3
        response = await async_client.post("/api/v1/vehicles", headers=owner_headers, json=vehicle_data)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_vehicle_short_vin_returns_400(
        self, async_client: AsyncClient, owner_headers: dict, vehicle_data: dict
    ):
        vehicle_data["vin"] = "1HGCV1F30"
        response = await async_client.post("/api/v1/vehicles", headers=owner_headers, json=vehicle_data)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_vehicle_requires_auth(self, async_client: AsyncClient, vehicle_data: dict):
        """Test a cookie-less, token-less write is stopped by CSRF before auth."""
        response = await async_client.post("/api/v1/vehicles", json=vehicle_data)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ERR_4003"


class TestListVehicles:
    """Tests for GET /api/v1/vehicles endpoint."""

    @pytest.mark.asyncio
    async def test_list_only_own_vehicles(
        self, async_client: AsyncClient, test_vehicle, other_owner_headers: dict, owner_headers: dict
    ):
        response = await async_client.get("/api/v1/vehicles", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert [v["id"] for v in data["data"]] == [str(test_vehicle.id)]
        assert data["meta"] == {
            "total": 1,
            "page": 1,
            "limit": 20,
            "totalPages": 1,
            "hasNextPage": False,
            "hasPrevPage": False,
        }

        response = await async_client.get("/api/v1/vehicles", headers=other_owner_headers)
        assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_list_pagination(
        self, async_client: AsyncClient, db_session, owner_user, owner_headers: dict
    ):
        for year in (2015, 2016, 2017):
            db_session.add(Vehicle(owner_id=owner_user.id, make="Ford", model="Focus", year=year))
        await db_session.commit()

        response = await async_client.get("/api/v1/vehicles?page=2&limit=2", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert len(data["data"]) == 1
        assert data["meta"]["total"] == 3
        assert data["meta"]["totalPages"] == 2
        assert data["meta"]["hasNextPage"] is False
        assert data["meta"]["hasPrevPage"] is True

    @pytest.mark.asyncio
    async def test_list_rejects_oversized_page(self, async_client: AsyncClient, owner_headers: dict):
        response = await async_client.get("/api/v1/vehicles?limit=500", headers=owner_headers)

        assert response.status_code == 400


class TestGetVehicle:
    """Tests for GET /api/v1/vehicles/{id} endpoint."""

    @pytest.mark.asyncio
    async def test_get_vehicle_with_owner(self, async_client: AsyncClient, test_vehicle, owner_headers: dict):
        response = await async_client.get(f"/api/v1/vehicles/{test_vehicle.id}", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(test_vehicle.id)
        assert data["owner"]["name"] == "Olivia Owner"
        assert data["owner"]["email"] == "owner@example.com"

    @pytest.mark.asyncio
    async def test_get_other_users_vehicle_returns_403(
        self, async_client: AsyncClient, test_vehicle, other_owner_headers: dict
    ):
        response = await async_client.get(f"/api/v1/vehicles/{test_vehicle.id}", headers=other_owner_headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ERR_1004"

    @pytest.mark.asyncio
    async def test_get_missing_vehicle_returns_404(self, async_client: AsyncClient, owner_headers: dict):
        response = await async_client.get(f"/api/v1/vehicles/{uuid4()}", headers=owner_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ERR_1002"

    @pytest.mark.asyncio
    async def test_get_vehicle_malformed_id_returns_400(self, async_client: AsyncClient, owner_headers: dict):
        response = await async_client.get("/api/v1/vehicles/not-a-uuid", headers=owner_headers)

        assert response.status_code == 400


class TestUpdateVehicle:
    """Tests for PUT /api/v1/vehicles/{id} and PATCH .../mileage endpoints."""

    @pytest.mark.asyncio
    async def test_partial_update(self, async_client: AsyncClient, db_session, test_vehicle, owner_headers: dict):
        """Test only the provided fields change and the diff is audited."""
        response = await async_client.put(
            f"/api/v1/vehicles/{test_vehicle.id}",
            headers=owner_headers,
            json={"license_plate": "9NEW001"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["license_plate"] == "9NEW001"
        assert data["make"] == "Toyota"

        audit = (
            await db_session.execute(select(AuditLog).where(AuditLog.action == "UPDATE"))
        ).scalar_one()
        assert audit.changes == {"license_plate": {"old": "8ABC123", "new": "9NEW001"}}

    @pytest.mark.asyncio
    async def test_update_other_users_vehicle_returns_403(
        self, async_client: AsyncClient, test_vehicle, other_owner_headers: dict
    ):
        response = await async_client.put(
            f"/api/v1/vehicles/{test_vehicle.id}",
            headers=other_owner_headers,
            json={"mileage": 1},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_mileage(self, async_client: AsyncClient, test_vehicle, owner_headers: dict):
        response = await async_client.patch(
            f"/api/v1/vehicles/{test_vehicle.id}/mileage",
            headers=owner_headers,
            json={"mileage": 45500},
        )

        assert response.status_code == 200
        assert response.json()["mileage"] == 45500

    @pytest.mark.asyncio
    async def test_negative_mileage_returns_400(self, async_client: AsyncClient, test_vehicle, owner_headers: dict):
        response = await async_client.patch(
            f"/api/v1/vehicles/{test_vehicle.id}/mileage",
            headers=owner_headers,
            json={"mileage": -1},
        )

        assert response.status_code == 400


class TestDeleteVehicle:
    """Tests for DELETE /api/v1/vehicles/{id} endpoint."""

    @pytest.mark.asyncio
    async def test_delete_vehicle(self, async_client: AsyncClient, db_session, test_vehicle, owner_headers: dict):
        vehicle_id = test_vehicle.id
        response = await async_client.delete(f"/api/v1/vehicles/{vehicle_id}", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Vehicle Toyota Camry deleted successfully"

        remaining = (await db_session.execute(select(Vehicle).where(Vehicle.id == vehicle_id))).scalar_one_or_none()
        assert remaining is None

    @pytest.mark.asyncio
    async def test_delete_other_users_vehicle_returns_403(
        self, async_client: AsyncClient, test_vehicle, other_owner_headers: dict
    ):
        response = await async_client.delete(f"/api/v1/vehicles/{test_vehicle.id}", headers=other_owner_headers)

        assert response.status_code == 403


class TestMaintenanceRecords:
    """Tests for the maintenance log endpoints."""

    @pytest.mark.asyncio
    async def test_add_record(self, async_client: AsyncClient, db_session, test_vehicle, owner_headers: dict):
        response = await async_client.post(
            f"/api/v1/vehicles/{test_vehicle.id}/maintenance",
            headers=owner_headers,
            json={
                "service_type": "Tire Rotation",
                "service_date": "2026-05-02",
                "mileage": 43000,
                "cost": 49.5,
                "notes": "All four tires at 6/32",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["vehicle_id"] == str(test_vehicle.id)
        assert data["service_date"] == "2026-05-02"
        assert data["cost"] == 49.5

        activity = (await db_session.execute(select(Activity))).scalar_one()
        assert activity.type == "maintenance_logged"
        assert activity.description == "Logged Tire Rotation for Toyota Camry"

    @pytest.mark.asyncio
    async def test_add_record_zero_mileage_returns_400(
        self, async_client: AsyncClient, test_vehicle, owner_headers: dict
    ):
        response = await async_client.post(
            f"/api/v1/vehicles/{test_vehicle.id}/maintenance",
            headers=owner_headers,
            json={"service_type": "Oil Change", "service_date": "2026-05-02", "mileage": 0},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_records_newest_service_first(
        self, async_client: AsyncClient, maintenance_record, test_vehicle, owner_headers: dict
    ):
        await async_client.post(
            f"/api/v1/vehicles/{test_vehicle.id}/maintenance",
            headers=owner_headers,
            json={"service_type": "Brake Inspection", "service_date": "2026-06-10"},
        )

        response = await async_client.get(f"/api/v1/vehicles/{test_vehicle.id}/maintenance", headers=owner_headers)

        assert response.status_code == 200
        assert [r["service_type"] for r in response.json()] == ["Brake Inspection", "Oil Change"]

    @pytest.mark.asyncio
    async def test_list_records_of_other_users_vehicle_returns_403(
        self, async_client: AsyncClient, test_vehicle, other_owner_headers: dict
    ):
        response = await async_client.get(
            f"/api/v1/vehicles/{test_vehicle.id}/maintenance", headers=other_owner_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_record(self, async_client: AsyncClient, maintenance_record, owner_headers: dict):
        response = await async_client.delete(f"/api/v1/maintenance/{maintenance_record.id}", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Maintenance record deleted successfully"

    @pytest.mark.asyncio
    async def test_delete_other_users_record_returns_403(
        self, async_client: AsyncClient, maintenance_record, other_owner_headers: dict
    ):
        response = await async_client.delete(
            f"/api/v1/maintenance/{maintenance_record.id}", headers=other_owner_headers
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_missing_record_returns_404(self, async_client: AsyncClient, owner_headers: dict):
        response = await async_client.delete(f"/api/v1/maintenance/{uuid4()}", headers=owner_headers)

        assert response.status_code == 404
