"""
Vehicle Service.

Owners manage their own vehicles and the maintenance log attached to them.
Every lookup checks existence first (404) and ownership second (403).
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.schemas.vehicle import MaintenanceRecordCreate, VehicleCreate, VehicleUpdate
from app.core.exceptions import ForbiddenException, NotFoundException
from app.core.logging import get_logger
from app.db.postgres.models import AuditAction, MaintenanceRecord, User, Vehicle
from app.db.postgres.repositories import MaintenanceRecordRepository, VehicleRepository
from app.services.activity_service import MAINTENANCE_LOGGED, VEHICLE_ADDED, get_activity_service
from app.services.audit_service import diff_changes, get_audit_service

logger = get_logger(__name__)

VEHICLE_FIELDS = ("make", "model", "year", "vin", "license_plate", "mileage")


def _snapshot(vehicle: Vehicle) -> dict[str, Any]:
    return {field: getattr(vehicle, field) for field in VEHICLE_FIELDS}


class VehicleService:
    """Service for vehicles and their maintenance records."""

    async def list_vehicles(
        self, db: AsyncSession, owner: User, skip: int, limit: int
    ) -> tuple[list[Vehicle], int]:
        return await VehicleRepository(db).list_for_owner(owner.id, skip, limit)

    async def get_owned_vehicle(
        self, db: AsyncSession, vehicle_id: UUID, user: User, with_owner: bool = False
    ) -> Vehicle:
        """
        Load a vehicle the user owns.

        Raises:
            NotFoundException: No such vehicle
            ForbiddenException: Vehicle belongs to someone else
        """
        repository = VehicleRepository(db)
        vehicle = await (repository.get_with_owner(vehicle_id) if with_owner else repository.get(vehicle_id))
        if vehicle is None:
            raise NotFoundException(
                message="Vehicle not found",
                resource_type="Vehicle",
                resource_id=str(vehicle_id),
            )
        if vehicle.owner_id != user.id:
            raise ForbiddenException(message="You do not have access to this vehicle")
        return vehicle

    async def create_vehicle(self, db: AsyncSession, owner: User, data: VehicleCreate) -> Vehicle:
        vehicle = await VehicleRepository(db).create({"owner_id": owner.id, **data.model_dump()})

        await get_activity_service().create(
            db,
            owner.id,
            VEHICLE_ADDED,
            f"Added {vehicle.year} {vehicle.make} {vehicle.model}",
            {"vehicleId": str(vehicle.id)},
        )
        await get_audit_service().log(
            db,
            user_id=owner.id,
            entity_type="Vehicle",
            entity_id=vehicle.id,
            action=AuditAction.CREATE,
            changes=_snapshot(vehicle),
        )
        logger.info(f"Vehicle {vehicle.id} created for user {owner.id}")
        return vehicle

    async def update_vehicle(
        self, db: AsyncSession, vehicle_id: UUID, user: User, data: VehicleUpdate
    ) -> Vehicle:
        vehicle = await self.get_owned_vehicle(db, vehicle_id, user)
        updates = data.model_dump(exclude_unset=True)
        before = _snapshot(vehicle)

        for key, value in updates.items():
            setattr(vehicle, key, value)
        await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="Vehicle",
            entity_id=vehicle.id,
            action=AuditAction.UPDATE,
            changes=diff_changes(before, updates),
        )
        return vehicle

    async def update_mileage(self, db: AsyncSession, vehicle_id: UUID, user: User, mileage: int) -> Vehicle:
        vehicle = await self.get_owned_vehicle(db, vehicle_id, user)
        vehicle.mileage = mileage
        await db.flush()
        return vehicle

    async def delete_vehicle(self, db: AsyncSession, vehicle_id: UUID, user: User) -> str:
        """Delete a vehicle; returns the confirmation message."""
        vehicle = await self.get_owned_vehicle(db, vehicle_id, user)
        snapshot = _snapshot(vehicle)

        await db.delete(vehicle)
        await db.flush()

        await get_audit_service().log(
            db,
            user_id=user.id,
            entity_type="Vehicle",
            entity_id=vehicle_id,
            action=AuditAction.DELETE,
            changes=snapshot,
        )
        return f"Vehicle {snapshot['make']} {snapshot['model']} deleted successfully"

    # -------------------------------------------------------------------------
    # Maintenance records
    # -------------------------------------------------------------------------

    async def list_maintenance(self, db: AsyncSession, vehicle_id: UUID, user: User) -> list[MaintenanceRecord]:
        await self.get_owned_vehicle(db, vehicle_id, user)
        return await MaintenanceRecordRepository(db).list_for_vehicle(vehicle_id)

    async def add_maintenance(
        self, db: AsyncSession, vehicle_id: UUID, user: User, data: MaintenanceRecordCreate
    ) -> MaintenanceRecord:
        vehicle = await self.get_owned_vehicle(db, vehicle_id, user)
        record = await MaintenanceRecordRepository(db).create({"vehicle_id": vehicle.id, **data.model_dump()})

        await get_activity_service().create(
            db,
            user.id,
            MAINTENANCE_LOGGED,
            f"Logged {record.service_type} for {vehicle.make} {vehicle.model}",
            {"vehicleId": str(vehicle.id), "recordId": str(record.id)},
        )
        return record

    async def delete_maintenance(self, db: AsyncSession, record_id: UUID, user: User) -> None:
        repository = MaintenanceRecordRepository(db)
        record = await repository.get_with_vehicle(record_id)
        if record is None:
            raise NotFoundException(
                message="Maintenance record not found",
                resource_type="MaintenanceRecord",
                resource_id=str(record_id),
            )
        if record.vehicle is None or record.vehicle.owner_id != user.id:
            raise ForbiddenException(message="You do not have access to this maintenance record")

        await db.delete(record)
        await db.flush()


# Singleton instance
_vehicle_service: VehicleService | None = None


def get_vehicle_service() -> VehicleService:
    """Get or create vehicle service instance."""
    global _vehicle_service
    if _vehicle_service is None:
        _vehicle_service = VehicleService()
    return _vehicle_service
