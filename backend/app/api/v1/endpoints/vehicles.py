"""
Vehicle endpoints - the caller's garage and its maintenance log.

Provides endpoints to:
- List, create, read, update and delete own vehicles
- Update a vehicle's mileage
- List and add maintenance records of a vehicle
- Delete a maintenance record
"""

from typing import Any, Dict, List, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.api.v1.schemas.common import MessageResponse, PaginatedResponse, PaginationParams, paginate
from app.api.v1.schemas.vehicle import (
    MaintenanceRecordCreate,
    MaintenanceRecordResponse,
    MileageUpdate,
    VehicleCreate,
    VehicleDetailResponse,
    VehicleResponse,
    VehicleUpdate,
)
from app.db.postgres.models import User
from app.db.postgres.session import get_db, get_read_db
from app.services.vehicle_service import VehicleService, get_vehicle_service

router = APIRouter()
maintenance_router = APIRouter()


# =============================================================================
# OpenAPI Response Examples
# =============================================================================

OWNED_RESOURCE_RESPONSES: Dict[Union[int, str], Dict[str, Any]] = {
    403: {
        "description": "Vehicle belongs to another user",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "ERR_1004",
                        "message": "You do not have access to this vehicle",
                        "details": {},
                        "request_id": "3f2c8a40-...",
                    },
                    "statusCode": 403,
                }
            }
        },
    },
    404: {"description": "Vehicle not found"},
}

VIN_EXAMPLE = "1HGCM82633A004352"


# =============================================================================
# Vehicles
# =============================================================================


@router.get("", response_model=PaginatedResponse[VehicleResponse], summary="List own vehicles")
async def list_vehicles(
    pagination: PaginationParams = Depends(),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
):
    """Return the caller's vehicles, newest first."""
    vehicles, total = await vehicle_service.list_vehicles(db, current_user, pagination.skip, pagination.limit)
    return paginate(vehicles, total, pagination)


@router.post(
    "",
    response_model=VehicleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a vehicle",
    responses={
        201: {
            "description": "Vehicle created",
            "content": {
                "application/json": {
                    "example": {
                        "make": "Honda",
                        "model": "Accord",
                        "year": 2019,
                        "vin": VIN_EXAMPLE,
                        "license_plate": "7ABC123",
                        "mileage": 42000,
                    }
                }
            },
        }
    },
)
async def create_vehicle(
    data: VehicleCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
):
    return await vehicle_service.create_vehicle(db, current_user, data)


@router.get(
    "/{vehicle_id}",
    response_model=VehicleDetailResponse,
    responses=OWNED_RESOURCE_RESPONSES,
    summary="Get a vehicle",
)
async def get_vehicle(
    vehicle_id: UUID = Path(..., description="Vehicle ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
):
    return await vehicle_service.get_owned_vehicle(db, vehicle_id, current_user, with_owner=True)


@router.put(
    "/{vehicle_id}",
    response_model=VehicleResponse,
    responses=OWNED_RESOURCE_RESPONSES,
    summary="Update a vehicle",
)
async def update_vehicle(
    data: VehicleUpdate,
    vehicle_id: UUID = Path(..., description="Vehicle ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
):
    return await vehicle_service.update_vehicle(db, vehicle_id, current_user, data)


@router.patch(
    "/{vehicle_id}/mileage",
    response_model=VehicleResponse,
    responses=OWNED_RESOURCE_RESPONSES,
    summary="Update odometer reading",
)
async def update_mileage(
    data: MileageUpdate,
    vehicle_id: UUID = Path(..., description="Vehicle ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
):
    return await vehicle_service.update_mileage(db, vehicle_id, current_user, data.mileage)


@router.delete(
    "/{vehicle_id}",
    response_model=MessageResponse,
    responses=OWNED_RESOURCE_RESPONSES,
    summary="Delete a vehicle",
)
async def delete_vehicle(
    vehicle_id: UUID = Path(..., description="Vehicle ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
) -> MessageResponse:
    message = await vehicle_service.delete_vehicle(db, vehicle_id, current_user)
    return MessageResponse(message=message)


# =============================================================================
# Maintenance log
# =============================================================================


@router.get(
    "/{vehicle_id}/maintenance",
    response_model=List[MaintenanceRecordResponse],
    responses=OWNED_RESOURCE_RESPONSES,
    summary="List maintenance records",
)
async def list_maintenance(
    vehicle_id: UUID = Path(..., description="Vehicle ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_read_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
):
    """Maintenance history of the vehicle, most recent service date first."""
    return await vehicle_service.list_maintenance(db, vehicle_id, current_user)


@router.post(
    "/{vehicle_id}/maintenance",
    response_model=MaintenanceRecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses=OWNED_RESOURCE_RESPONSES,
    summary="Log a maintenance record",
)
async def add_maintenance(
    data: MaintenanceRecordCreate,
    vehicle_id: UUID = Path(..., description="Vehicle ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
):
    return await vehicle_service.add_maintenance(db, vehicle_id, current_user, data)


@maintenance_router.delete(
    "/{record_id}",
    response_model=MessageResponse,
    summary="Delete a maintenance record",
)
async def delete_maintenance(
    record_id: UUID = Path(..., description="Maintenance record ID"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    vehicle_service: VehicleService = Depends(get_vehicle_service),
) -> MessageResponse:
    await vehicle_service.delete_maintenance(db, record_id, current_user)
    return MessageResponse(message="Maintenance record deleted successfully")
