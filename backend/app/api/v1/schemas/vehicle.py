"""
Vehicle and maintenance record schemas.
"""

import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.api.v1.schemas.auth import UserSummary

MIN_VEHICLE_YEAR = 1900


def _max_vehicle_year() -> int:
    return dt.date.today().year + 2


class VehicleBase(BaseModel):
    make: str = Field(..., min_length=1, max_length=50, description="Manufacturer")
    model: str = Field(..., min_length=1, max_length=100, description="Model name")
    year: int = Field(..., ge=MIN_VEHICLE_YEAR, description="Model year")
    vin: Optional[str] = Field(None, min_length=17, max_length=17, description="Vehicle Identification Number")
    license_plate: Optional[str] = Field(None, max_length=20)
    mileage: Optional[int] = Field(None, ge=0)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if v > _max_vehicle_year():
            raise ValueError(f"Year must be at most {_max_vehicle_year()}")
        return v

    @field_validator("vin")
    @classmethod
    def normalize_vin(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class VehicleCreate(VehicleBase):
    """Schema for registering a vehicle."""


class VehicleUpdate(BaseModel):
    """Partial vehicle update; only the provided fields change."""

    make: Optional[str] = Field(None, min_length=1, max_length=50)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=MIN_VEHICLE_YEAR)
    vin: Optional[str] = Field(None, min_length=17, max_length=17)
    license_plate: Optional[str] = Field(None, max_length=20)
    mileage: Optional[int] = Field(None, ge=0)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > _max_vehicle_year():
            raise ValueError(f"Year must be at most {_max_vehicle_year()}")
        return v

    @field_validator("vin")
    @classmethod
    def normalize_vin(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class MileageUpdate(BaseModel):
    mileage: int = Field(..., ge=0)


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""

    id: UUID
    owner_id: UUID
    make: str
    model: str
    year: int
    vin: Optional[str] = None
    license_plate: Optional[str] = None
    mileage: Optional[int] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    class Config:
        from_attributes = True


class VehicleDetailResponse(VehicleResponse):
    """Vehicle with its owner's contact details."""

    owner: Optional[UserSummary] = None


class VehicleBrief(BaseModel):
    """Vehicle reference embedded in requests and jobs."""

    id: UUID
    make: str
    model: str
    year: int

    class Config:
        from_attributes = True


# =============================================================================
# Maintenance records
# =============================================================================


class MaintenanceRecordCreate(BaseModel):
    service_type: str = Field(..., min_length=1, max_length=100)
    service_date: dt.date
    mileage: Optional[int] = Field(None, gt=0)
    cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=5000)
    performed_by: Optional[str] = Field(None, max_length=200)


class MaintenanceRecordResponse(BaseModel):
    id: UUID
    vehicle_id: UUID
    service_type: str
    service_date: dt.date
    mileage: Optional[int] = None
    cost: Optional[float] = None
    notes: Optional[str] = None
    performed_by: Optional[str] = None
    created_at: dt.datetime

    class Config:
        from_attributes = True
