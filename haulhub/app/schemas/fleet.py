"""
Truck and driver Pydantic schemas.
"""

import re
from pydantic import BeforeValidator, EmailStr, Field, field_validator
from datetime import datetime
from typing import Annotated, Optional
from haulhub.app.models.fleet_enums import DriverStatus, TruckStatus
from haulhub.app.schemas.common import CamelModel, normalize_upper

# Indian registration format, e.g. TN01AB1234
TRUCK_NO_PATTERN = re.compile(r"^[A-Z]{2}\d{2}[A-Z]{1,2}\d{4}$")

TruckStatusIn = Annotated[TruckStatus, BeforeValidator(normalize_upper)]
DriverStatusIn = Annotated[DriverStatus, BeforeValidator(normalize_upper)]


def normalize_truck_no(value: str) -> str:
    """Upper-case a registration number, drop spaces/dashes and check the format."""
    cleaned = re.sub(r"[\s-]", "", str(value)).upper()
    if not TRUCK_NO_PATTERN.match(cleaned):
        raise ValueError("Truck number must look like TN01AB1234")
    return cleaned


class TruckCreate(CamelModel):
    """Schema for registering a truck."""
    truck_no: str = Field(..., description="Registration number, e.g. TN01AB1234")
    truck_type: Optional[str] = Field(None, max_length=100)
    capacity: Optional[str] = Field(None, max_length=50, description="e.g. 10 Tons")
    fuel_type: Optional[str] = Field("Diesel", max_length=50)
    registration_year: Optional[int] = Field(None, ge=1950, le=2100)
    chassis_number: Optional[str] = Field(None, max_length=100)
    engine_number: Optional[str] = Field(None, max_length=100)
    insurance_number: Optional[str] = Field(None, max_length=100)
    rc_details: Optional[str] = Field(None, max_length=255)
    status: TruckStatusIn = TruckStatus.ACTIVE

    @field_validator("truck_no")
    @classmethod
    def check_truck_no(cls, value):
        return normalize_truck_no(value)


class TruckUpdate(CamelModel):
    """Partial truck update; only supplied fields change."""
    truck_no: Optional[str] = None
    truck_type: Optional[str] = Field(None, max_length=100)
    capacity: Optional[str] = Field(None, max_length=50)
    fuel_type: Optional[str] = Field(None, max_length=50)
    registration_year: Optional[int] = Field(None, ge=1950, le=2100)
    chassis_number: Optional[str] = Field(None, max_length=100)
    engine_number: Optional[str] = Field(None, max_length=100)
    insurance_number: Optional[str] = Field(None, max_length=100)
    rc_details: Optional[str] = Field(None, max_length=255)
    status: Optional[TruckStatusIn] = None

    @field_validator("truck_no")
    @classmethod
    def check_truck_no(cls, value):
        if value is None:
            return value
        return normalize_truck_no(value)


class TruckResponse(CamelModel):
    """Truck as returned by the API."""
    id: int
    truck_owner_id: int
    truck_no: str
    truck_type: Optional[str]
    capacity: Optional[str]
    fuel_type: Optional[str]
    registration_year: Optional[int]
    chassis_number: Optional[str]
    engine_number: Optional[str]
    insurance_number: Optional[str]
    rc_details: Optional[str]
    status: TruckStatus
    current_trip_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class DriverCreate(CamelModel):
    """Schema for registering a driver."""
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=5, max_length=30)
    email: Optional[EmailStr] = None
    location: Optional[str] = Field("Local", max_length=255)
    license_number: Optional[str] = Field(None, max_length=100)
    aadhaar_number: Optional[str] = Field(None, max_length=20)
    experience: int = Field(0, ge=0)
    status: DriverStatusIn = DriverStatus.AVAILABLE


class DriverUpdate(CamelModel):
    """Partial driver update. Availability has its own endpoint."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, min_length=5, max_length=30)
    email: Optional[EmailStr] = None
    location: Optional[str] = Field(None, max_length=255)
    license_number: Optional[str] = Field(None, max_length=100)
    aadhaar_number: Optional[str] = Field(None, max_length=20)
    experience: Optional[int] = Field(None, ge=0)


class DriverStatusUpdate(CamelModel):
    """Attendance change: AVAILABLE or UNAVAILABLE with an optional reason."""
    status: DriverStatusIn
    reason: Optional[str] = Field(None, max_length=255)


class DriverResponse(CamelModel):
    """Driver as returned by the API."""
    id: int
    truck_owner_id: int
    user_id: Optional[int]
    name: str
    phone: str
    email: Optional[str]
    location: Optional[str]
    license_number: Optional[str]
    aadhaar_number: Optional[str]
    status: DriverStatus
    status_reason: Optional[str]
    experience: int
    rating: float
    current_trip_id: Optional[int]
    created_at: datetime
    updated_at: datetime
