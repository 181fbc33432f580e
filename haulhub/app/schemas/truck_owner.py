"""
Acting labour (truck owner / agent) profile schemas.
"""

from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional
from haulhub.app.models.fleet_enums import LabourType
from haulhub.app.schemas.common import CamelModel


class TruckOwnerProfile(CamelModel):
    id: int
    user_id: int
    labour_type: LabourType
    name: str
    phone: Optional[str]
    email: Optional[str]
    location: Optional[str]
    status: str
    experience: int
    rating: float
    created_at: datetime
    updated_at: datetime


class TruckOwnerProfileUpdate(CamelModel):
    """Fields a truck owner may change on their own profile."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    location: Optional[str] = Field(None, max_length=255)
    experience: Optional[int] = Field(None, ge=0)
