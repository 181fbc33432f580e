"""
Truck Owner (acting labour) database model.

Profile for TRUCK_OWNER and AGENT accounts. Owns trucks and drivers and
receives orders assigned by a super admin.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from haulhub.app.db.session import Base
from haulhub.app.models.fleet_enums import LabourType


class TruckOwner(Base):
    """Acting labour profile, created when the account is approved."""
    __tablename__ = "acting_labours"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=False, index=True)
    labour_type = Column(Enum(LabourType), default=LabourType.TRUCK_OWNER, nullable=False)

    name = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(50), nullable=False, default="AVAILABLE")
    experience = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<TruckOwner(id={self.id}, user_id={self.user_id}, type='{self.labour_type.value}')>"
