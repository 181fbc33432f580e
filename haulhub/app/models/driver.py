"""
Truck Owner Driver database model.

Drivers are registered by their truck owner. A driver record can be linked
to a DRIVER login account through user_id.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from haulhub.app.db.session import Base
from haulhub.app.models.fleet_enums import DriverStatus


class TruckOwnerDriver(Base):
    """Driver model. current_trip_id works like TruckOwnerTruck.current_trip_id."""
    __tablename__ = "truck_owner_drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Driver belongs to Truck Owner
    truck_owner_id = Column(Integer, ForeignKey('acting_labours.id'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=True, index=True)

    # Contact
    name = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    location = Column(String(255), nullable=True, default="Local")

    # Documents
    license_number = Column(String(100), nullable=True)
    aadhaar_number = Column(String(20), nullable=True)

    status = Column(Enum(DriverStatus), default=DriverStatus.AVAILABLE, nullable=False, index=True)
    status_reason = Column(String(255), nullable=True)
    experience = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0.0)
    current_trip_id = Column(Integer, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<TruckOwnerDriver(id={self.id}, name='{self.name}', owner_id={self.truck_owner_id})>"
