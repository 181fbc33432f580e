"""
Truck Owner Truck database model.

Truck owners register trucks with identification and capacity details.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from haulhub.app.db.session import Base
from haulhub.app.models.fleet_enums import TruckStatus


class TruckOwnerTruck(Base):
    """
    Truck model.

    current_trip_id is the claim taken by a non-terminal trip; it is set and
    cleared only by the dispatch workflow.
    """
    __tablename__ = "truck_owner_trucks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - Truck belongs to Truck Owner
    truck_owner_id = Column(Integer, ForeignKey('acting_labours.id'), nullable=False, index=True)

    # Identification
    truck_no = Column(String(20), unique=True, nullable=False, index=True)
    truck_type = Column(String(100), nullable=True)  # e.g., "Container", "Open Body"
    capacity = Column(String(50), nullable=True)  # e.g., "10 Tons"
    fuel_type = Column(String(50), nullable=True, default="Diesel")
    registration_year = Column(Integer, nullable=True)
    chassis_number = Column(String(100), nullable=True)
    engine_number = Column(String(100), nullable=True)
    insurance_number = Column(String(100), nullable=True)
    rc_details = Column(String(255), nullable=True)

    status = Column(Enum(TruckStatus), default=TruckStatus.ACTIVE, nullable=False, index=True)
    current_trip_id = Column(Integer, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<TruckOwnerTruck(id={self.id}, truck_no='{self.truck_no}', owner_id={self.truck_owner_id})>"
