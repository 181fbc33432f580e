"""
Trip database model.

A trip binds one order to one driver and one truck for a single delivery run.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from haulhub.app.db.session import Base
from haulhub.app.models.trip_enums import TripStatus


class Trip(Base):
    """
    Trip model.

    Created by the dispatch workflow together with the order's move to
    IN_PROGRESS. Once a trip exists its status is authoritative and the
    order status is derived from it.
    """
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    order_id = Column(String(64), ForeignKey('orders.id'), nullable=False, index=True)
    truck_owner_id = Column(Integer, ForeignKey('acting_labours.id'), nullable=False, index=True)

    # Nulled when a driver/truck with only finished trips is deleted
    driver_id = Column(Integer, ForeignKey('truck_owner_drivers.id', ondelete="SET NULL"), nullable=True, index=True)
    truck_id = Column(Integer, ForeignKey('truck_owner_trucks.id', ondelete="SET NULL"), nullable=True, index=True)

    # Route and cargo
    from_location = Column(String(500), nullable=True)
    to_location = Column(String(500), nullable=True)
    cargo = Column(String(500), nullable=True)
    special_instructions = Column(Text, nullable=True)

    status = Column(Enum(TripStatus), default=TripStatus.UPCOMING, nullable=False, index=True)

    # Timestamps
    estimated_delivery_date = Column(DateTime(timezone=True), nullable=True)
    actual_delivery_date = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Trip(id={self.id}, order_id='{self.order_id}', status='{self.status.value}')>"
