"""
Order database model.

Orders are placed by buyers outside this service; here they are assigned to
truck owners and dispatched as trips. Orders are never hard-deleted.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from haulhub.app.db.session import Base
from haulhub.app.models.trip_enums import OrderStatus


class Order(Base):
    """Order model with string identifiers (e.g. "ORD-1")."""
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True)

    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False, index=True)

    # Parties
    buyer_user_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)
    manufacturer_id = Column(Integer, ForeignKey('manufacturers.id'), nullable=True, index=True)
    assigned_truck_owner_id = Column(Integer, ForeignKey('acting_labours.id'), nullable=True, index=True)

    delivery_address = Column(String(500), nullable=True)
    total_amount = Column(Numeric(12, 2), nullable=True)

    order_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship("OrderItem", lazy="selectin", order_by="OrderItem.id")

    def __repr__(self):
        return f"<Order(id='{self.id}', status='{self.status.value}', truck_owner_id={self.assigned_truck_owner_id})>"
