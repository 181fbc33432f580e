"""
Order and Trip Pydantic schemas.
"""

from pydantic import BeforeValidator, Field
from datetime import datetime
from typing import Annotated, List, Optional
from haulhub.app.models.trip_enums import OrderStatus, TripStatus
from haulhub.app.schemas.common import CamelModel, normalize_upper

UpperStr = Annotated[str, BeforeValidator(normalize_upper)]


class OrderItemResponse(CamelModel):
    """Order line with the name and price captured when the order was placed."""
    id: int
    product_id: Optional[int]
    product_name: str
    quantity: int
    unit_price: float


class OrderResponse(CamelModel):
    """Order as seen by truck owners and admins."""
    id: str
    status: OrderStatus
    buyer_user_id: Optional[int]
    manufacturer_id: Optional[int]
    assigned_truck_owner_id: Optional[int]
    delivery_address: Optional[str]
    total_amount: Optional[float]
    order_date: datetime
    items: List[OrderItemResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class OrderStatusUpdate(CamelModel):
    """
    Requested order status.

    RUNNING is accepted as a synonym for IN_PROGRESS. Once the order has a
    trip only COMPLETED and CANCELLED are meaningful.
    """
    status: UpperStr = Field(..., min_length=1)


class TripCreate(CamelModel):
    """
    Schema for dispatching an order as a trip.

    toLocation defaults to the order's delivery address.
    """
    order_id: str = Field(..., min_length=1)
    driver_id: int = Field(..., gt=0)
    truck_id: int = Field(..., gt=0)
    from_location: Optional[str] = Field(None, max_length=500)
    to_location: Optional[str] = Field(None, max_length=500)
    cargo: Optional[str] = Field(None, max_length=500)
    estimated_delivery_date: Optional[datetime] = None
    special_instructions: Optional[str] = None
    status: Optional[UpperStr] = Field(None, description="Only UPCOMING is accepted")


class TripStatusUpdate(CamelModel):
    """Requested trip status."""
    status: UpperStr = Field(..., min_length=1)


class TripResponse(CamelModel):
    """Trip as returned by the API."""
    id: int
    order_id: str
    truck_owner_id: int
    driver_id: Optional[int]
    truck_id: Optional[int]
    from_location: Optional[str]
    to_location: Optional[str]
    cargo: Optional[str]
    special_instructions: Optional[str]
    status: TripStatus
    estimated_delivery_date: Optional[datetime]
    actual_delivery_date: Optional[datetime]
    started_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class TripDetailResponse(TripResponse):
    """Trip with the derived order status, returned after a status change."""
    order_status: OrderStatus


class DeliveryResponse(CamelModel):
    """A driver's delivery: trip, order summary and display label."""
    trip_id: int
    order_id: str
    trip_status: TripStatus
    order_status: OrderStatus
    delivery_status: str
    from_location: Optional[str]
    to_location: Optional[str]
    cargo: Optional[str]
    truck_no: Optional[str]
    total_amount: Optional[float]
    estimated_delivery_date: Optional[datetime]
    actual_delivery_date: Optional[datetime]
    started_at: Optional[datetime]
