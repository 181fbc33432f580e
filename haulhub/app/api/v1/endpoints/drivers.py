"""
Driver self-service API Endpoints.

A DRIVER account sees the trips of the driver record linked to it and can
start and finish them.
"""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from haulhub.app.db.session import get_db
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.order import Order
from haulhub.app.models.trip import Trip
from haulhub.app.models.trip_enums import TripStatus
from haulhub.app.models.truck import TruckOwnerTruck
from haulhub.app.schemas.common import ApiResponse
from haulhub.app.schemas.trip import DeliveryResponse, TripStatusUpdate, TripDetailResponse, TripResponse
from haulhub.app.core.dependencies import get_current_user
from haulhub.app.core.exceptions import DomainValidationError
from haulhub.app.core.guards import get_current_driver
from haulhub.app.domain.dispatch.dispatch_service import DispatchService, parse_trip_status
from haulhub.app.domain.lifecycle.transitions import delivery_status_for

router = APIRouter(prefix="/drivers", tags=["Driver"])

# Drivers start and finish trips; cancelling is left to the truck owner
DRIVER_TRIP_TARGETS = {TripStatus.RUNNING, TripStatus.COMPLETED}


@router.get("/me/deliveries", response_model=ApiResponse[List[DeliveryResponse]])
async def my_deliveries(
    driver: TruckOwnerDriver = Depends(get_current_driver),
    db: AsyncSession = Depends(get_db)
):
    """The caller's trips with order summary and delivery label, newest first."""
    result = await db.execute(
        select(Trip, Order.status, Order.total_amount, TruckOwnerTruck.truck_no)
        .join(Order, Order.id == Trip.order_id)
        .outerjoin(TruckOwnerTruck, TruckOwnerTruck.id == Trip.truck_id)
        .where(Trip.driver_id == driver.id)
        .order_by(Trip.created_at.desc(), Trip.id.desc())
    )

    deliveries = [
        DeliveryResponse(
            trip_id=trip.id,
            order_id=trip.order_id,
            trip_status=trip.status,
            order_status=order_status,
            delivery_status=delivery_status_for(order_status, trip.status),
            from_location=trip.from_location,
            to_location=trip.to_location,
            cargo=trip.cargo,
            truck_no=truck_no,
            total_amount=total_amount,
            estimated_delivery_date=trip.estimated_delivery_date,
            actual_delivery_date=trip.actual_delivery_date,
            started_at=trip.started_at,
        )
        for trip, order_status, total_amount, truck_no in result.all()
    ]
    return ApiResponse(data=deliveries)


@router.put("/me/trips/{trip_id}/status", response_model=ApiResponse[TripDetailResponse])
async def update_my_trip_status(
    trip_id: int,
    body: TripStatusUpdate,
    driver: TruckOwnerDriver = Depends(get_current_driver),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Start (RUNNING) or finish (COMPLETED) one of the caller's trips."""
    target = parse_trip_status(body.status)
    if target not in DRIVER_TRIP_TARGETS:
        raise DomainValidationError(
            f"Drivers can only set trip status to {' or '.join(sorted(s.value for s in DRIVER_TRIP_TARGETS))}",
            details={"status": target.value}
        )

    trip = await DispatchService.change_trip_status(db, trip_id, target, current_user, driver_id=driver.id)
    order = await db.get(Order, trip.order_id)
    detail = TripDetailResponse(**TripResponse.model_validate(trip).model_dump(), order_status=order.status)
    return ApiResponse(data=detail, message="Trip status updated")
