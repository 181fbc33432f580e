"""
Truck Owner API Endpoints.

Fleet (trucks, drivers), assigned orders, trip dispatch and profile for
TRUCK_OWNER and AGENT accounts. Every query is scoped to the caller's
acting labour profile.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from haulhub.app.db.session import get_db
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.order import Order
from haulhub.app.models.trip import Trip
from haulhub.app.models.truck import TruckOwnerTruck
from haulhub.app.models.truck_owner import TruckOwner
from haulhub.app.schemas.common import ApiResponse
from haulhub.app.schemas.fleet import (
    TruckCreate, TruckUpdate, TruckResponse,
    DriverCreate, DriverUpdate, DriverStatusUpdate, DriverResponse
)
from haulhub.app.schemas.trip import (
    OrderResponse, OrderStatusUpdate, TripCreate, TripStatusUpdate, TripResponse, TripDetailResponse
)
from haulhub.app.schemas.truck_owner import TruckOwnerProfile, TruckOwnerProfileUpdate
from haulhub.app.core.dependencies import get_current_user
from haulhub.app.core.exceptions import DuplicateResourceError
from haulhub.app.core.guards import get_current_truck_owner, OwnershipGuard
from haulhub.app.domain.dispatch.dispatch_service import DispatchService, parse_order_status, parse_trip_status
from haulhub.app.services.audit import log_event, AuditAction
from haulhub.app.services.provisioning import find_driver_account
from haulhub.app.services.resource_guards import ensure_no_active_trips

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/truck-owners", tags=["Truck Owner"])
ownership_guard = OwnershipGuard()


def _split_statuses(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part for part in (p.strip() for p in raw.split(",")) if part]


async def _audit(db: AsyncSession, action: str, current_user: dict, **metadata):
    await log_event(
        db,
        action,
        actor_id=current_user.get("user_id"),
        actor_username=current_user.get("sub"),
        metadata=metadata
    )


async def _ensure_truck_no_free(db: AsyncSession, truck_no: str, exclude_id: Optional[int] = None):
    query = select(TruckOwnerTruck.id).where(TruckOwnerTruck.truck_no == truck_no)
    if exclude_id is not None:
        query = query.where(TruckOwnerTruck.id != exclude_id)
    if (await db.execute(query)).first():
        raise DuplicateResourceError("Truck number already exists", details={"truck_no": truck_no})


# Trucks

@router.get("/trucks", response_model=ApiResponse[List[TruckResponse]])
async def list_trucks(
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's trucks, newest first."""
    result = await db.execute(
        select(TruckOwnerTruck)
        .where(TruckOwnerTruck.truck_owner_id == truck_owner.id)
        .order_by(TruckOwnerTruck.created_at.desc(), TruckOwnerTruck.id.desc())
    )
    trucks = result.scalars().all()
    return ApiResponse(data=[TruckResponse.model_validate(truck) for truck in trucks])


@router.post("/trucks", response_model=ApiResponse[TruckResponse], status_code=status.HTTP_201_CREATED)
async def create_truck(
    truck_data: TruckCreate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a truck.

    Truck numbers are unique across the platform; a duplicate is rejected
    and the existing truck is left untouched.
    """
    await _ensure_truck_no_free(db, truck_data.truck_no)

    truck = TruckOwnerTruck(truck_owner_id=truck_owner.id, **truck_data.model_dump())
    db.add(truck)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent insert of the same number
        await db.rollback()
        raise DuplicateResourceError("Truck number already exists", details={"truck_no": truck_data.truck_no})
    await db.refresh(truck)

    logger.info("Truck %s (%s) created by truck owner %s", truck.id, truck.truck_no, truck_owner.id)
    await _audit(db, AuditAction.TRUCK_CREATED, current_user, truck_id=truck.id, truck_no=truck.truck_no)

    return ApiResponse(data=TruckResponse.model_validate(truck), message="Truck created successfully")


@router.put("/trucks/{truck_id}", response_model=ApiResponse[TruckResponse])
async def update_truck(
    truck_id: int,
    truck_data: TruckUpdate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a truck (owner only). Renumbering re-checks uniqueness."""
    truck = ownership_guard.enforce(await db.get(TruckOwnerTruck, truck_id), truck_owner.id, "Truck")

    changes = truck_data.model_dump(exclude_unset=True)
    if changes.get("truck_no") and changes["truck_no"] != truck.truck_no:
        await _ensure_truck_no_free(db, changes["truck_no"], exclude_id=truck.id)

    for field, value in changes.items():
        if value is not None:
            setattr(truck, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateResourceError("Truck number already exists", details={"truck_no": changes.get("truck_no")})
    await db.refresh(truck)

    await _audit(db, AuditAction.TRUCK_UPDATED, current_user, truck_id=truck.id, fields=sorted(changes))
    return ApiResponse(data=TruckResponse.model_validate(truck), message="Truck updated successfully")


@router.delete("/trucks/{truck_id}", response_model=ApiResponse[dict])
async def delete_truck(
    truck_id: int,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a truck. Refused while any UPCOMING or RUNNING trip uses it."""
    truck = ownership_guard.enforce(await db.get(TruckOwnerTruck, truck_id), truck_owner.id, "Truck")
    await ensure_no_active_trips(db, "Truck", Trip.truck_id, truck.id)

    truck_no = truck.truck_no
    await db.delete(truck)
    await db.commit()

    logger.info("Truck %s (%s) deleted by truck owner %s", truck_id, truck_no, truck_owner.id)
    await _audit(db, AuditAction.TRUCK_DELETED, current_user, truck_id=truck_id, truck_no=truck_no)
    return ApiResponse(data={"id": truck_id}, message="Truck deleted successfully")


# Drivers

@router.get("/drivers", response_model=ApiResponse[List[DriverResponse]])
async def list_drivers(
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's drivers, newest first."""
    result = await db.execute(
        select(TruckOwnerDriver)
        .where(TruckOwnerDriver.truck_owner_id == truck_owner.id)
        .order_by(TruckOwnerDriver.created_at.desc(), TruckOwnerDriver.id.desc())
    )
    drivers = result.scalars().all()
    return ApiResponse(data=[DriverResponse.model_validate(driver) for driver in drivers])


@router.post("/drivers", response_model=ApiResponse[DriverResponse], status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a driver.

    If an approved DRIVER account with the same email exists and is not
    linked yet, the new record is linked to it.
    """
    driver = TruckOwnerDriver(truck_owner_id=truck_owner.id, **driver_data.model_dump())

    account = await find_driver_account(db, driver_data.email)
    if account:
        already_linked = (await db.execute(
            select(TruckOwnerDriver.id).where(TruckOwnerDriver.user_id == account.id)
        )).first()
        if not already_linked:
            driver.user_id = account.id

    db.add(driver)
    await db.commit()
    await db.refresh(driver)

    logger.info("Driver %s created by truck owner %s (linked user=%s)", driver.id, truck_owner.id, driver.user_id)
    await _audit(db, AuditAction.DRIVER_CREATED, current_user, driver_id=driver.id, user_id=driver.user_id)

    return ApiResponse(data=DriverResponse.model_validate(driver), message="Driver created successfully")


@router.put("/drivers/{driver_id}", response_model=ApiResponse[DriverResponse])
async def update_driver(
    driver_id: int,
    driver_data: DriverUpdate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update driver details (owner only)."""
    driver = ownership_guard.enforce(await db.get(TruckOwnerDriver, driver_id), truck_owner.id, "Driver")

    changes = driver_data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is not None:
            setattr(driver, field, value)

    await db.commit()
    await db.refresh(driver)

    await _audit(db, AuditAction.DRIVER_UPDATED, current_user, driver_id=driver.id, fields=sorted(changes))
    return ApiResponse(data=DriverResponse.model_validate(driver), message="Driver updated successfully")


@router.put("/drivers/{driver_id}/status", response_model=ApiResponse[DriverResponse])
async def update_driver_status(
    driver_id: int,
    body: DriverStatusUpdate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Mark a driver AVAILABLE or UNAVAILABLE.

    A driver already on a trip keeps it; only new dispatches look at this status.
    """
    driver = ownership_guard.enforce(await db.get(TruckOwnerDriver, driver_id), truck_owner.id, "Driver")

    previous = driver.status
    driver.status = body.status
    driver.status_reason = body.reason
    await db.commit()
    await db.refresh(driver)

    await _audit(
        db, AuditAction.DRIVER_UPDATED, current_user,
        driver_id=driver.id, status_from=previous.value, status_to=body.status.value, reason=body.reason
    )
    return ApiResponse(data=DriverResponse.model_validate(driver), message="Driver status updated")


@router.delete("/drivers/{driver_id}", response_model=ApiResponse[dict])
async def delete_driver(
    driver_id: int,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a driver. Refused while any UPCOMING or RUNNING trip uses them."""
    driver = ownership_guard.enforce(await db.get(TruckOwnerDriver, driver_id), truck_owner.id, "Driver")
    await ensure_no_active_trips(db, "Driver", Trip.driver_id, driver.id)

    await db.delete(driver)
    await db.commit()

    logger.info("Driver %s deleted by truck owner %s", driver_id, truck_owner.id)
    await _audit(db, AuditAction.DRIVER_DELETED, current_user, driver_id=driver_id)
    return ApiResponse(data={"id": driver_id}, message="Driver deleted successfully")


# Orders

@router.get("/orders", response_model=ApiResponse[List[OrderResponse]])
async def list_assigned_orders(
    order_status: Optional[str] = Query(
        None, alias="status", description="Comma-separated statuses (RUNNING = IN_PROGRESS)"
    ),
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    db: AsyncSession = Depends(get_db)
):
    """List orders assigned to the caller, newest first."""
    query = select(Order).where(Order.assigned_truck_owner_id == truck_owner.id)

    statuses = {parse_order_status(raw) for raw in _split_statuses(order_status)}
    if statuses:
        query = query.where(Order.status.in_(statuses))

    result = await db.execute(query.order_by(Order.order_date.desc(), Order.id))
    orders = result.scalars().all()
    return ApiResponse(data=[OrderResponse.model_validate(order) for order in orders])


@router.put("/orders/{order_id}/status", response_model=ApiResponse[OrderResponse])
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Change the status of an order assigned to the caller.

    Once the order has a trip, only COMPLETED and CANCELLED are accepted and
    they are applied to the trip.
    """
    order = await DispatchService.change_order_status(
        db, order_id, body.status, current_user, truck_owner_id=truck_owner.id
    )
    return ApiResponse(data=OrderResponse.model_validate(order), message="Order status updated")


# Trips

@router.get("/trips", response_model=ApiResponse[List[TripResponse]])
async def list_trips(
    trip_status: Optional[str] = Query(None, alias="status", description="Comma-separated trip statuses"),
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    db: AsyncSession = Depends(get_db)
):
    """List the caller's trips, newest first."""
    query = select(Trip).where(Trip.truck_owner_id == truck_owner.id)

    statuses = {parse_trip_status(raw) for raw in _split_statuses(trip_status)}
    if statuses:
        query = query.where(Trip.status.in_(statuses))

    result = await db.execute(query.order_by(Trip.created_at.desc(), Trip.id.desc()))
    trips = result.scalars().all()
    return ApiResponse(data=[TripResponse.model_validate(trip) for trip in trips])


@router.post("/trips", response_model=ApiResponse[TripResponse], status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Dispatch an assigned order as a trip.

    Binds one driver and one truck; the order moves to IN_PROGRESS in the
    same transaction.
    """
    trip = await DispatchService.assign_trip(
        db,
        truck_owner_id=truck_owner.id,
        order_id=trip_data.order_id,
        driver_id=trip_data.driver_id,
        truck_id=trip_data.truck_id,
        actor=current_user,
        from_location=trip_data.from_location,
        to_location=trip_data.to_location,
        cargo=trip_data.cargo,
        estimated_delivery_date=trip_data.estimated_delivery_date,
        special_instructions=trip_data.special_instructions,
        status=trip_data.status,
    )
    return ApiResponse(data=TripResponse.model_validate(trip), message="Trip created successfully")


@router.put("/trips/{trip_id}/status", response_model=ApiResponse[TripDetailResponse])
async def update_trip_status(
    trip_id: int,
    body: TripStatusUpdate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Move one of the caller's trips through its lifecycle."""
    trip = await DispatchService.change_trip_status(
        db, trip_id, body.status, current_user, truck_owner_id=truck_owner.id
    )
    order = await db.get(Order, trip.order_id)
    detail = TripDetailResponse(**TripResponse.model_validate(trip).model_dump(), order_status=order.status)
    return ApiResponse(data=detail, message="Trip status updated")


# Profile

@router.get("/profile", response_model=ApiResponse[TruckOwnerProfile])
async def get_profile(truck_owner: TruckOwner = Depends(get_current_truck_owner)):
    """The caller's acting labour profile."""
    return ApiResponse(data=TruckOwnerProfile.model_validate(truck_owner))


@router.put("/profile", response_model=ApiResponse[TruckOwnerProfile])
async def update_profile(
    profile_data: TruckOwnerProfileUpdate,
    truck_owner: TruckOwner = Depends(get_current_truck_owner),
    db: AsyncSession = Depends(get_db)
):
    """Update the caller's profile. Only contact fields and experience can change."""
    for field, value in profile_data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(truck_owner, field, value)

    await db.commit()
    await db.refresh(truck_owner)
    return ApiResponse(data=TruckOwnerProfile.model_validate(truck_owner), message="Profile updated successfully")
