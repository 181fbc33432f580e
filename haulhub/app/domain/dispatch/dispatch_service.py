"""
Dispatch Service (Domain Logic).

Turns orders into trips and owns every order/trip status change.
Each operation runs in a single transaction: either all of its writes
are committed or none are.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from haulhub.app.core.exceptions import (
    DomainValidationError,
    InvalidStatusTransitionError,
    ResourceBusyError,
    ResourceNotFoundError,
)
from haulhub.app.domain.lifecycle.transitions import (
    ACTIVE_TRIP_STATUSES,
    ASSIGNABLE_ORDER_STATUSES,
    TERMINAL_TRIP_STATUSES,
    check_order_transition,
    check_trip_transition,
    derive_order_status,
    normalize_order_status,
    trip_target_for_order_target,
)
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.fleet_enums import DriverStatus, TruckStatus
from haulhub.app.models.order import Order
from haulhub.app.models.trip import Trip
from haulhub.app.models.trip_enums import OrderStatus, TripStatus
from haulhub.app.models.truck import TruckOwnerTruck
from haulhub.app.models.truck_owner import TruckOwner
from haulhub.app.services.audit import log_event, AuditAction
from haulhub.app.services.resource_guards import claim_driver, claim_truck, release_claims

logger = logging.getLogger(__name__)


def parse_order_status(value: Any) -> OrderStatus:
    """Parse a raw order status (RUNNING accepted as IN_PROGRESS)."""
    raw = normalize_order_status(value)
    try:
        return OrderStatus(raw)
    except ValueError:
        raise DomainValidationError(
            f"Invalid order status: {value}",
            details={"allowed": [s.value for s in OrderStatus] + ["RUNNING"]}
        )


def parse_trip_status(value: Any) -> TripStatus:
    """Parse a raw trip status."""
    if isinstance(value, TripStatus):
        return value
    try:
        return TripStatus(str(value).strip().upper())
    except ValueError:
        raise DomainValidationError(
            f"Invalid trip status: {value}",
            details={"allowed": [s.value for s in TripStatus]}
        )


class DispatchService:

    @staticmethod
    def _ensure_driver_ready(driver: TruckOwnerDriver) -> None:
        if driver.status != DriverStatus.AVAILABLE:
            raise ResourceBusyError("Driver", driver.id, f"status is {driver.status.value}")
        if driver.current_trip_id is not None:
            raise ResourceBusyError("Driver", driver.id, f"already assigned to trip {driver.current_trip_id}")

    @staticmethod
    def _ensure_truck_ready(truck: TruckOwnerTruck) -> None:
        if truck.status != TruckStatus.ACTIVE:
            raise ResourceBusyError("Truck", truck.id, f"status is {truck.status.value}")
        if truck.current_trip_id is not None:
            raise ResourceBusyError("Truck", truck.id, f"already assigned to trip {truck.current_trip_id}")

    @staticmethod
    async def _move_order_to_in_progress(db: AsyncSession, order_id: str) -> None:
        """Conditional move, so one order cannot be dispatched twice."""
        result = await db.execute(
            update(Order)
            .where(Order.id == order_id, Order.status.in_(ASSIGNABLE_ORDER_STATUSES))
            .values(status=OrderStatus.IN_PROGRESS)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidStatusTransitionError(
                "Order", "dispatched", OrderStatus.IN_PROGRESS.value,
                reason="the order was dispatched by another request"
            )

    @staticmethod
    async def _live_trip_for_order(db: AsyncSession, order_id: str) -> Optional[Trip]:
        result = await db.execute(
            select(Trip)
            .where(Trip.order_id == order_id, Trip.status.in_(ACTIVE_TRIP_STATUSES))
            .order_by(Trip.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def assign_trip(
        db: AsyncSession,
        truck_owner_id: int,
        order_id: str,
        driver_id: int,
        truck_id: int,
        actor: Dict[str, Any],
        from_location: Optional[str] = None,
        to_location: Optional[str] = None,
        cargo: Optional[str] = None,
        estimated_delivery_date: Optional[datetime] = None,
        special_instructions: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Trip:
        """
        Dispatch an order as a trip with one driver and one truck.

        Flow:
        1. Order is assigned to the caller and still dispatchable
        2. Driver belongs to the caller and is AVAILABLE
        3. Truck belongs to the caller and is ACTIVE
        4. Insert Trip (UPCOMING), claim driver and truck, move order to IN_PROGRESS
        5. Commit; any failure rolls every write back

        Args:
            db: Database session
            truck_owner_id: Acting labour profile of the caller
            order_id: Order to dispatch
            driver_id: Driver to bind
            truck_id: Truck to bind
            actor: Authenticated user payload (for the audit trail)
            status: Optional initial status; only UPCOMING is accepted

        Returns:
            Created Trip

        Raises:
            ResourceNotFoundError: order/driver/truck missing or not the caller's
            InvalidStatusTransitionError: order can no longer be dispatched
            ResourceBusyError: driver or truck not ready, or claimed concurrently
        """
        if status is not None and str(status).strip().upper() != TripStatus.UPCOMING.value:
            raise DomainValidationError(
                f"A new trip must start as {TripStatus.UPCOMING.value}",
                details={"status": status}
            )

        order_result = await db.execute(
            select(Order).where(
                Order.id == order_id,
                Order.assigned_truck_owner_id == truck_owner_id
            )
        )
        order = order_result.scalar_one_or_none()
        if not order:
            raise ResourceNotFoundError("Order", order_id, message="Order not found or not assigned to you")

        if order.status not in ASSIGNABLE_ORDER_STATUSES:
            raise InvalidStatusTransitionError(
                "Order", order.status.value, OrderStatus.IN_PROGRESS.value,
                reason="only PENDING, CONFIRMED or ASSIGNED orders can be dispatched"
            )

        driver_result = await db.execute(
            select(TruckOwnerDriver).where(
                TruckOwnerDriver.id == driver_id,
                TruckOwnerDriver.truck_owner_id == truck_owner_id
            )
        )
        driver = driver_result.scalar_one_or_none()
        if not driver:
            raise ResourceNotFoundError("Driver", driver_id, message="Driver not found or access denied")
        DispatchService._ensure_driver_ready(driver)

        truck_result = await db.execute(
            select(TruckOwnerTruck).where(
                TruckOwnerTruck.id == truck_id,
                TruckOwnerTruck.truck_owner_id == truck_owner_id
            )
        )
        truck = truck_result.scalar_one_or_none()
        if not truck:
            raise ResourceNotFoundError("Truck", truck_id, message="Truck not found or access denied")
        DispatchService._ensure_truck_ready(truck)

        if cargo is None and order.items:
            cargo = ", ".join(f"{item.product_name} x{item.quantity}" for item in order.items)

        trip = Trip(
            order_id=order.id,
            truck_owner_id=truck_owner_id,
            driver_id=driver.id,
            truck_id=truck.id,
            from_location=from_location,
            to_location=to_location or order.delivery_address,
            cargo=cargo,
            special_instructions=special_instructions,
            estimated_delivery_date=estimated_delivery_date,
            status=TripStatus.UPCOMING,
        )

        try:
            db.add(trip)
            await db.flush()  # Get trip ID for the claims

            if not await claim_driver(db, driver.id, trip.id):
                raise ResourceBusyError("Driver", driver.id, "claimed by another trip")
            if not await claim_truck(db, truck.id, trip.id):
                raise ResourceBusyError("Truck", truck.id, "claimed by another trip")

            await DispatchService._move_order_to_in_progress(db, order.id)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.info("Dispatch of order %s rolled back", order_id)
            raise

        await db.refresh(trip)
        await db.refresh(order, attribute_names=["status", "updated_at"])
        logger.info(
            "Order %s dispatched as trip %s (driver=%s, truck=%s)",
            order_id, trip.id, driver_id, truck_id
        )

        await log_event(
            db,
            AuditAction.TRIP_CREATED,
            actor_id=actor.get("user_id"),
            actor_username=actor.get("sub"),
            metadata={
                "trip_id": trip.id,
                "order_id": order_id,
                "driver_id": driver_id,
                "truck_id": truck_id,
            }
        )
        return trip

    @staticmethod
    async def _apply_trip_transition(db: AsyncSession, trip: Trip, target: TripStatus) -> Order:
        """Move a trip and re-derive its order. Does not commit."""
        check_trip_transition(trip.status, target)

        now = datetime.now(timezone.utc)
        trip.status = target
        if target == TripStatus.RUNNING:
            trip.started_at = now
        elif target == TripStatus.COMPLETED:
            trip.actual_delivery_date = now

        if target in TERMINAL_TRIP_STATUSES:
            await release_claims(db, trip)

        order = await db.get(Order, trip.order_id)
        order.status = derive_order_status(target)
        return order

    @staticmethod
    async def change_trip_status(
        db: AsyncSession,
        trip_id: int,
        target: Any,
        actor: Dict[str, Any],
        truck_owner_id: Optional[int] = None,
        driver_id: Optional[int] = None,
    ) -> Trip:
        """
        Move a trip through its lifecycle.

        The trip is looked up within the caller's scope (truck owner or driver).
        A terminal status frees the driver and truck; the order status is
        re-derived in the same transaction.
        """
        target_status = parse_trip_status(target)

        stmt = select(Trip).where(Trip.id == trip_id).with_for_update()
        if truck_owner_id is not None:
            stmt = stmt.where(Trip.truck_owner_id == truck_owner_id)
        if driver_id is not None:
            stmt = stmt.where(Trip.driver_id == driver_id)

        trip = (await db.execute(stmt)).scalar_one_or_none()
        if not trip:
            raise ResourceNotFoundError("Trip", trip_id, message="Trip not found or access denied")

        previous = trip.status
        try:
            order = await DispatchService._apply_trip_transition(db, trip, target_status)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(trip)
        logger.info(
            "Trip %s moved %s -> %s; order %s is %s",
            trip.id, previous.value, target_status.value, order.id, order.status.value
        )

        await log_event(
            db,
            AuditAction.TRIP_STATUS_CHANGED,
            actor_id=actor.get("user_id"),
            actor_username=actor.get("sub"),
            metadata={
                "trip_id": trip.id,
                "order_id": order.id,
                "from": previous.value,
                "to": target_status.value,
            }
        )
        return trip

    @staticmethod
    async def change_order_status(
        db: AsyncSession,
        order_id: str,
        target: Any,
        actor: Dict[str, Any],
        truck_owner_id: Optional[int] = None,
    ) -> Order:
        """
        Change an order's status.

        Before dispatch the order table is updated directly. Once a live trip
        exists the request is carried out on the trip (COMPLETED or CANCELLED
        only) and the order status follows from it.

        Args:
            db: Database session
            order_id: Order to change
            target: Requested status (RUNNING accepted as IN_PROGRESS)
            actor: Authenticated user payload
            truck_owner_id: Restrict to orders assigned to this truck owner

        Returns:
            Updated Order
        """
        target_status = parse_order_status(target)

        stmt = select(Order).where(Order.id == order_id).with_for_update()
        if truck_owner_id is not None:
            stmt = stmt.where(Order.assigned_truck_owner_id == truck_owner_id)

        order = (await db.execute(stmt)).scalar_one_or_none()
        if not order:
            message = "Order not found or not assigned to you" if truck_owner_id is not None else None
            raise ResourceNotFoundError("Order", order_id, message=message)

        previous = order.status
        trip = await DispatchService._live_trip_for_order(db, order.id)

        try:
            if trip is not None:
                trip_target = trip_target_for_order_target(trip.status, target_status)
                await DispatchService._apply_trip_transition(db, trip, trip_target)
            else:
                check_order_transition(order.status, target_status)
                if target_status == OrderStatus.ASSIGNED and order.assigned_truck_owner_id is None:
                    raise DomainValidationError("Order has no truck owner assigned")
                order.status = target_status
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        await db.refresh(order, attribute_names=["status", "updated_at"])
        logger.info("Order %s moved %s -> %s", order.id, previous.value, order.status.value)

        await log_event(
            db,
            AuditAction.ORDER_STATUS_CHANGED,
            actor_id=actor.get("user_id"),
            actor_username=actor.get("sub"),
            metadata={
                "order_id": order.id,
                "from": previous.value,
                "to": order.status.value,
                "trip_id": trip.id if trip is not None else None,
            }
        )
        return order

    @staticmethod
    async def assign_order_to_truck_owner(
        db: AsyncSession,
        order_id: str,
        truck_owner_id: int,
        actor: Dict[str, Any],
    ) -> Order:
        """
        Hand an order to a truck owner (super admin).

        PENDING and CONFIRMED orders move to ASSIGNED; an ASSIGNED order
        without a trip can be handed to a different truck owner.
        """
        order = await db.get(Order, order_id)
        if not order:
            raise ResourceNotFoundError("Order", order_id)

        truck_owner = await db.get(TruckOwner, truck_owner_id)
        if not truck_owner:
            raise ResourceNotFoundError("Truck owner", truck_owner_id)

        previous_owner = order.assigned_truck_owner_id
        if order.status != OrderStatus.ASSIGNED:
            check_order_transition(order.status, OrderStatus.ASSIGNED)

        # Conditional, so an order dispatched since it was read keeps its owner
        result = await db.execute(
            update(Order)
            .where(Order.id == order.id, Order.status.in_(ASSIGNABLE_ORDER_STATUSES))
            .values(assigned_truck_owner_id=truck_owner.id, status=OrderStatus.ASSIGNED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            raise InvalidStatusTransitionError(
                "Order", "dispatched", OrderStatus.ASSIGNED.value,
                reason="the order was dispatched by another request"
            )
        await db.commit()
        await db.refresh(order, attribute_names=["status", "assigned_truck_owner_id", "updated_at"])

        logger.info("Order %s assigned to truck owner %s", order.id, truck_owner.id)

        await log_event(
            db,
            AuditAction.ORDER_ASSIGNED,
            actor_id=actor.get("user_id"),
            actor_username=actor.get("sub"),
            target_user_id=truck_owner.user_id,
            metadata={
                "order_id": order.id,
                "truck_owner_id": truck_owner.id,
                "previous_truck_owner_id": previous_owner,
            }
        )
        return order
