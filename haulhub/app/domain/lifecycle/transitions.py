"""
Order and Trip status lifecycle.

Allowed-transition tables for both entities, the derivation of an order's
status from its trip, and the driver-facing delivery labels.

Once an order has a trip, the trip status is authoritative and the order
status is always derived from it (see derive_order_status).
"""

from typing import Dict, FrozenSet, Optional
from haulhub.app.core.exceptions import InvalidStatusTransitionError
from haulhub.app.models.trip_enums import OrderStatus, TripStatus


ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.CONFIRMED, OrderStatus.ASSIGNED, OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED,
    }),
    OrderStatus.CONFIRMED: frozenset({
        OrderStatus.ASSIGNED, OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED,
    }),
    OrderStatus.ASSIGNED: frozenset({OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROGRESS: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TRIP_TRANSITIONS: Dict[TripStatus, FrozenSet[TripStatus]] = {
    TripStatus.UPCOMING: frozenset({TripStatus.RUNNING, TripStatus.CANCELLED}),
    TripStatus.RUNNING: frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED}),
    TripStatus.COMPLETED: frozenset(),
    TripStatus.CANCELLED: frozenset(),
}

# Orders a truck owner may still dispatch as a trip
ASSIGNABLE_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.ASSIGNED})

# Trips that hold their driver and truck
ACTIVE_TRIP_STATUSES = frozenset({TripStatus.UPCOMING, TripStatus.RUNNING})

TERMINAL_TRIP_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})

# IN_PROGRESS means "a trip exists"; only trip assignment may enter it
ASSIGNMENT_ONLY_ORDER_STATUSES = frozenset({OrderStatus.IN_PROGRESS})

_ORDER_STATUS_FROM_TRIP = {
    TripStatus.UPCOMING: OrderStatus.IN_PROGRESS,
    TripStatus.RUNNING: OrderStatus.IN_PROGRESS,
    TripStatus.COMPLETED: OrderStatus.COMPLETED,
    TripStatus.CANCELLED: OrderStatus.CANCELLED,
}

# An order-status request on a dispatched order is carried out on its trip
_TRIP_TARGET_FOR_ORDER_TARGET = {
    OrderStatus.COMPLETED: TripStatus.COMPLETED,
    OrderStatus.CANCELLED: TripStatus.CANCELLED,
}

ORDER_STATUS_ALIASES = {"RUNNING": OrderStatus.IN_PROGRESS.value}


class DeliveryStatus:
    """Labels shown to drivers for their deliveries."""
    PENDING = "Pending"
    IN_TRANSIT = "In Transit"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


_DELIVERY_FOR_TRIP = {
    TripStatus.UPCOMING: DeliveryStatus.PENDING,
    TripStatus.RUNNING: DeliveryStatus.IN_TRANSIT,
    TripStatus.COMPLETED: DeliveryStatus.COMPLETED,
    TripStatus.CANCELLED: DeliveryStatus.CANCELLED,
}

_DELIVERY_FOR_ORDER = {
    OrderStatus.PENDING: DeliveryStatus.PENDING,
    OrderStatus.CONFIRMED: DeliveryStatus.PENDING,
    OrderStatus.ASSIGNED: DeliveryStatus.PENDING,
    OrderStatus.IN_PROGRESS: DeliveryStatus.IN_TRANSIT,
    OrderStatus.COMPLETED: DeliveryStatus.COMPLETED,
    OrderStatus.CANCELLED: DeliveryStatus.CANCELLED,
}


def normalize_order_status(value) -> str:
    """Upper-case a raw order status and resolve the RUNNING alias."""
    if isinstance(value, OrderStatus):
        return value.value
    raw = str(value).strip().upper()
    return ORDER_STATUS_ALIASES.get(raw, raw)


def check_order_transition(current: OrderStatus, target: OrderStatus, via_assignment: bool = False) -> None:
    """
    Validate an order status change against ORDER_TRANSITIONS.

    Raises:
        InvalidStatusTransitionError: if the change is not allowed
    """
    if target not in ORDER_TRANSITIONS[current]:
        raise InvalidStatusTransitionError("Order", current.value, target.value)

    if target in ASSIGNMENT_ONLY_ORDER_STATUSES and not via_assignment:
        raise InvalidStatusTransitionError(
            "Order", current.value, target.value,
            reason="an order enters IN_PROGRESS only when a trip is created for it"
        )


def check_trip_transition(current: TripStatus, target: TripStatus) -> None:
    """
    Validate a trip status change against TRIP_TRANSITIONS.

    Raises:
        InvalidStatusTransitionError: if the change is not allowed
    """
    if target not in TRIP_TRANSITIONS[current]:
        raise InvalidStatusTransitionError("Trip", current.value, target.value)


def derive_order_status(trip_status: TripStatus) -> OrderStatus:
    """Order status implied by the status of its trip."""
    return _ORDER_STATUS_FROM_TRIP[trip_status]


def trip_target_for_order_target(current_trip: TripStatus, order_target: OrderStatus) -> TripStatus:
    """
    Translate an order-status request into the trip transition that carries it out.

    Raises:
        InvalidStatusTransitionError: if the order target has no trip equivalent
    """
    trip_target = _TRIP_TARGET_FOR_ORDER_TARGET.get(order_target)
    if trip_target is None:
        raise InvalidStatusTransitionError(
            "Order", derive_order_status(current_trip).value, order_target.value,
            reason=f"the order is dispatched and its trip is {current_trip.value}"
        )
    return trip_target


def delivery_status_for(order_status: OrderStatus, trip_status: Optional[TripStatus] = None) -> str:
    """Driver-facing label; the trip wins when there is one."""
    if trip_status is not None:
        return _DELIVERY_FOR_TRIP[trip_status]
    return _DELIVERY_FOR_ORDER[order_status]
