"""
Unit tests for the order and trip status tables.
"""

import pytest
from haulhub.app.core.exceptions import InvalidStatusTransitionError
from haulhub.app.domain.lifecycle.transitions import (
    ORDER_TRANSITIONS,
    TRIP_TRANSITIONS,
    check_order_transition,
    check_trip_transition,
    delivery_status_for,
    derive_order_status,
    normalize_order_status,
    trip_target_for_order_target,
)
from haulhub.app.models.trip_enums import OrderStatus, TripStatus


def test_every_status_has_a_row():
    assert set(ORDER_TRANSITIONS) == set(OrderStatus)
    assert set(TRIP_TRANSITIONS) == set(TripStatus)


@pytest.mark.parametrize("current,target", [
    (OrderStatus.PENDING, OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderStatus.ASSIGNED),
    (OrderStatus.CONFIRMED, OrderStatus.ASSIGNED),
    (OrderStatus.ASSIGNED, OrderStatus.CANCELLED),
    (OrderStatus.IN_PROGRESS, OrderStatus.COMPLETED),
    (OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED),
])
def test_allowed_order_transitions(current, target):
    check_order_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (OrderStatus.COMPLETED, OrderStatus.CANCELLED),
    (OrderStatus.CANCELLED, OrderStatus.PENDING),
    (OrderStatus.IN_PROGRESS, OrderStatus.PENDING),
    (OrderStatus.ASSIGNED, OrderStatus.CONFIRMED),
    (OrderStatus.PENDING, OrderStatus.COMPLETED),
])
def test_rejected_order_transitions(current, target):
    with pytest.raises(InvalidStatusTransitionError) as exc_info:
        check_order_transition(current, target)
    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"entity": "Order", "current": current.value, "target": target.value}


def test_in_progress_only_through_assignment():
    with pytest.raises(InvalidStatusTransitionError, match="only when a trip is created"):
        check_order_transition(OrderStatus.PENDING, OrderStatus.IN_PROGRESS)

    check_order_transition(OrderStatus.PENDING, OrderStatus.IN_PROGRESS, via_assignment=True)


@pytest.mark.parametrize("current,target", [
    (TripStatus.UPCOMING, TripStatus.RUNNING),
    (TripStatus.UPCOMING, TripStatus.CANCELLED),
    (TripStatus.RUNNING, TripStatus.COMPLETED),
    (TripStatus.RUNNING, TripStatus.CANCELLED),
])
def test_allowed_trip_transitions(current, target):
    check_trip_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (TripStatus.UPCOMING, TripStatus.COMPLETED),
    (TripStatus.RUNNING, TripStatus.UPCOMING),
    (TripStatus.COMPLETED, TripStatus.RUNNING),
    (TripStatus.CANCELLED, TripStatus.UPCOMING),
])
def test_rejected_trip_transitions(current, target):
    with pytest.raises(InvalidStatusTransitionError):
        check_trip_transition(current, target)


def test_order_status_follows_trip():
    assert derive_order_status(TripStatus.UPCOMING) == OrderStatus.IN_PROGRESS
    assert derive_order_status(TripStatus.RUNNING) == OrderStatus.IN_PROGRESS
    assert derive_order_status(TripStatus.COMPLETED) == OrderStatus.COMPLETED
    assert derive_order_status(TripStatus.CANCELLED) == OrderStatus.CANCELLED


def test_order_requests_on_dispatched_order_map_to_trip():
    assert trip_target_for_order_target(TripStatus.RUNNING, OrderStatus.COMPLETED) == TripStatus.COMPLETED
    assert trip_target_for_order_target(TripStatus.UPCOMING, OrderStatus.CANCELLED) == TripStatus.CANCELLED

    with pytest.raises(InvalidStatusTransitionError, match="trip is UPCOMING"):
        trip_target_for_order_target(TripStatus.UPCOMING, OrderStatus.PENDING)


def test_running_is_an_alias_for_in_progress():
    assert normalize_order_status("running") == "IN_PROGRESS"
    assert normalize_order_status(" Completed ") == "COMPLETED"
    assert normalize_order_status(OrderStatus.ASSIGNED) == "ASSIGNED"


def test_delivery_labels():
    assert delivery_status_for(OrderStatus.IN_PROGRESS, TripStatus.UPCOMING) == "Pending"
    assert delivery_status_for(OrderStatus.IN_PROGRESS, TripStatus.RUNNING) == "In Transit"
    assert delivery_status_for(OrderStatus.COMPLETED, TripStatus.COMPLETED) == "Completed"
    assert delivery_status_for(OrderStatus.CANCELLED) == "Cancelled"
    assert delivery_status_for(OrderStatus.CONFIRMED) == "Pending"
