"""
Dispatch Tests.

Order-to-trip assignment: the happy path, readiness rules, rollback on
failure and the conditional claims that stop double dispatch.
"""

import pytest
from sqlalchemy import select, func

from haulhub.app.core.exceptions import (
    DomainValidationError,
    InvalidStatusTransitionError,
    ResourceBusyError,
    ResourceNotFoundError,
)
from haulhub.app.domain.dispatch.dispatch_service import DispatchService
from haulhub.app.models.audit_log import AuditLog
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.fleet_enums import DriverStatus, TruckStatus
from haulhub.app.models.order import Order
from haulhub.app.models.trip import Trip
from haulhub.app.models.trip_enums import OrderStatus, TripStatus
from haulhub.app.models.truck import TruckOwnerTruck
from haulhub.app.services.resource_guards import claim_driver
from haulhub.tests.helpers import create_driver, create_order, create_truck, create_truck_owner, load


async def _dispatch(session_factory, fleet, order_id="ORD-1", driver_id=None, truck_id=None, **kwargs):
    async with session_factory() as session:
        return await DispatchService.assign_trip(
            session,
            fleet.truck_owner.id,
            order_id,
            driver_id or fleet.driver.id,
            truck_id or fleet.truck.id,
            fleet.actor,
            **kwargs
        )


async def _trip_count(session_factory, order_id):
    async with session_factory() as session:
        result = await session.execute(select(func.count(Trip.id)).where(Trip.order_id == order_id))
        return result.scalar()


@pytest.mark.asyncio
async def test_assign_trip_creates_upcoming_trip_and_claims(session_factory, fleet):
    """Dispatch binds driver and truck and moves the order to IN_PROGRESS."""
    trip = await _dispatch(session_factory, fleet)

    assert trip.status == TripStatus.UPCOMING
    assert trip.driver_id == fleet.driver.id
    assert trip.truck_id == fleet.truck.id
    assert trip.to_location == "12 Harbour Rd, Chennai"
    assert trip.cargo == "Cement bags x50"

    order = await load(session_factory, Order, "ORD-1")
    driver = await load(session_factory, TruckOwnerDriver, fleet.driver.id)
    truck = await load(session_factory, TruckOwnerTruck, fleet.truck.id)
    assert order.status == OrderStatus.IN_PROGRESS
    assert driver.current_trip_id == trip.id
    assert truck.current_trip_id == trip.id

    async with session_factory() as session:
        actions = (await session.execute(select(AuditLog.action))).scalars().all()
    assert "TRIP_CREATED" in actions


@pytest.mark.asyncio
async def test_assign_trip_over_http(client, fleet):
    response = await client.post(
        "/api/truck-owners/trips",
        json={"orderId": "ORD-1", "driverId": fleet.driver.id, "truckId": fleet.truck.id, "fromLocation": "Plant 3"},
        headers=fleet.headers
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "UPCOMING"
    assert body["data"]["orderId"] == "ORD-1"
    assert body["data"]["fromLocation"] == "Plant 3"

    orders = await client.get("/api/truck-owners/orders", params={"status": "RUNNING"}, headers=fleet.headers)
    assert [o["id"] for o in orders.json()["data"]] == ["ORD-1"]
    assert orders.json()["data"][0]["status"] == "IN_PROGRESS"


@pytest.mark.asyncio
async def test_assign_trip_failures_over_http(client, session_factory, fleet):
    busy_driver = await create_driver(session_factory, fleet.truck_owner.id, name="Off", status=DriverStatus.UNAVAILABLE)
    await create_order(session_factory, "ORD-X")

    busy = await client.post(
        "/api/truck-owners/trips",
        json={"orderId": "ORD-1", "driverId": busy_driver.id, "truckId": fleet.truck.id},
        headers=fleet.headers
    )
    assert busy.status_code == 409
    assert busy.json()["success"] is False
    assert busy.json()["error_code"] == "ERR_CONFLICT_002"

    foreign = await client.post(
        "/api/truck-owners/trips",
        json={"orderId": "ORD-X", "driverId": fleet.driver.id, "truckId": fleet.truck.id},
        headers=fleet.headers
    )
    assert foreign.status_code == 404
    assert foreign.json()["success"] is False
    assert foreign.json()["message"] == "Order not found or not assigned to you"

    assert await _trip_count(session_factory, "ORD-1") == 0


@pytest.mark.asyncio
async def test_initial_status_other_than_upcoming_rejected(session_factory, fleet):
    with pytest.raises(DomainValidationError):
        await _dispatch(session_factory, fleet, status="RUNNING")

    assert await _trip_count(session_factory, "ORD-1") == 0


@pytest.mark.asyncio
async def test_unavailable_driver_blocks_dispatch(session_factory, fleet):
    """A driver that is not AVAILABLE cannot be dispatched; nothing changes."""
    driver = await create_driver(session_factory, fleet.truck_owner.id, name="D2", status=DriverStatus.UNAVAILABLE)

    with pytest.raises(ResourceBusyError) as exc_info:
        await _dispatch(session_factory, fleet, driver_id=driver.id)
    assert exc_info.value.details["resource"] == "Driver"

    assert await _trip_count(session_factory, "ORD-1") == 0
    assert (await load(session_factory, Order, "ORD-1")).status == OrderStatus.PENDING
    assert (await load(session_factory, TruckOwnerTruck, fleet.truck.id)).current_trip_id is None


@pytest.mark.asyncio
async def test_truck_in_maintenance_blocks_dispatch(session_factory, fleet):
    truck = await create_truck(session_factory, fleet.truck_owner.id, truck_no="KA05MN7788", status=TruckStatus.MAINTENANCE)

    with pytest.raises(ResourceBusyError) as exc_info:
        await _dispatch(session_factory, fleet, truck_id=truck.id)
    assert exc_info.value.status_code == 409
    assert exc_info.value.details["resource"] == "Truck"

    assert await _trip_count(session_factory, "ORD-1") == 0
    assert (await load(session_factory, TruckOwnerDriver, fleet.driver.id)).current_trip_id is None


@pytest.mark.asyncio
async def test_order_of_another_owner_is_not_found(session_factory, fleet):
    await create_order(session_factory, "ORD-X")

    with pytest.raises(ResourceNotFoundError, match="not assigned to you"):
        await _dispatch(session_factory, fleet, order_id="ORD-X")


@pytest.mark.asyncio
async def test_driver_of_another_owner_is_not_found(session_factory, fleet, make_user):
    other_user = await make_user("owner_two", ["TRUCK_OWNER"])
    other_owner = await create_truck_owner(session_factory, other_user)
    foreign_driver = await create_driver(session_factory, other_owner.id, name="Other")

    with pytest.raises(ResourceNotFoundError, match="Driver not found or access denied"):
        await _dispatch(session_factory, fleet, driver_id=foreign_driver.id)


@pytest.mark.asyncio
async def test_order_cannot_be_dispatched_twice(session_factory, fleet):
    await _dispatch(session_factory, fleet)
    driver = await create_driver(session_factory, fleet.truck_owner.id, name="D2")
    truck = await create_truck(session_factory, fleet.truck_owner.id, truck_no="KA05MN7788")

    with pytest.raises(InvalidStatusTransitionError):
        await _dispatch(session_factory, fleet, driver_id=driver.id, truck_id=truck.id)

    assert await _trip_count(session_factory, "ORD-1") == 1


@pytest.mark.asyncio
async def test_failure_mid_dispatch_rolls_everything_back(session_factory, fleet, mocker):
    """If the order update fails, the trip and both claims disappear with it."""
    mocker.patch.object(
        DispatchService,
        "_move_order_to_in_progress",
        new=mocker.AsyncMock(side_effect=RuntimeError("database went away"))
    )

    with pytest.raises(RuntimeError):
        await _dispatch(session_factory, fleet)

    assert await _trip_count(session_factory, "ORD-1") == 0
    assert (await load(session_factory, Order, "ORD-1")).status == OrderStatus.PENDING
    assert (await load(session_factory, TruckOwnerDriver, fleet.driver.id)).current_trip_id is None
    assert (await load(session_factory, TruckOwnerTruck, fleet.truck.id)).current_trip_id is None


@pytest.mark.asyncio
async def test_claim_is_taken_once(session_factory, fleet):
    async with session_factory() as session:
        assert await claim_driver(session, fleet.driver.id, 101) is True
        assert await claim_driver(session, fleet.driver.id, 102) is False
        await session.commit()

    assert (await load(session_factory, TruckOwnerDriver, fleet.driver.id)).current_trip_id == 101


@pytest.mark.asyncio
async def test_stale_read_still_loses_the_claim(session_factory, fleet, mocker):
    """
    Two dispatches that both saw the driver as free: the second one loses
    at the conditional claim and leaves no trace.
    """
    await create_order(session_factory, "ORD-2", truck_owner_id=fleet.truck_owner.id)
    second_truck = await create_truck(session_factory, fleet.truck_owner.id, truck_no="KA05MN7788")

    first = await _dispatch(session_factory, fleet)

    # The second request read the driver before the first one committed
    mocker.patch.object(DispatchService, "_ensure_driver_ready")

    with pytest.raises(ResourceBusyError, match="claimed by another trip"):
        await _dispatch(session_factory, fleet, order_id="ORD-2", truck_id=second_truck.id)

    assert await _trip_count(session_factory, "ORD-2") == 0
    assert (await load(session_factory, Order, "ORD-2")).status == OrderStatus.PENDING
    assert (await load(session_factory, TruckOwnerTruck, second_truck.id)).current_trip_id is None
    assert (await load(session_factory, TruckOwnerDriver, fleet.driver.id)).current_trip_id == first.id


@pytest.mark.asyncio
async def test_trip_lifecycle_drives_order_status(session_factory, fleet):
    trip = await _dispatch(session_factory, fleet)

    async with session_factory() as session:
        running = await DispatchService.change_trip_status(
            session, trip.id, "running", fleet.actor, truck_owner_id=fleet.truck_owner.id
        )
    assert running.status == TripStatus.RUNNING
    assert running.started_at is not None
    assert (await load(session_factory, Order, "ORD-1")).status == OrderStatus.IN_PROGRESS

    async with session_factory() as session:
        done = await DispatchService.change_trip_status(
            session, trip.id, TripStatus.COMPLETED, fleet.actor, truck_owner_id=fleet.truck_owner.id
        )
    assert done.actual_delivery_date is not None
    assert (await load(session_factory, Order, "ORD-1")).status == OrderStatus.COMPLETED
    assert (await load(session_factory, TruckOwnerDriver, fleet.driver.id)).current_trip_id is None
    assert (await load(session_factory, TruckOwnerTruck, fleet.truck.id)).current_trip_id is None


@pytest.mark.asyncio
async def test_trip_cannot_skip_running(session_factory, fleet):
    trip = await _dispatch(session_factory, fleet)

    with pytest.raises(InvalidStatusTransitionError):
        async with session_factory() as session:
            await DispatchService.change_trip_status(session, trip.id, "COMPLETED", fleet.actor)

    assert (await load(session_factory, Trip, trip.id)).status == TripStatus.UPCOMING


@pytest.mark.asyncio
async def test_cancelling_dispatched_order_cancels_trip(client, session_factory, fleet):
    trip = await _dispatch(session_factory, fleet)

    response = await client.put(
        "/api/truck-owners/orders/ORD-1/status", json={"status": "cancelled"}, headers=fleet.headers
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "CANCELLED"
    assert (await load(session_factory, Trip, trip.id)).status == TripStatus.CANCELLED
    assert (await load(session_factory, TruckOwnerDriver, fleet.driver.id)).current_trip_id is None


@pytest.mark.asyncio
async def test_in_progress_cannot_be_set_directly(client, fleet):
    response = await client.put(
        "/api/truck-owners/orders/ORD-1/status", json={"status": "RUNNING"}, headers=fleet.headers
    )

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_STATE_001"


@pytest.mark.asyncio
async def test_unknown_order_status_is_rejected(client, fleet):
    response = await client.put(
        "/api/truck-owners/orders/ORD-1/status", json={"status": "SHIPPED"}, headers=fleet.headers
    )

    assert response.status_code == 400
    assert "RUNNING" in response.json()["details"]["allowed"]
