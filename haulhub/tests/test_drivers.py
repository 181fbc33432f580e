"""
Driver self-service tests.
"""

import pytest

from haulhub.app.domain.dispatch.dispatch_service import DispatchService
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.order import Order
from haulhub.app.models.trip_enums import OrderStatus
from haulhub.tests.helpers import auth_headers, create_driver, load


@pytest.fixture
async def driver_login(session_factory, make_user, fleet):
    """A DRIVER account linked to a driver record with one upcoming trip."""
    account = await make_user("driver_kumar", ["DRIVER"])
    driver = await create_driver(session_factory, fleet.truck_owner.id, name="Kumar", user_id=account.id)

    async with session_factory() as session:
        trip = await DispatchService.assign_trip(
            session, fleet.truck_owner.id, fleet.order_id, driver.id, fleet.truck.id, fleet.actor
        )
    return account, driver, trip


@pytest.mark.asyncio
async def test_deliveries_show_pending_label(client, driver_login):
    account, driver, trip = driver_login

    response = await client.get("/api/drivers/me/deliveries", headers=auth_headers(account))

    assert response.status_code == 200
    deliveries = response.json()["data"]
    assert len(deliveries) == 1
    assert deliveries[0]["tripId"] == trip.id
    assert deliveries[0]["orderStatus"] == "IN_PROGRESS"
    assert deliveries[0]["deliveryStatus"] == "Pending"
    assert deliveries[0]["truckNo"] == "TN01AB1234"
    assert deliveries[0]["totalAmount"] == 2500.0


@pytest.mark.asyncio
async def test_driver_runs_trip_to_completion(client, session_factory, driver_login):
    account, driver, trip = driver_login
    headers = auth_headers(account)
    url = f"/api/drivers/me/trips/{trip.id}/status"

    started = await client.put(url, json={"status": "running"}, headers=headers)
    assert started.status_code == 200
    assert started.json()["data"]["status"] == "RUNNING"
    assert started.json()["data"]["orderStatus"] == "IN_PROGRESS"

    deliveries = await client.get("/api/drivers/me/deliveries", headers=headers)
    assert deliveries.json()["data"][0]["deliveryStatus"] == "In Transit"

    finished = await client.put(url, json={"status": "COMPLETED"}, headers=headers)
    assert finished.status_code == 200
    assert finished.json()["data"]["orderStatus"] == "COMPLETED"

    assert (await load(session_factory, Order, trip.order_id)).status == OrderStatus.COMPLETED
    assert (await load(session_factory, TruckOwnerDriver, driver.id)).current_trip_id is None


@pytest.mark.asyncio
async def test_driver_cannot_cancel(client, driver_login):
    account, driver, trip = driver_login

    response = await client.put(
        f"/api/drivers/me/trips/{trip.id}/status", json={"status": "CANCELLED"}, headers=auth_headers(account)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_driver_cannot_touch_someone_elses_trip(client, make_user, session_factory, fleet, driver_login):
    _, _, trip = driver_login
    other = await make_user("driver_other", ["DRIVER"])
    await create_driver(session_factory, fleet.truck_owner.id, name="Other", user_id=other.id)

    response = await client.put(
        f"/api/drivers/me/trips/{trip.id}/status", json={"status": "RUNNING"}, headers=auth_headers(other)
    )

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unlinked_driver_account(client, make_user):
    account = await make_user("driver_unlinked", ["DRIVER"])

    response = await client.get("/api/drivers/me/deliveries", headers=auth_headers(account))

    assert response.status_code == 404
