"""
Test data helpers shared by the test modules.
"""

from decimal import Decimal
from haulhub.app.core.jwt import create_access_token, token_claims
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.fleet_enums import DriverStatus, LabourType, TruckStatus
from haulhub.app.models.order import Order
from haulhub.app.models.order_item import OrderItem
from haulhub.app.models.trip_enums import OrderStatus
from haulhub.app.models.truck import TruckOwnerTruck
from haulhub.app.models.truck_owner import TruckOwner
from haulhub.app.models.user import User

TEST_PASSWORD = "secret123"


def auth_headers(user: User, roles=None) -> dict:
    """Bearer header for a user; roles narrows X-User-Roles when given."""
    token = create_access_token(data=token_claims(user))
    headers = {"Authorization": f"Bearer {token}"}
    if roles:
        headers["X-User-Roles"] = ",".join(roles)
    return headers


def actor_for(user: User) -> dict:
    """Authenticated-user payload as produced by get_current_user."""
    return token_claims(user)


async def create_truck_owner(session_factory, user: User, labour_type=LabourType.TRUCK_OWNER) -> TruckOwner:
    async with session_factory() as session:
        truck_owner = TruckOwner(user_id=user.id, labour_type=labour_type, name=user.username, email=user.email)
        session.add(truck_owner)
        await session.commit()
        await session.refresh(truck_owner)
        return truck_owner


async def create_driver(session_factory, truck_owner_id, name="D1", status=DriverStatus.AVAILABLE, **extra):
    async with session_factory() as session:
        driver = TruckOwnerDriver(
            truck_owner_id=truck_owner_id, name=name, phone="9000000001", status=status, **extra
        )
        session.add(driver)
        await session.commit()
        await session.refresh(driver)
        return driver


async def create_truck(session_factory, truck_owner_id, truck_no="TN01AB1234", status=TruckStatus.ACTIVE):
    async with session_factory() as session:
        truck = TruckOwnerTruck(truck_owner_id=truck_owner_id, truck_no=truck_no, capacity="10 Tons", status=status)
        session.add(truck)
        await session.commit()
        await session.refresh(truck)
        return truck


async def create_order(session_factory, order_id, truck_owner_id=None, status=OrderStatus.PENDING, address="12 Harbour Rd, Chennai"):
    async with session_factory() as session:
        order = Order(
            id=order_id,
            status=status,
            assigned_truck_owner_id=truck_owner_id,
            delivery_address=address,
            total_amount=Decimal("2500.00"),
        )
        session.add(order)
        await session.flush()
        session.add(OrderItem(order_id=order_id, product_name="Cement bags", quantity=50, unit_price=Decimal("50.00")))
        await session.commit()
        return order_id


async def load(session_factory, model, pk):
    """Read a row in a fresh session, bypassing any identity map."""
    async with session_factory() as session:
        return await session.get(model, pk)


