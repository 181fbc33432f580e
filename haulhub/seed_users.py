"""
Database seeding script for initial users.

Creates the bootstrap SUPER_ADMIN (accounts cannot register as super admin)
and, with --demo, an approved manufacturer and truck owner with a small
fleet and one assigned order.
Run this script after database is set up but before first use.
"""

import argparse
import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from haulhub.app.db.session import AsyncSessionLocal, engine, Base
from haulhub.app.models.user import User
from haulhub.app.models.audit_log import AuditLog
from haulhub.app.models.manufacturer import Manufacturer
from haulhub.app.models.manufacturer_product import ManufacturerProduct
from haulhub.app.models.truck_owner import TruckOwner
from haulhub.app.models.truck import TruckOwnerTruck
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.order import Order
from haulhub.app.models.order_item import OrderItem
from haulhub.app.models.trip import Trip
from haulhub.app.models.enums import AccountStatus, UserRole
from haulhub.app.models.trip_enums import OrderStatus
from haulhub.app.core.security import get_password_hash
from haulhub.app.services.provisioning import provision_account
from sqlalchemy import select


async def _get_or_create_user(db, username, email, password, roles, **extra):
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user:
        print(f"ℹ️  {username} already exists, skipping")
        return user, False

    user = User(
        email=email,
        username=username,
        hashed_password=get_password_hash(password),
        roles=[role.value for role in roles],
        account_status=AccountStatus.APPROVED,
        **extra
    )
    db.add(user)
    await db.flush()
    print(f"✅ Created {'/'.join(user.roles)} user (username: {username}, password: {password})")
    return user, True


async def seed_demo(db):
    """Approved manufacturer + truck owner, two trucks, two drivers and an assigned order."""
    maker, _ = await _get_or_create_user(
        db, "acme", "acme@haulhub.dev", "acme123", [UserRole.MANUFACTURER], company_name="Acme Cement"
    )
    owner, owner_created = await _get_or_create_user(
        db, "fleetco", "fleetco@haulhub.dev", "fleetco123", [UserRole.TRUCK_OWNER]
    )

    maker_profiles = await provision_account(db, maker)
    owner_profiles = await provision_account(db, owner)
    if not owner_created:
        return

    db.add(ManufacturerProduct(
        manufacturer_id=maker_profiles["manufacturer_id"],
        name="Portland Cement 50kg",
        category="Cement",
        price=Decimal("420.00"),
        payment_options=["UPI", "COD"],
    ))

    truck_owner_id = owner_profiles["truck_owner_id"]
    db.add_all([
        TruckOwnerTruck(truck_owner_id=truck_owner_id, truck_no="TN01AB1234", capacity="10 Tons"),
        TruckOwnerTruck(truck_owner_id=truck_owner_id, truck_no="KA05MN7788", capacity="16 Tons"),
        TruckOwnerDriver(truck_owner_id=truck_owner_id, name="Ravi", phone="9876543210"),
        TruckOwnerDriver(truck_owner_id=truck_owner_id, name="Kumar", phone="9876500000"),
    ])

    db.add(Order(
        id="ORD-DEMO-1",
        status=OrderStatus.ASSIGNED,
        manufacturer_id=maker_profiles["manufacturer_id"],
        assigned_truck_owner_id=truck_owner_id,
        delivery_address="12 Harbour Rd, Chennai",
        total_amount=Decimal("21000.00"),
    ))
    await db.flush()
    db.add(OrderItem(order_id="ORD-DEMO-1", product_name="Portland Cement 50kg", quantity=50, unit_price=Decimal("420.00")))
    print("✅ Created demo fleet (2 trucks, 2 drivers) and order ORD-DEMO-1")


async def seed_users(demo: bool = False):
    """
    Seed the bootstrap super admin.

    Creates:
    - 1 SUPER_ADMIN user
    - with demo: manufacturer, truck owner, fleet and one order
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting user seeding...")

        await _get_or_create_user(
            db, "admin", "admin@haulhub.dev", "admin123", [UserRole.SUPER_ADMIN], is_superuser=True
        )
        if demo:
            await seed_demo(db)

        await db.commit()

    await engine.dispose()
    print("\n🎉 Seeding completed successfully!")
    print("\nNote: other accounts register via POST /api/auth/register and wait for approval")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed HaulHub users")
    parser.add_argument("--demo", action="store_true", help="Also create demo catalog, fleet and order")
    args = parser.parse_args()
    asyncio.run(seed_users(demo=args.demo))
