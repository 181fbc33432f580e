"""
Account provisioning.

Creates the role profiles an approved account needs. This is the only place
Manufacturer and TruckOwner rows are created; nothing is created lazily on
first use.
"""

import logging
from typing import Any, Dict, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.enums import AccountStatus, UserRole
from haulhub.app.models.fleet_enums import LabourType
from haulhub.app.models.manufacturer import Manufacturer
from haulhub.app.models.truck_owner import TruckOwner
from haulhub.app.models.user import User

logger = logging.getLogger(__name__)


async def provision_account(db: AsyncSession, user: User) -> Dict[str, Any]:
    """
    Create missing role profiles for a user. Idempotent; does not commit.

    - MANUFACTURER: Manufacturer profile (company name falls back to username)
    - TRUCK_OWNER / AGENT: acting labour profile with the matching labour type
    - DRIVER: links an unlinked driver record registered with the same email

    Returns:
        Summary of the profile ids the user now has
    """
    summary: Dict[str, Any] = {}

    if user.has_role(UserRole.MANUFACTURER):
        result = await db.execute(select(Manufacturer).where(Manufacturer.user_id == user.id))
        manufacturer = result.scalar_one_or_none()
        if not manufacturer:
            manufacturer = Manufacturer(
                user_id=user.id,
                company_name=user.company_name or user.username,
            )
            db.add(manufacturer)
            await db.flush()
            logger.info("Provisioned manufacturer %s for user %s", manufacturer.id, user.id)
        summary["manufacturer_id"] = manufacturer.id

    if user.has_role(UserRole.TRUCK_OWNER) or user.has_role(UserRole.AGENT):
        result = await db.execute(select(TruckOwner).where(TruckOwner.user_id == user.id))
        truck_owner = result.scalar_one_or_none()
        if not truck_owner:
            labour_type = LabourType.TRUCK_OWNER if user.has_role(UserRole.TRUCK_OWNER) else LabourType.AGENT
            truck_owner = TruckOwner(
                user_id=user.id,
                labour_type=labour_type,
                name=user.username,
                phone=user.phone,
                email=user.email,
            )
            db.add(truck_owner)
            await db.flush()
            logger.info("Provisioned %s profile %s for user %s", labour_type.value, truck_owner.id, user.id)
        summary["truck_owner_id"] = truck_owner.id

    if user.has_role(UserRole.DRIVER):
        driver = await link_driver_account(db, user)
        summary["driver_id"] = driver.id if driver else None

    return summary


async def link_driver_account(db: AsyncSession, user: User) -> Optional[TruckOwnerDriver]:
    """
    Link a DRIVER account to the driver record its truck owner registered.

    Matching is by email (case-insensitive). A record already linked to the
    user is returned as is.
    """
    result = await db.execute(select(TruckOwnerDriver).where(TruckOwnerDriver.user_id == user.id))
    driver = result.scalar_one_or_none()
    if driver:
        return driver

    result = await db.execute(
        select(TruckOwnerDriver)
        .where(
            func.lower(TruckOwnerDriver.email) == user.email.lower(),
            TruckOwnerDriver.user_id.is_(None)
        )
        .order_by(TruckOwnerDriver.id)
        .limit(1)
    )
    driver = result.scalar_one_or_none()
    if driver:
        driver.user_id = user.id
        await db.flush()
        logger.info("Linked driver record %s to user %s", driver.id, user.id)
    return driver


async def find_driver_account(db: AsyncSession, email: Optional[str]) -> Optional[User]:
    """Approved DRIVER account registered with this email, if any."""
    if not email:
        return None

    result = await db.execute(
        select(User).where(
            func.lower(User.email) == email.lower(),
            User.account_status == AccountStatus.APPROVED
        ).order_by(User.id)
    )
    # Older accounts may differ only in email case; the earliest driver wins
    for user in result.scalars():
        if user.has_role(UserRole.DRIVER):
            return user
    return None
