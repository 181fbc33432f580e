"""
Security guards for role-based and ownership-based access control.

Provides dependencies that resolve the acting profile (truck owner,
manufacturer, driver) of the authenticated user.
"""

from typing import Any, List, Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from haulhub.app.core.dependencies import get_current_user
from haulhub.app.core.exceptions import ResourceNotFoundError
from haulhub.app.db.session import get_db
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.enums import UserRole
from haulhub.app.models.manufacturer import Manufacturer
from haulhub.app.models.truck_owner import TruckOwner

FLEET_ROLES = [UserRole.TRUCK_OWNER, UserRole.AGENT]


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/admin/users")
        async def list_users(current_user: dict = Depends(require_role([UserRole.SUPER_ADMIN]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates the active roles

    Raises:
        HTTPException 403 if none of the active roles is in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        active_roles = current_user.get("roles") or []

        if not active_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing"
            )

        if not any(role.value in active_roles for role in allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


require_super_admin = require_role([UserRole.SUPER_ADMIN])


async def get_current_truck_owner(
    current_user: dict = Depends(require_role(FLEET_ROLES)),
    x_employee_id: Optional[int] = Header(None, alias="X-Employee-Id"),
    db: AsyncSession = Depends(get_db)
) -> TruckOwner:
    """
    Resolve the acting labour profile of a TRUCK_OWNER / AGENT user.

    X-Employee-Id is optional; when sent it must name the caller's own
    profile.
    """
    result = await db.execute(
        select(TruckOwner).where(TruckOwner.user_id == current_user["user_id"])
    )
    truck_owner = result.scalar_one_or_none()

    if not truck_owner:
        raise ResourceNotFoundError(
            "TruckOwner",
            message="Truck owner profile not found. The account has not been provisioned."
        )

    if x_employee_id is not None and x_employee_id != truck_owner.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="X-Employee-Id does not match the authenticated truck owner"
        )

    return truck_owner


async def get_current_manufacturer(
    current_user: dict = Depends(require_role([UserRole.MANUFACTURER])),
    db: AsyncSession = Depends(get_db)
) -> Manufacturer:
    """Resolve the Manufacturer profile of a MANUFACTURER user."""
    result = await db.execute(
        select(Manufacturer).where(Manufacturer.user_id == current_user["user_id"])
    )
    manufacturer = result.scalar_one_or_none()

    if not manufacturer:
        raise ResourceNotFoundError(
            "Manufacturer",
            message="Manufacturer profile not found. The account has not been provisioned."
        )

    return manufacturer


async def get_current_driver(
    current_user: dict = Depends(require_role([UserRole.DRIVER])),
    db: AsyncSession = Depends(get_db)
) -> TruckOwnerDriver:
    """Resolve the driver record linked to a DRIVER user."""
    result = await db.execute(
        select(TruckOwnerDriver).where(TruckOwnerDriver.user_id == current_user["user_id"])
    )
    driver = result.scalar_one_or_none()

    if not driver:
        raise ResourceNotFoundError(
            "Driver",
            message="No driver record is linked to this account"
        )

    return driver


class OwnershipGuard:
    """
    Ownership guard for multi-tenant access.

    A resource owned by someone else is reported exactly like a missing one,
    so callers cannot probe for other owners' ids.

    Usage:
        ownership_guard = OwnershipGuard()

        truck = await db.get(TruckOwnerTruck, truck_id)
        ownership_guard.enforce(truck, truck_owner.id, "Truck")
    """

    def enforce(
        self,
        resource: Any,
        owner_id: int,
        resource_name: str = "Resource",
        owner_attr: str = "truck_owner_id"
    ):
        """
        Raise ResourceNotFoundError unless resource exists and belongs to owner_id.

        Args:
            resource: Loaded ORM row or None
            owner_id: Id of the acting owner
            resource_name: Name of resource for error message
            owner_attr: Attribute on the resource holding its owner id
        """
        if resource is None or getattr(resource, owner_attr) != owner_id:
            raise ResourceNotFoundError(
                resource_name,
                message=f"{resource_name} not found or access denied"
            )
        return resource
