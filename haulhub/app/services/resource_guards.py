"""
Driver and truck claim handling for trip dispatch.

A driver or truck is held by at most one non-terminal trip at a time. The
hold is recorded in current_trip_id and taken with a conditional UPDATE, so
two concurrent dispatches for the same resource cannot both succeed.
"""

import logging
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from haulhub.app.core.exceptions import ResourceInUseError
from haulhub.app.domain.lifecycle.transitions import ACTIVE_TRIP_STATUSES
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.fleet_enums import DriverStatus, TruckStatus
from haulhub.app.models.trip import Trip
from haulhub.app.models.truck import TruckOwnerTruck

logger = logging.getLogger(__name__)


async def count_active_trips(db: AsyncSession, trip_column, resource_id: int) -> int:
    """
    Count UPCOMING or RUNNING trips referencing a resource.

    Args:
        db: Database session
        trip_column: Trip column holding the reference (Trip.driver_id, Trip.truck_id)
        resource_id: Referenced resource id

    Returns:
        Number of active trips
    """
    result = await db.execute(
        select(func.count(Trip.id)).where(
            trip_column == resource_id,
            Trip.status.in_(ACTIVE_TRIP_STATUSES)
        )
    )
    return result.scalar() or 0


async def ensure_no_active_trips(db: AsyncSession, resource: str, trip_column, resource_id: int) -> None:
    """
    Delete guard shared by trucks and drivers.

    Raises:
        ResourceInUseError: if any UPCOMING or RUNNING trip references the resource
    """
    active = await count_active_trips(db, trip_column, resource_id)
    if active:
        logger.info("Refusing to delete %s %s: %d active trip(s)", resource, resource_id, active)
        raise ResourceInUseError(resource, resource_id, active)


async def claim_driver(db: AsyncSession, driver_id: int, trip_id: int) -> bool:
    """
    Take the driver for a trip if it is AVAILABLE and unclaimed.

    Returns:
        True if the claim was taken, False if another trip holds the driver
    """
    result = await db.execute(
        update(TruckOwnerDriver)
        .where(
            TruckOwnerDriver.id == driver_id,
            TruckOwnerDriver.status == DriverStatus.AVAILABLE,
            TruckOwnerDriver.current_trip_id.is_(None)
        )
        .values(current_trip_id=trip_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def claim_truck(db: AsyncSession, truck_id: int, trip_id: int) -> bool:
    """
    Take the truck for a trip if it is ACTIVE and unclaimed.

    Returns:
        True if the claim was taken, False if another trip holds the truck
    """
    result = await db.execute(
        update(TruckOwnerTruck)
        .where(
            TruckOwnerTruck.id == truck_id,
            TruckOwnerTruck.status == TruckStatus.ACTIVE,
            TruckOwnerTruck.current_trip_id.is_(None)
        )
        .values(current_trip_id=trip_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def release_claims(db: AsyncSession, trip: Trip) -> None:
    """Drop the driver and truck holds taken by a trip. Does not commit."""
    if trip.driver_id is not None:
        await db.execute(
            update(TruckOwnerDriver)
            .where(TruckOwnerDriver.id == trip.driver_id, TruckOwnerDriver.current_trip_id == trip.id)
            .values(current_trip_id=None)
            .execution_options(synchronize_session=False)
        )
    if trip.truck_id is not None:
        await db.execute(
            update(TruckOwnerTruck)
            .where(TruckOwnerTruck.id == trip.truck_id, TruckOwnerTruck.current_trip_id == trip.id)
            .values(current_trip_id=None)
            .execution_options(synchronize_session=False)
        )
