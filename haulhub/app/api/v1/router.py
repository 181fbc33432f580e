"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from haulhub.app.api.v1.endpoints import (
    auth, admin, truck_owner, manufacturer_products, drivers
)

router = APIRouter()

# Authentication endpoints
router.include_router(auth.router)

# Super admin: accounts, orders, audit trail
router.include_router(admin.router)

# Truck owners / agents: fleet, orders, trips, profile
router.include_router(truck_owner.router)

# Manufacturer catalog
router.include_router(manufacturer_products.router)

# Driver self-service
router.include_router(drivers.router)
