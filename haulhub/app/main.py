"""
FastAPI Application Entry Point.

This is the main application file for the HaulHub Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from haulhub.app.core.config import settings
from haulhub.app.api.v1.router import router as api_v1_router
from haulhub.app.core.observability import ObservabilityMiddleware, setup_logging
from haulhub.app.core.redis_client import close_redis, ping_redis
from haulhub.app.db.session import engine, Base
from haulhub.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
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

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Creates database tables on startup; releases the database and Redis
    pools on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")
    yield
    await engine.dispose()
    await close_redis()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Logistics marketplace backend: catalog, fleet management and trip dispatch",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router under the public /api prefix
app.include_router(api_v1_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to HaulHub Backend API",
        "docs": "/docs",
        "health": "/health",
    }
