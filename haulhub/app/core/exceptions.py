"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers. Every error
leaves the API in the same envelope:

    {"success": false, "message": ..., "error_code": ..., "details": {...}}
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None, message: str = None):
        if message is None:
            message = f"{resource} not found"
            if resource_id is not None:
                message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class AccountNotApprovedError(AppException):
    """Raised when an account has not been approved (or was suspended)."""

    def __init__(self, account_status: str):
        super().__init__(
            message=f"Account is not approved (status: {account_status})",
            error_code="ERR_AUTH_003",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"account_status": account_status}
        )


class DomainValidationError(AppException):
    """Raised when a business rule rejects the request payload."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class DuplicateResourceError(AppException):
    """Raised when a unique business key already exists."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class ResourceBusyError(AppException):
    """Raised when a driver or truck cannot take on a trip."""

    def __init__(self, resource: str, resource_id: Any, reason: str):
        super().__init__(
            message=f"{resource} {resource_id} is not available: {reason}",
            error_code="ERR_CONFLICT_002",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "id": resource_id, "reason": reason}
        )


class ResourceInUseError(AppException):
    """Raised when deleting a resource that active trips still reference."""

    def __init__(self, resource: str, resource_id: Any, active_trips: int):
        super().__init__(
            message=f"Cannot delete {resource.lower()} with active trips",
            error_code="ERR_CONFLICT_003",
            status_code=status.HTTP_409_CONFLICT,
            details={"resource": resource, "id": resource_id, "active_trips": active_trips}
        )


class InvalidStatusTransitionError(AppException):
    """Raised when a status change is not in the allowed-transitions table."""

    def __init__(self, entity: str, current: str, target: str, reason: str = None):
        message = f"{entity} cannot move from {current} to {target}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            error_code="ERR_STATE_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"entity": entity, "current": current, "target": target}
        )


# Global Exception Handlers

def _envelope(message: str, error_code: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": False,
        "message": message,
        "error_code": error_code,
        "details": details
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.message, exc.error_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(_envelope(exc.message, exc.error_code, exc.details))
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(exc.detail, error_code, {}),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(_envelope("Validation error", "ERR_VALIDATION", {"errors": exc.errors()}))
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions. Internal detail stays in the log."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope("An internal server error occurred", "ERR_INTERNAL_SERVER", {})
    )
