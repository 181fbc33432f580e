"""
Admin API Endpoints.

Super admin account approval, order oversight and the audit trail.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from haulhub.app.db.session import get_db
from haulhub.app.models.user import User
from haulhub.app.models.order import Order
from haulhub.app.models.enums import AccountStatus
from haulhub.app.schemas.admin import (
    AccountActionRequest, AccountActionResult, AssignTruckOwnerRequest,
    AuditTrailResponse, AuditLogResponse
)
from haulhub.app.schemas.auth import UserResponse
from haulhub.app.schemas.common import ApiResponse, Page
from haulhub.app.schemas.trip import OrderResponse, OrderStatusUpdate
from haulhub.app.core.exceptions import DomainValidationError, InsufficientPermissionsError, ResourceNotFoundError
from haulhub.app.core.guards import require_super_admin
from haulhub.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from haulhub.app.domain.dispatch.dispatch_service import DispatchService, parse_order_status
from haulhub.app.services.audit import log_admin_action, AuditAction, get_audit_trail
from haulhub.app.services.provisioning import provision_account

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _get_target_user(db: AsyncSession, user_id: int, admin: dict) -> User:
    target_user = await db.get(User, user_id)
    if not target_user:
        raise ResourceNotFoundError("User", user_id)

    if target_user.id == admin["user_id"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own account status"
        )
    return target_user


async def _change_account_status(
    db: AsyncSession,
    target_user: User,
    admin: dict,
    new_status: AccountStatus,
    allowed_from: tuple,
    action: str,
    request: AccountActionRequest,
    provision: bool = False,
) -> AccountActionResult:
    if target_user.account_status not in allowed_from:
        raise DomainValidationError(
            f"User is {target_user.account_status.value}; cannot apply {action}",
            details={"account_status": target_user.account_status.value}
        )

    provisioned = {}
    target_user.account_status = new_status
    if provision:
        provisioned = await provision_account(db, target_user)
    await db.commit()
    await db.refresh(target_user)

    logger.info("Account %s set to %s by %s", target_user.id, new_status.value, admin["sub"])

    metadata = {"reason": request.reason} if request.reason else {}
    if provisioned:
        metadata["provisioned"] = provisioned

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin["user_id"],
        admin_username=admin["sub"],
        action=action,
        target_user_id=target_user.id,
        target_username=target_user.username,
        metadata=metadata or None
    )

    return AccountActionResult(
        user=UserResponse.model_validate(target_user),
        action=action,
        audit_log_id=audit_log.id,
        provisioned=provisioned
    )


@router.get("/users", response_model=ApiResponse[Page[UserResponse]])
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    account_status: Optional[AccountStatus] = Query(None, alias="status", description="Filter by account status"),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List all users in the system (super admin only).

    Returns a paginated user list, newest first.
    """
    count_query = select(func.count(User.id))
    query = select(User)
    if account_status is not None:
        count_query = count_query.where(User.account_status == account_status)
        query = query.where(User.account_status == account_status)

    total = (await db.execute(count_query)).scalar()

    offset = (page - 1) * page_size
    query = query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(page_size)
    users = (await db.execute(query)).scalars().all()

    return ApiResponse(data=Page(
        items=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size
    ))


@router.post("/users/{user_id}/approve", response_model=ApiResponse[AccountActionResult])
async def approve_user(
    user_id: int,
    request: AccountActionRequest = AccountActionRequest(),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve a pending (or previously rejected) account.

    Provisions the role profiles the account needs in the same transaction.
    """
    target_user = await _get_target_user(db, user_id, admin)
    result = await _change_account_status(
        db, target_user, admin,
        new_status=AccountStatus.APPROVED,
        allowed_from=(AccountStatus.PENDING, AccountStatus.REJECTED),
        action=AuditAction.USER_APPROVED,
        request=request,
        provision=True,
    )
    return ApiResponse(data=result, message=f"User '{target_user.username}' has been approved")


@router.post("/users/{user_id}/reject", response_model=ApiResponse[AccountActionResult])
async def reject_user(
    user_id: int,
    request: AccountActionRequest = AccountActionRequest(),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Reject a pending account."""
    target_user = await _get_target_user(db, user_id, admin)
    result = await _change_account_status(
        db, target_user, admin,
        new_status=AccountStatus.REJECTED,
        allowed_from=(AccountStatus.PENDING,),
        action=AuditAction.USER_REJECTED,
        request=request,
    )
    return ApiResponse(data=result, message=f"User '{target_user.username}' has been rejected")


@router.post("/users/{user_id}/suspend", response_model=ApiResponse[AccountActionResult])
async def suspend_user(
    user_id: int,
    request: AccountActionRequest = AccountActionRequest(),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Suspend an approved account and revoke all its active tokens.

    This immediately terminates all user sessions.
    """
    target_user = await _get_target_user(db, user_id, admin)
    if target_user.is_superuser:
        raise InsufficientPermissionsError("Cannot suspend another super admin")

    result = await _change_account_status(
        db, target_user, admin,
        new_status=AccountStatus.SUSPENDED,
        allowed_from=(AccountStatus.APPROVED,),
        action=AuditAction.USER_SUSPENDED,
        request=request,
    )
    await revoke_all_user_tokens(user_id)
    return ApiResponse(data=result, message=f"User '{target_user.username}' has been suspended")


@router.post("/users/{user_id}/reinstate", response_model=ApiResponse[AccountActionResult])
async def reinstate_user(
    user_id: int,
    request: AccountActionRequest = AccountActionRequest(),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Reinstate a suspended account. The user can log in again."""
    target_user = await _get_target_user(db, user_id, admin)
    result = await _change_account_status(
        db, target_user, admin,
        new_status=AccountStatus.APPROVED,
        allowed_from=(AccountStatus.SUSPENDED,),
        action=AuditAction.USER_REINSTATED,
        request=request,
    )
    await clear_user_token_revocation(user_id)
    return ApiResponse(data=result, message=f"User '{target_user.username}' has been reinstated")


@router.get("/orders", response_model=ApiResponse[Page[OrderResponse]])
async def list_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    order_status: Optional[str] = Query(None, alias="status", description="Filter by order status"),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """List every order (super admin only), newest first."""
    count_query = select(func.count(Order.id))
    query = select(Order)
    if order_status:
        parsed = parse_order_status(order_status)
        count_query = count_query.where(Order.status == parsed)
        query = query.where(Order.status == parsed)

    total = (await db.execute(count_query)).scalar()
    offset = (page - 1) * page_size
    orders = (await db.execute(
        query.order_by(Order.order_date.desc(), Order.id).offset(offset).limit(page_size)
    )).scalars().all()

    return ApiResponse(data=Page(
        items=[OrderResponse.model_validate(order) for order in orders],
        total=total,
        page=page,
        page_size=page_size
    ))


@router.put("/orders/{order_id}/assign-truck-owner", response_model=ApiResponse[OrderResponse])
async def assign_truck_owner(
    order_id: str,
    body: AssignTruckOwnerRequest,
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Hand an order to a truck owner; the order becomes ASSIGNED."""
    order = await DispatchService.assign_order_to_truck_owner(db, order_id, body.truck_owner_id, admin)
    return ApiResponse(data=OrderResponse.model_validate(order), message="Order assigned to truck owner")


@router.put("/orders/{order_id}/status", response_model=ApiResponse[OrderResponse])
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """Change any order's status through the order lifecycle."""
    order = await DispatchService.change_order_status(db, order_id, body.status, admin)
    return ApiResponse(data=OrderResponse.model_validate(order), message="Order status updated")


@router.get("/audit-logs", response_model=ApiResponse[AuditTrailResponse])
async def get_audit_logs(
    user_id: int = Query(None, description="Filter by target user ID"),
    action: str = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    admin: dict = Depends(require_super_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get audit trail with optional filtering (super admin only).

    Returns recent audit logs for compliance and support.
    """
    logs = await get_audit_trail(
        db=db,
        target_user_id=user_id,
        action=action,
        limit=limit
    )

    return ApiResponse(data=AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    ))
