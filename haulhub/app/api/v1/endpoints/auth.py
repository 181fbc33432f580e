"""
Authentication API endpoints.

Provides register, login, and user info endpoints.
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select, or_
from haulhub.app.db.session import get_db
from haulhub.app.models.user import User
from haulhub.app.models.enums import AccountStatus
from haulhub.app.models.driver import TruckOwnerDriver
from haulhub.app.models.manufacturer import Manufacturer
from haulhub.app.models.truck_owner import TruckOwner
from haulhub.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse, MeResponse
from haulhub.app.schemas.common import ApiResponse
from haulhub.app.core.exceptions import AccountNotApprovedError, AuthenticationError, DuplicateResourceError
from haulhub.app.core.security import get_password_hash, verify_password
from haulhub.app.core.jwt import create_access_token, token_claims
from haulhub.app.core.dependencies import get_current_user, security
from haulhub.app.core.token_revocation import revoke_token
from haulhub.app.services.audit import log_auth_event, log_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_ip(request: Request):
    return request.client.host if request.client else None


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new account.

    Rules:
    - SUPER_ADMIN cannot be registered via API (rejected by the schema).
    - The account starts PENDING; no token is issued until a super admin
      approves it.
    """
    result = await db.execute(
        select(User).where(
            or_(User.username == user_data.username, func.lower(User.email) == user_data.email)
        )
    )
    existing_user = result.scalars().first()

    if existing_user:
        field = "username" if existing_user.username == user_data.username else "email"
        raise DuplicateResourceError(
            f"{field.capitalize()} already registered",
            details={"field": field}
        )

    new_user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        phone=user_data.phone,
        company_name=user_data.company_name,
        roles=[role.value for role in user_data.roles],
        account_status=AccountStatus.PENDING,
        is_superuser=False
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    await log_event(
        db,
        AuditAction.USER_REGISTERED,
        actor_id=new_user.id,
        actor_username=new_user.username,
        target_user_id=new_user.id,
        target_username=new_user.username,
        metadata={"roles": new_user.roles},
        ip_address=_client_ip(request)
    )

    return ApiResponse(
        data=UserResponse.model_validate(new_user),
        message="Registration received. The account is pending approval."
    )


@router.post("/login", response_model=ApiResponse[TokenResponse])
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Accepts username or email for login. Only APPROVED accounts receive a
    token. Logs successful and failed login attempts for security monitoring.
    """
    ip_address = _client_ip(request)

    result = await db.execute(
        select(User).where(
            or_(User.username == credentials.username, func.lower(User.email) == credentials.username.lower())
        ).order_by(User.id)
    )
    user = result.scalars().first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            username=user.username if user else credentials.username,
            ip_address=ip_address,
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise AuthenticationError("Invalid credentials")

    if user.account_status != AccountStatus.APPROVED:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            username=user.username,
            ip_address=ip_address,
            metadata={"reason": f"Account is {user.account_status.value}"}
        )
        raise AccountNotApprovedError(user.account_status.value)

    access_token = create_access_token(data=token_claims(user))

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=user.id,
        username=user.username,
        ip_address=ip_address
    )

    return ApiResponse(
        data=TokenResponse(
            access_token=access_token,
            token_type="bearer",
            user_id=user.id,
            username=user.username,
            email=user.email,
            roles=user.roles
        ),
        message="Login successful"
    )


@router.get("/me", response_model=ApiResponse[MeResponse])
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current authenticated user information.

    Includes the roles active for this request (after X-User-Roles) and the
    ids of the profiles provisioned for the account.
    """
    user = await db.get(User, current_user["user_id"])

    manufacturer_id = (await db.execute(
        select(Manufacturer.id).where(Manufacturer.user_id == user.id)
    )).scalar_one_or_none()
    truck_owner_id = (await db.execute(
        select(TruckOwner.id).where(TruckOwner.user_id == user.id)
    )).scalar_one_or_none()
    driver_id = (await db.execute(
        select(TruckOwnerDriver.id).where(TruckOwnerDriver.user_id == user.id)
    )).scalar_one_or_none()

    me = MeResponse(
        **UserResponse.model_validate(user).model_dump(),
        active_roles=current_user["roles"],
        manufacturer_id=manufacturer_id,
        truck_owner_id=truck_owner_id,
        driver_id=driver_id,
    )
    return ApiResponse(data=me)


@router.post("/logout", response_model=ApiResponse[dict])
async def logout(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the presented token. Other sessions of the user stay valid."""
    revoked = await revoke_token(credentials.credentials, current_user["user_id"])

    await log_auth_event(
        db=db,
        action=AuditAction.LOGOUT,
        user_id=current_user["user_id"],
        username=current_user.get("sub"),
        ip_address=_client_ip(request),
        metadata={"revoked": revoked}
    )
    return ApiResponse(data={"revoked": revoked}, message="Logged out")
