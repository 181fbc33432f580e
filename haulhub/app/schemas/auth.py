"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import EmailStr, Field, field_validator
from datetime import datetime
from typing import List, Optional
from haulhub.app.models.enums import AccountStatus, UserRole
from haulhub.app.schemas.common import CamelModel


class UserRegister(CamelModel):
    """
    Schema for user registration.

    Used by POST /auth/register endpoint.
    New accounts are PENDING until a super admin approves them.
    """
    email: EmailStr = Field(..., description="User email address")
    username: str = Field(..., min_length=3, max_length=50, description="Unique username")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    roles: List[UserRole] = Field(..., min_length=1, description="Requested roles")
    phone: Optional[str] = Field(default=None, max_length=30)
    company_name: Optional[str] = Field(default=None, max_length=255, description="Used for MANUFACTURER accounts")

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return value.lower()

    @field_validator("roles", mode="before")
    @classmethod
    def normalize_roles(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        return [str(role).strip().upper().replace(" ", "_") for role in value]

    @field_validator("roles")
    @classmethod
    def reject_super_admin(cls, value):
        if UserRole.SUPER_ADMIN in value:
            raise ValueError("SUPER_ADMIN accounts cannot be self-registered")
        return list(dict.fromkeys(value))


class UserLogin(CamelModel):
    """
    Schema for user login.

    Used by POST /auth/login endpoint.
    Supports login with either username or email.
    """
    username: str = Field(..., description="Username or email")
    password: str = Field(..., description="Password")


class TokenResponse(CamelModel):
    """
    Schema for JWT token response.

    Returned by a successful login.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: str = Field(..., description="Email address")
    roles: List[UserRole] = Field(..., description="Roles carried by the token")


class UserResponse(CamelModel):
    """
    Schema for user information response.

    Used by GET /auth/me and the admin user list.
    """
    id: int
    email: str
    username: str
    phone: Optional[str] = None
    roles: List[UserRole]
    account_status: AccountStatus
    is_superuser: bool
    company_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class MeResponse(UserResponse):
    """Current user plus the roles active for this request and provisioned profile ids."""
    active_roles: List[UserRole]
    manufacturer_id: Optional[int] = None
    truck_owner_id: Optional[int] = None
    driver_id: Optional[int] = None
