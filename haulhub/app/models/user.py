"""
User database model.

This module defines the User SQLAlchemy model for authentication.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, JSON
from sqlalchemy.sql import func
from haulhub.app.db.session import Base
from haulhub.app.models.enums import AccountStatus, UserRole


class User(Base):
    """
    User model for authentication and account approval.

    A user can hold several roles (e.g. a truck owner who also drives).
    Role profiles (Manufacturer, TruckOwner) are provisioned when a
    super admin approves the account.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)

    # Stored as a JSON list of UserRole values
    roles = Column(JSON, nullable=False, default=list)

    account_status = Column(Enum(AccountStatus), default=AccountStatus.PENDING, nullable=False, index=True)
    is_superuser = Column(Boolean, default=False, nullable=False)

    # Used by provisioning when the account carries the MANUFACTURER role
    company_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def has_role(self, role: UserRole) -> bool:
        return role.value in (self.roles or [])

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', roles={self.roles}, status='{self.account_status.value}')>"
