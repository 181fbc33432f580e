"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import Field
from datetime import datetime
from typing import Any, Dict, List, Optional
from haulhub.app.schemas.auth import UserResponse
from haulhub.app.schemas.common import CamelModel


class AccountActionRequest(CamelModel):
    """Optional reason recorded with approve/reject/suspend/reinstate."""
    reason: Optional[str] = Field(None, max_length=500, description="Reason (for audit log)")


class AccountActionResult(CamelModel):
    """Result of an account action, including any provisioned profile ids."""
    user: UserResponse
    action: str
    audit_log_id: int
    provisioned: Dict[str, Any] = Field(default_factory=dict)


class AssignTruckOwnerRequest(CamelModel):
    """Schema for handing an order to a truck owner."""
    truck_owner_id: int = Field(..., gt=0)


class AuditLogResponse(CamelModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_username: Optional[str]
    action: str
    target_user_id: Optional[int]
    target_username: Optional[str]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime


class AuditTrailResponse(CamelModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
