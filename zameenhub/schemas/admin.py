"""
Schemas for admin moderation endpoints.
"""

from pydantic import BaseModel, Field

from zameenhub.models.profile import ApprovalStatus, UserRole


class ApprovalUpdate(BaseModel):
    approval_status: ApprovalStatus = Field(..., description="pending, approved or rejected")


class RoleUpdate(BaseModel):
    role: UserRole


class AdminStatsResponse(BaseModel):
    """Moderation dashboard counters."""

    total_properties: int
    pending_properties: int
    approved_properties: int
    rejected_properties: int
    total_dealers: int
    pending_dealers: int
    approved_dealers: int
    total_users: int
    total_admins: int
