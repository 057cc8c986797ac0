"""
Pydantic schemas for profile requests and responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
import uuid

from zameenhub.models.profile import UserRole, ApprovalStatus


def _clean_optional_text(v):
    if v is None:
        return v
    v = v.strip()
    return v or None


class OwnerPublicResponse(BaseModel):
    """Owner fields shown with a listing."""

    id: uuid.UUID
    full_name: Optional[str] = None
    phone: Optional[str] = None
    agency_name: Optional[str] = None

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    """Full profile as seen by its owner or an admin."""

    id: uuid.UUID = Field(..., description="Profile id, equal to the user id")
    email: Optional[str] = Field(None, description="Sign-in email")
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = Field(..., description="user, dealer or admin")
    approval_status: Optional[ApprovalStatus] = Field(
        None,
        description="Dealer moderation state; null for other roles"
    )
    agency_name: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
    """Self-service profile fields. Role and approval are admin-only."""

    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[str] = Field(None, max_length=32)
    agency_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=5000)
    profile_image: Optional[str] = Field(None, max_length=500)

    model_config = {"extra": "forbid"}

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip() if v else v

    @field_validator("phone", "agency_name", "bio", "profile_image")
    @classmethod
    def clean_text(cls, v):
        return _clean_optional_text(v)
