"""
Pydantic schemas for authentication requests and responses.
Sign-in and signup carry the visitor's local favorites so they can be merged.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List

from zameenhub.models.profile import UserRole
from zameenhub.schemas.profile import ProfileResponse


class LocalFavoritesMixin(BaseModel):
    local_favorites: List[str] = Field(
        default_factory=list,
        description="Property ids saved while signed out (the zameenhub_favorites array)",
        examples=[["123e4567-e89b-12d3-a456-426614174000"]]
    )


class LoginRequest(LocalFavoritesMixin):
    """Login request schema."""

    email: EmailStr = Field(..., description="User's email address", examples=["dealer@example.com"])
    password: str = Field(..., min_length=1, max_length=128, description="User's password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()


class SignupRequest(LocalFavoritesMixin):
    """Signup request. Admin accounts cannot be self-registered."""

    email: EmailStr = Field(..., examples=["dealer@example.com"])
    password: str = Field(..., min_length=8, max_length=128, description="Minimum 8 characters")
    full_name: str = Field(..., min_length=2, max_length=255, examples=["Ayesha Khan"])
    phone: Optional[str] = Field(None, max_length=32, examples=["+92 300 1234567"])
    role: UserRole = Field(UserRole.USER, description="user or dealer")
    agency_name: Optional[str] = Field(None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.lower().strip()

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Full name cannot be empty")
        return v.strip()

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Admin accounts cannot be created through signup")
        return v


class FavoritesMergeRequest(LocalFavoritesMixin):
    """Explicit merge of local favorites for a signed-in user."""


class FavoritesMergeResponse(BaseModel):
    """Outcome of merging local favorites into the account."""

    merged_count: int = Field(..., description="Favorites inserted by this merge")
    local_favorites_cleared: bool = Field(
        ...,
        description="Whether the client should clear its local favorites"
    )
    remaining_local_favorites: List[str] = Field(
        default_factory=list,
        description="Local favorites the client should keep"
    )


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds", examples=[1800])


class LoginResponse(TokenResponse):
    """Successful sign-in."""

    profile: ProfileResponse
    favorites_merge: FavoritesMergeResponse


class SignupResponse(BaseModel):
    """
    Signup result. Dealers get no session until approved; they receive an
    approval-watch token for the notification channel instead.
    """

    profile: ProfileResponse
    requires_approval: bool
    message: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    approval_watch_token: Optional[str] = None
    favorites_merge: Optional[FavoritesMergeResponse] = None


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
