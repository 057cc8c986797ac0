"""
Profile model with role and dealer approval state.
"""

from sqlalchemy import String, Text, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
import enum
import uuid

from zameenhub.database import Base

if TYPE_CHECKING:
    from zameenhub.models.user import User


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    USER = "user"
    DEALER = "dealer"
    ADMIN = "admin"


class ApprovalStatus(str, enum.Enum):
    """Moderation state shared by properties and dealer profiles."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


user_role_type = SQLEnum(UserRole, name="user_role", values_callable=_enum_values)
approval_status_type = SQLEnum(ApprovalStatus, name="approval_status", values_callable=_enum_values)


class Profile(Base):
    """
    Public-facing account data. ``id`` is the owning user's id.

    ``approval_status`` is only meaningful for dealers and stays null for the
    other roles.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True
    )

    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        user_role_type,
        nullable=False,
        default=UserRole.USER,
        index=True,
        comment="User role for access control"
    )

    approval_status: Mapped[Optional[ApprovalStatus]] = mapped_column(
        approval_status_type,
        nullable=True,
        index=True,
        comment="Dealer moderation state"
    )

    agency_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    profile_image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    user: Mapped["User"] = relationship(
        "User",
        back_populates="profile",
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role}, approval_status={self.approval_status})>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_dealer(self) -> bool:
        return self.role == UserRole.DEALER

    @property
    def is_approved_dealer(self) -> bool:
        return self.is_dealer and self.approval_status == ApprovalStatus.APPROVED

    @property
    def email(self) -> Optional[str]:
        return self.user.email if self.user else None

    def public_dict(self) -> dict:
        """Owner fields shown next to a listing."""
        return {
            "id": str(self.id),
            "full_name": self.full_name,
            "phone": self.phone,
            "agency_name": self.agency_name,
        }

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "role": self.role.value,
            "approval_status": self.approval_status.value if self.approval_status else None,
            "agency_name": self.agency_name,
            "bio": self.bio,
            "profile_image": self.profile_image,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
