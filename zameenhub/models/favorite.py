"""
Favorite and Contact models: per-user links to properties.
"""

from sqlalchemy import ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
import uuid

from zameenhub.database import Base


class Favorite(Base):
    """A user's saved property. One row per (user, property)."""

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, property_id={self.property_id})>"


class Contact(Base):
    """
    Append-only record of a user revealing a listing's phone number.
    """

    __tablename__ = "contacts"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    @property
    def contacted_at(self):
        return self.created_at

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "user_id": str(self.user_id),
            "contacted_at": self.contacted_at.isoformat(),
        }
