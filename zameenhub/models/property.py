"""
Property model for marketplace listings.
Handles listing data, moderation state and relationship management.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from decimal import Decimal
from typing import List, Optional, TYPE_CHECKING
import enum
import uuid

from zameenhub.database import Base
from zameenhub.models.profile import ApprovalStatus, approval_status_type, _enum_values

if TYPE_CHECKING:
    from zameenhub.models.profile import Profile
    from zameenhub.models.image import PropertyImage


class PropertyType(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "house"
    APARTMENT = "apartment"
    PLOT = "plot"
    COMMERCIAL = "commercial"


class PropertyStatus(str, enum.Enum):
    """Market status of a listing."""
    AVAILABLE = "available"
    SOLD = "sold"
    RENTED = "rented"


class FurnishingStatus(str, enum.Enum):
    FURNISHED = "furnished"
    SEMI_FURNISHED = "semi-furnished"
    UNFURNISHED = "unfurnished"


class Property(Base):
    """
    Property listing owned by a dealer or admin.
    Publicly visible only while ``approval_status`` is approved.
    """

    __tablename__ = "properties"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Profile that created this listing"
    )

    # Basic property information
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Property listing title"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Detailed property description"
    )

    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=_enum_values),
        nullable=False,
        index=True
    )

    price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=14, scale=2),
        nullable=True,
        index=True,
        comment="Asking price in local currency"
    )

    # Location information
    city: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True
    )

    area: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Locality or neighbourhood within the city"
    )

    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Property specifications
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    bathrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    furnishing: Mapped[Optional[FurnishingStatus]] = mapped_column(
        SQLEnum(FurnishingStatus, name="furnishing_status", values_callable=_enum_values),
        nullable=True
    )

    # Status and moderation
    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus, name="property_status", values_callable=_enum_values),
        nullable=False,
        default=PropertyStatus.AVAILABLE
    )

    approval_status: Mapped[ApprovalStatus] = mapped_column(
        approval_status_type,
        nullable=False,
        default=ApprovalStatus.PENDING,
        index=True,
        comment="Moderation state; only approved listings are public"
    )

    featured: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False
    )

    # Relationships
    owner: Mapped["Profile"] = relationship(
        "Profile",
        lazy="selectin"
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property_rel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="PropertyImage.display_order.asc()"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title[:30]}, approval_status={self.approval_status})>"

    @property
    def is_public(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    def to_dict(self, include_owner: bool = True, include_images: bool = True) -> dict:
        """
        Convert property to dictionary.

        Args:
            include_owner: Whether to include the owner's public fields
            include_images: Whether to include ordered images

        Returns:
            Dictionary representation of property
        """
        result = {
            "id": str(self.id),
            "owner_id": str(self.owner_id),
            "title": self.title,
            "description": self.description,
            "property_type": self.property_type.value,
            "price": self.price,
            "city": self.city,
            "area": self.area,
            "address": self.address,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "furnishing": self.furnishing.value if self.furnishing else None,
            "status": self.status.value,
            "approval_status": self.approval_status.value,
            "featured": self.featured,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if include_owner and self.owner:
            result["owner"] = self.owner.public_dict()

        if include_images:
            result["images"] = [image.to_dict() for image in self.images]

        return result


# Public browsing always filters on approval first
approval_created_index = Index(
    'idx_properties_approval_created',
    Property.approval_status,
    Property.created_at.desc()
)

approval_city_price_index = Index(
    'idx_properties_approval_city_price',
    Property.approval_status,
    Property.city,
    Property.price
)

owner_approval_index = Index(
    'idx_properties_owner_approval',
    Property.owner_id,
    Property.approval_status
)
