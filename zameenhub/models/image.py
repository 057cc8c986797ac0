"""
PropertyImage model for listing photos.
"""

from sqlalchemy import String, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from typing import Optional, TYPE_CHECKING
import uuid

from zameenhub.database import Base

if TYPE_CHECKING:
    from zameenhub.models.property import Property


class PropertyImage(Base):
    """
    Stored photo belonging to exactly one property, ordered by ``display_order``.
    """

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    image_url: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="Public URL of the stored object"
    )

    storage_path: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        unique=True,
        comment="Path relative to the media directory"
    )

    display_order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Display order for image gallery"
    )

    property_rel: Mapped["Property"] = relationship(
        "Property",
        back_populates="images",
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, order={self.display_order})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "property_id": str(self.property_id),
            "image_url": self.image_url,
            "display_order": self.display_order,
            "created_at": self.created_at.isoformat(),
        }


property_images_order_index = Index(
    'idx_property_images_property_order',
    PropertyImage.property_id,
    PropertyImage.display_order.asc()
)
