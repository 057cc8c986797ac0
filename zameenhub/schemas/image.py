"""
Pydantic schemas for property image responses.
"""

from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
import uuid


class PropertyImageResponse(BaseModel):
    """Stored image as returned to clients."""

    id: uuid.UUID
    property_id: uuid.UUID
    image_url: str = Field(..., description="Public URL of the image", examples=["/media/properties/<id>/<file>.jpg"])
    display_order: int = Field(..., ge=0)
    created_at: datetime

    model_config = {"from_attributes": True}


class ImageUploadError(BaseModel):
    filename: str
    error: str


class ImageUploadResponse(BaseModel):
    """Result of a batch upload. Invalid files are skipped and reported."""

    images: List[PropertyImageResponse]
    uploaded_count: int
    errors: List[ImageUploadError] = Field(default_factory=list)
