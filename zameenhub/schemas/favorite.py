"""
Schemas for favorites and contact reveals.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
import uuid

from zameenhub.schemas.profile import OwnerPublicResponse


class FavoriteStatusResponse(BaseModel):
    property_id: uuid.UUID
    is_favorite: bool


class FavoriteIdsResponse(BaseModel):
    property_ids: List[uuid.UUID]


class ContactResponse(BaseModel):
    """Owner contact details revealed to a signed-in user."""

    property_id: uuid.UUID
    phone: Optional[str] = None
    owner: OwnerPublicResponse
    contacted_at: datetime
