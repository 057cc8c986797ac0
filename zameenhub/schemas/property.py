"""
Pydantic schemas for property requests and responses.
Handles property CRUD operations, listing filters, and validation.
"""

from pydantic import BaseModel, Field, field_validator, field_serializer, model_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid

from zameenhub.models.property import PropertyType, PropertyStatus, FurnishingStatus
from zameenhub.models.profile import ApprovalStatus
from zameenhub.repositories.property import ListingSort
from zameenhub.schemas.image import PropertyImageResponse
from zameenhub.schemas.profile import OwnerPublicResponse

MAX_PRICE = Decimal("999999999999.99")


class PropertyBase(BaseModel):
    """Base property schema with common fields."""

    title: str = Field(
        ...,
        min_length=3,
        max_length=255,
        description="Property listing title",
        examples=["5 Marla House in DHA Phase 6"]
    )

    description: Optional[str] = Field(None, max_length=5000, description="Detailed property description")

    property_type: PropertyType = Field(..., description="house, apartment, plot or commercial")

    price: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Asking price in local currency; omitted for price on request",
        examples=[25000000]
    )

    city: str = Field(..., min_length=2, max_length=100, examples=["Lahore"])
    area: Optional[str] = Field(None, max_length=255, description="Locality", examples=["DHA Phase 6"])
    address: Optional[str] = Field(None, max_length=500)

    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    furnishing: Optional[FurnishingStatus] = None
    status: PropertyStatus = PropertyStatus.AVAILABLE

    @field_validator("title", "city")
    @classmethod
    def validate_required_text(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("description", "area", "address")
    @classmethod
    def clean_optional_text(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v > MAX_PRICE:
            raise ValueError("Price exceeds maximum allowed value")
        return v


class PropertyCreate(PropertyBase):
    """
    Schema for creating a new property. New listings always start pending.
    """

    model_config = {
        "extra": "forbid",
        "json_schema_extra": {
            "example": {
                "title": "5 Marla House in DHA Phase 6",
                "description": "Corner house near park, double storey.",
                "property_type": "house",
                "price": 25000000,
                "city": "Lahore",
                "area": "DHA Phase 6",
                "bedrooms": 3,
                "bathrooms": 3,
                "furnishing": "semi-furnished"
            }
        }
    }


class PropertyUpdate(BaseModel):
    """
    Schema for updating an existing property. Only supplied fields change;
    approval state is not editable here.
    """

    title: Optional[str] = Field(None, min_length=3, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    property_type: Optional[PropertyType] = None
    price: Optional[Decimal] = Field(None, ge=0)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    area: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    bedrooms: Optional[int] = Field(None, ge=0, le=50)
    bathrooms: Optional[int] = Field(None, ge=0, le=50)
    furnishing: Optional[FurnishingStatus] = None
    status: Optional[PropertyStatus] = None

    model_config = {"extra": "forbid"}

    @field_validator("title", "city")
    @classmethod
    def validate_required_text(cls, v):
        if v is not None:
            if not v.strip():
                raise ValueError("Field cannot be empty")
            return v.strip()
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v):
        if v is not None and v > MAX_PRICE:
            raise ValueError("Price exceeds maximum allowed value")
        return v


class PropertyResponse(BaseModel):
    """Listing with its owner's public fields and ordered images."""

    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: Optional[str] = None
    property_type: PropertyType
    price: Optional[Decimal] = None
    city: str
    area: Optional[str] = None
    address: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    furnishing: Optional[FurnishingStatus] = None
    status: PropertyStatus
    approval_status: ApprovalStatus
    featured: bool
    created_at: datetime
    updated_at: datetime

    owner: Optional[OwnerPublicResponse] = None
    images: List[PropertyImageResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_serializer("price")
    def serialize_price(self, price: Optional[Decimal]):
        return float(price) if price is not None else None


class PropertyListResponse(BaseModel):
    """
    Listing query result. ``page_size`` is null when the full set was returned.
    """

    properties: List[PropertyResponse]
    total: int = Field(..., description="Number of properties matching the filters")
    page: int = 1
    page_size: Optional[int] = None
    total_pages: int = 1
    has_next: bool = False
    has_previous: bool = False


class ListingFilterParams(BaseModel):
    """
    Public listing filters. Accepts the camelCase names used by web clients
    (propertyType, minPrice, maxPrice, bedrooms, sortBy) and snake_case names.
    Empty strings mean the filter is not applied.
    """

    property_type: Optional[PropertyType] = Field(None, alias="propertyType")
    city: Optional[str] = Field(None, max_length=100)
    min_price: Optional[Decimal] = Field(None, ge=0, alias="minPrice")
    max_price: Optional[Decimal] = Field(None, ge=0, alias="maxPrice")
    min_bedrooms: Optional[int] = Field(None, ge=0, le=50, alias="bedrooms")
    furnishing: Optional[FurnishingStatus] = None
    sort_by: ListingSort = Field(ListingSort.NEWEST, alias="sortBy")

    page: int = Field(1, ge=1)
    page_size: Optional[int] = Field(None, ge=1, le=100, alias="pageSize")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("city")
    @classmethod
    def strip_city(cls, v):
        return v.strip() if v else v

    @field_validator("sort_by", mode="before")
    @classmethod
    def default_sort(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return ListingSort.NEWEST
        return v

    @field_validator("page", mode="before")
    @classmethod
    def default_page(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return 1
        return v

    @model_validator(mode="after")
    def validate_price_range(self):
        if self.min_price is not None and self.max_price is not None:
            if self.min_price > self.max_price:
                raise ValueError("Minimum price cannot be greater than maximum price")
        return self
