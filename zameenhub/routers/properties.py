"""
Property API endpoints: public browsing, listing management, image upload and contact reveal.
"""

from fastapi import APIRouter, Depends, status, Query, File, UploadFile
from fastapi.responses import Response
from typing import Optional, List
from uuid import UUID

from zameenhub.models.profile import Profile, ApprovalStatus
from zameenhub.services.property import PropertyService
from zameenhub.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    ListingFilterParams,
)
from zameenhub.schemas.image import ImageUploadResponse, PropertyImageResponse
from zameenhub.schemas.favorite import ContactResponse
from zameenhub.schemas.error import get_crud_error_responses, get_common_error_responses
from zameenhub.utils.dependencies import (
    get_current_user,
    get_current_dealer_user,
    get_optional_current_user,
    get_property_service,
    get_listing_filters,
)


router = APIRouter(prefix="/properties", tags=["Properties"])


def parse_approval_filter(value: Optional[str]) -> Optional[ApprovalStatus]:
    """``all`` or nothing means no approval filter."""
    if value is None or value == "all":
        return None
    return ApprovalStatus(value)


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="Browse approved listings",
    description=(
        "Filter by propertyType, city, minPrice, maxPrice, bedrooms (minimum), "
        "furnishing, and sort with sortBy=created_at|price_asc|price_desc. "
        "Pass page and pageSize to paginate; without pageSize every match is returned."
    ),
    responses=get_common_error_responses()
)
async def list_properties(
    filters: ListingFilterParams = Depends(get_listing_filters),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    result = await property_service.search_properties(filters)
    return PropertyListResponse.model_validate({
        **result,
        "properties": [PropertyResponse.model_validate(p) for p in result["properties"]],
    })


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a listing. Requires an approved dealer or admin. New listings start pending.",
    responses=get_crud_error_responses()
)
async def create_property(
    property_data: PropertyCreate,
    current_user: Profile = Depends(get_current_dealer_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.create_property(property_data, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.get(
    "/mine",
    response_model=List[PropertyResponse],
    summary="Dealer dashboard",
    description="The caller's own listings, optionally filtered by approval status.",
    responses=get_common_error_responses()
)
async def list_my_properties(
    approval_status: Optional[str] = Query(
        "all",
        pattern="^(all|pending|approved|rejected)$",
        description="pending, approved, rejected or all"
    ),
    current_user: Profile = Depends(get_current_dealer_user),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.get_owner_properties(
        current_user,
        parse_approval_filter(approval_status)
    )
    return [PropertyResponse.model_validate(p) for p in properties]


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get property details",
    description="Approved listings are public. Owners and admins also see their unapproved listings.",
    responses=get_common_error_responses()
)
async def get_property(
    property_id: UUID,
    current_user: Optional[Profile] = Depends(get_optional_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(property_id, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    responses=get_crud_error_responses()
)
async def update_property(
    property_id: UUID,
    property_data: PropertyUpdate,
    current_user: Profile = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return PropertyResponse.model_validate(property_obj)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    responses=get_common_error_responses()
)
async def delete_property(
    property_id: UUID,
    current_user: Profile = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> Response:
    await property_service.delete_property(property_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{property_id}/images",
    response_model=ImageUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload property images",
    description=(
        "Upload up to 10 JPEG, PNG or WebP images of at most 10MB each. Invalid "
        "files are skipped and reported; the request fails only if every file fails."
    ),
    responses=get_crud_error_responses()
)
async def upload_property_images(
    property_id: UUID,
    files: List[UploadFile] = File(..., description="Image files in display order"),
    current_user: Profile = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> ImageUploadResponse:
    images, errors = await property_service.upload_images(property_id, files, current_user)
    return ImageUploadResponse(
        images=[PropertyImageResponse.model_validate(image) for image in images],
        uploaded_count=len(images),
        errors=errors
    )


@router.post(
    "/{property_id}/contact",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reveal owner phone number",
    description="Returns the owner's contact details and records the reveal.",
    responses=get_common_error_responses()
)
async def reveal_contact(
    property_id: UUID,
    current_user: Profile = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> ContactResponse:
    result = await property_service.reveal_contact(property_id, current_user)
    return ContactResponse.model_validate(result, from_attributes=True)
