"""
Favorites API endpoints: saved properties and merging local favorites.
"""

from fastapi import APIRouter, Depends, status
from typing import List
from uuid import UUID

from zameenhub.models.profile import Profile
from zameenhub.services.favorites import FavoriteService
from zameenhub.schemas.auth import FavoritesMergeRequest, FavoritesMergeResponse
from zameenhub.schemas.favorite import FavoriteStatusResponse, FavoriteIdsResponse
from zameenhub.schemas.property import PropertyResponse
from zameenhub.schemas.error import get_common_error_responses
from zameenhub.utils.dependencies import get_current_user, get_favorite_service


router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get(
    "",
    response_model=List[PropertyResponse],
    summary="Saved properties",
    description="Approved properties saved by the caller, newest listing first."
)
async def list_saved_properties(
    current_user: Profile = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> List[PropertyResponse]:
    properties = await favorite_service.list_saved_properties(current_user)
    return [PropertyResponse.model_validate(p) for p in properties]


@router.get("/ids", response_model=FavoriteIdsResponse, summary="Saved property ids")
async def list_favorite_ids(
    current_user: Profile = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteIdsResponse:
    return FavoriteIdsResponse(property_ids=await favorite_service.list_favorite_ids(current_user))


@router.post(
    "/lookup",
    response_model=List[PropertyResponse],
    summary="Resolve local favorites",
    description="For signed-out visitors: the approved properties behind a local favorites list."
)
async def lookup_local_favorites(
    payload: FavoritesMergeRequest,
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> List[PropertyResponse]:
    properties = await favorite_service.lookup_local_favorites(payload.local_favorites)
    return [PropertyResponse.model_validate(p) for p in properties]


@router.post(
    "/merge",
    response_model=FavoritesMergeResponse,
    summary="Merge local favorites",
    description="Add local favorites to the caller's account, skipping ones already saved."
)
async def merge_local_favorites(
    payload: FavoritesMergeRequest,
    current_user: Profile = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoritesMergeResponse:
    result = await favorite_service.merge_local_favorites(payload.local_favorites, current_user)
    return FavoritesMergeResponse(**result.to_dict())


@router.get(
    "/{property_id}",
    response_model=FavoriteStatusResponse,
    summary="Check whether a property is saved"
)
async def get_favorite_status(
    property_id: UUID,
    current_user: Profile = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteStatusResponse:
    return FavoriteStatusResponse(
        property_id=property_id,
        is_favorite=await favorite_service.is_favorite(property_id, current_user)
    )


@router.put(
    "/{property_id}",
    response_model=FavoriteStatusResponse,
    summary="Save a property",
    responses=get_common_error_responses()
)
async def add_favorite(
    property_id: UUID,
    current_user: Profile = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteStatusResponse:
    await favorite_service.add_favorite(property_id, current_user)
    return FavoriteStatusResponse(property_id=property_id, is_favorite=True)


@router.delete(
    "/{property_id}",
    response_model=FavoriteStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Remove a saved property"
)
async def remove_favorite(
    property_id: UUID,
    current_user: Profile = Depends(get_current_user),
    favorite_service: FavoriteService = Depends(get_favorite_service)
) -> FavoriteStatusResponse:
    await favorite_service.remove_favorite(property_id, current_user)
    return FavoriteStatusResponse(property_id=property_id, is_favorite=False)
