"""
Profile self-service endpoints and account deletion.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from zameenhub.models.profile import Profile
from zameenhub.services.account import AccountService
from zameenhub.schemas.profile import ProfileResponse, ProfileUpdate
from zameenhub.schemas.error import get_common_error_responses
from zameenhub.utils.dependencies import get_current_user, get_account_service


router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=ProfileResponse, summary="Own profile")
async def get_my_profile(current_user: Profile = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse.model_validate(current_user)


@router.patch(
    "/me",
    response_model=ProfileResponse,
    summary="Update own profile",
    description="Self-service fields only. Role and approval status are changed by admins.",
    responses=get_common_error_responses()
)
async def update_my_profile(
    profile_data: ProfileUpdate,
    current_user: Profile = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service)
) -> ProfileResponse:
    profile = await account_service.update_profile(profile_data, current_user)
    return ProfileResponse.model_validate(profile)


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own account",
    description="Removes the account with its profile, listings, images, favorites and contacts."
)
async def delete_my_account(
    current_user: Profile = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service)
) -> Response:
    await account_service.delete_account(current_user.id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
