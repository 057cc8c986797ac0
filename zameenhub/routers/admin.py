"""
Admin moderation endpoints. Every route requires the admin role.
"""

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from typing import Optional, List
from uuid import UUID

from zameenhub.models.profile import Profile, UserRole
from zameenhub.services.approval import ApprovalService
from zameenhub.services.account import AccountService
from zameenhub.schemas.admin import ApprovalUpdate, RoleUpdate, AdminStatsResponse
from zameenhub.schemas.property import PropertyResponse
from zameenhub.schemas.profile import ProfileResponse
from zameenhub.schemas.error import get_common_error_responses
from zameenhub.routers.properties import parse_approval_filter
from zameenhub.utils.dependencies import (
    get_current_admin_user,
    get_approval_service,
    get_account_service,
)


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses=get_common_error_responses()
)

APPROVAL_FILTER_PATTERN = "^(all|pending|approved|rejected)$"


@router.get("/stats", response_model=AdminStatsResponse, summary="Moderation dashboard counts")
async def get_stats(
    current_user: Profile = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> AdminStatsResponse:
    return AdminStatsResponse(**await approval_service.get_stats(current_user))


@router.get("/properties", response_model=List[PropertyResponse], summary="Properties by approval status")
async def list_properties(
    approval_status: Optional[str] = Query("pending", pattern=APPROVAL_FILTER_PATTERN),
    current_user: Profile = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> List[PropertyResponse]:
    properties = await approval_service.list_properties(current_user, parse_approval_filter(approval_status))
    return [PropertyResponse.model_validate(p) for p in properties]


@router.put(
    "/properties/{property_id}/approval",
    response_model=PropertyResponse,
    summary="Set property approval status"
)
async def set_property_approval(
    property_id: UUID,
    approval: ApprovalUpdate,
    current_user: Profile = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> PropertyResponse:
    property_obj = await approval_service.set_property_approval(
        property_id, approval.approval_status, current_user
    )
    return PropertyResponse.model_validate(property_obj)


@router.get("/dealers", response_model=List[ProfileResponse], summary="Dealers by approval status")
async def list_dealers(
    approval_status: Optional[str] = Query("pending", pattern=APPROVAL_FILTER_PATTERN),
    current_user: Profile = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> List[ProfileResponse]:
    dealers = await approval_service.list_dealers(current_user, parse_approval_filter(approval_status))
    return [ProfileResponse.model_validate(dealer) for dealer in dealers]


@router.put(
    "/dealers/{profile_id}/approval",
    response_model=ProfileResponse,
    summary="Set dealer approval status"
)
async def set_dealer_approval(
    profile_id: UUID,
    approval: ApprovalUpdate,
    current_user: Profile = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> ProfileResponse:
    profile = await approval_service.set_dealer_approval(profile_id, approval.approval_status, current_user)
    return ProfileResponse.model_validate(profile)


@router.get("/profiles", response_model=List[ProfileResponse], summary="List profiles")
async def list_profiles(
    role: Optional[UserRole] = Query(None),
    current_user: Profile = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> List[ProfileResponse]:
    profiles = await approval_service.list_profiles(current_user, role)
    return [ProfileResponse.model_validate(profile) for profile in profiles]


@router.put("/profiles/{profile_id}/role", response_model=ProfileResponse, summary="Change role")
async def change_role(
    profile_id: UUID,
    role_update: RoleUpdate,
    current_user: Profile = Depends(get_current_admin_user),
    approval_service: ApprovalService = Depends(get_approval_service)
) -> ProfileResponse:
    profile = await approval_service.change_role(profile_id, role_update.role, current_user)
    return ProfileResponse.model_validate(profile)


@router.delete(
    "/profiles/{profile_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user account"
)
async def delete_account(
    profile_id: UUID,
    current_user: Profile = Depends(get_current_admin_user),
    account_service: AccountService = Depends(get_account_service)
) -> Response:
    await account_service.delete_account(profile_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
