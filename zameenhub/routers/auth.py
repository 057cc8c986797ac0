"""
Authentication API endpoints: signup, login, token refresh and current user.
"""

from fastapi import APIRouter, Depends, status

from zameenhub.models.profile import Profile
from zameenhub.services.auth import AuthService
from zameenhub.schemas.auth import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    SignupResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
)
from zameenhub.schemas.error import get_error_responses
from zameenhub.schemas.profile import ProfileResponse
from zameenhub.utils.dependencies import get_auth_service, get_current_user


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description=(
        "Register as a user or dealer. Users are signed in immediately and their "
        "local favorites merged. Dealers wait for admin approval and receive an "
        "approval-watch token for the notification channel."
    ),
    responses=get_error_responses(400, 409, 422)
)
async def signup(
    signup_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SignupResponse:
    result = await auth_service.signup(signup_data)
    result["profile"] = ProfileResponse.model_validate(result["profile"])
    return SignupResponse.model_validate(result)


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description=(
        "Authenticate with email and password. Dealers pending or rejected by an "
        "admin are refused without a session."
    ),
    responses=get_error_responses(401, 403, 422)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user, merge local favorites and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        DealerApprovalPendingError: Dealer awaiting approval
        DealerRejectedError: Dealer application rejected
    """
    user, access_token, refresh_token, merge_result = await auth_service.login(
        email=login_data.email,
        password=login_data.password,
        local_favorites=login_data.local_favorites
    )

    return LoginResponse(
        profile=ProfileResponse.model_validate(user.profile),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=auth_service.access_token_lifetime,
        favorites_merge=merge_result.to_dict()
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    responses=get_error_responses(401, 403)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_data.refresh_token)
    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=auth_service.access_token_lifetime
    )


@router.get(
    "/me",
    response_model=ProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user"
)
async def get_current_user_info(current_user: Profile = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse.model_validate(current_user)
