"""
FastAPI dependency injection utilities for authentication, services and
application-scoped objects.

The database and notifier are read from ``app.state`` through the
connection, so the same dependencies serve HTTP requests and websockets.
"""

from typing import Optional
from fastapi import Depends
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection, Request

from zameenhub.config import Settings, get_settings
from zameenhub.database import get_db
from zameenhub.models.profile import Profile, UserRole
from zameenhub.schemas.property import ListingFilterParams
from zameenhub.services.auth import AuthService
from zameenhub.services.approval import ApprovalService
from zameenhub.services.account import AccountService
from zameenhub.services.favorites import FavoriteService
from zameenhub.services.notifications import ApprovalNotifier
from zameenhub.services.property import PropertyService
from zameenhub.utils.exceptions import (
    APIException,
    UnauthorizedError,
    InsufficientPermissionsError,
)


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_app_settings(connection: HTTPConnection) -> Settings:
    return getattr(connection.app.state, "settings", None) or get_settings()


def get_notifier(connection: HTTPConnection) -> ApprovalNotifier:
    notifier: Optional[ApprovalNotifier] = getattr(connection.app.state, "notifier", None)
    if notifier is None:
        raise RuntimeError("Approval notifier is not configured on the application")
    return notifier


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
) -> AuthService:
    return AuthService(db, settings)


async def get_property_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
) -> PropertyService:
    return PropertyService(db, settings)


async def get_favorite_service(db: AsyncSession = Depends(get_db)) -> FavoriteService:
    return FavoriteService(db)


async def get_approval_service(
    db: AsyncSession = Depends(get_db),
    notifier: ApprovalNotifier = Depends(get_notifier)
) -> ApprovalService:
    return ApprovalService(db, notifier)


async def get_account_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
) -> AccountService:
    return AccountService(db, settings)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Profile:
    """
    Get the authenticated caller's profile from the bearer token.

    Raises:
        UnauthorizedError: If no token provided or token is invalid
        DealerApprovalPendingError / DealerRejectedError: Dealer lost approval
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        raise
    except Exception as e:
        raise UnauthorizedError(f"Authentication failed: {str(e)}")


async def get_current_admin_user(current_user: Profile = Depends(get_current_user)) -> Profile:
    """
    Raises:
        InsufficientPermissionsError: If user is not an admin
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("access admin resources")
    return current_user


async def get_current_dealer_user(current_user: Profile = Depends(get_current_user)) -> Profile:
    """
    Approved dealer or admin. Pending dealers never get this far because the
    sign-in gate runs on every token.
    """
    if current_user.role not in (UserRole.DEALER, UserRole.ADMIN):
        raise InsufficientPermissionsError("access dealer resources")
    return current_user


async def get_optional_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Profile]:
    """
    Caller's profile if a valid token is provided, otherwise None.
    """
    if not credentials:
        return None

    try:
        return await auth_service.get_current_user(credentials.credentials)
    except APIException:
        return None


def get_listing_filters(request: Request) -> ListingFilterParams:
    """
    Parse listing filters from the query string, accepting camelCase and
    snake_case parameter names.
    """
    try:
        return ListingFilterParams.model_validate(dict(request.query_params))
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors())
