"""
Authentication service for signup, login, token management and the dealer sign-in gate.
"""

from typing import Optional, Tuple, List
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError
import uuid
import logging

from zameenhub.config import Settings, get_settings
from zameenhub.models.profile import Profile, UserRole, ApprovalStatus
from zameenhub.models.user import User
from zameenhub.repositories.user import UserRepository, ProfileRepository
from zameenhub.schemas.auth import SignupRequest
from zameenhub.services.favorites import FavoritesMergeService, MergeResult
from zameenhub.utils.local_favorites import LocalFavoritesStore
from zameenhub.utils.auth import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    APPROVAL_WATCH_TOKEN,
    create_access_token,
    create_refresh_token,
    create_approval_watch_token,
    verify_token,
)
from zameenhub.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    DealerApprovalPendingError,
    DealerRejectedError,
    DuplicateResourceError,
    ValidationError,
    BadRequestError,
)

logger = logging.getLogger(__name__)


def check_sign_in_gate(profile: Profile) -> None:
    """
    Refuse dealers whose application is not approved. Other roles pass.

    Raises:
        DealerApprovalPendingError: Dealer still pending (retry later)
        DealerRejectedError: Dealer rejected (permanent)
    """
    if profile.role != UserRole.DEALER:
        return
    if profile.approval_status == ApprovalStatus.APPROVED:
        return
    if profile.approval_status == ApprovalStatus.REJECTED:
        raise DealerRejectedError()
    raise DealerApprovalPendingError()


class AuthService:
    """
    Authentication flows. Sessions are only issued after the sign-in gate
    passes, and the gate is checked again whenever a token is resolved.
    """

    def __init__(self, db_session: AsyncSession, settings: Optional[Settings] = None):
        self.db = db_session
        self.settings = settings or get_settings()
        self.user_repo = UserRepository(db_session)
        self.profile_repo = ProfileRepository(db_session)
        self.merge_service = FavoritesMergeService(db_session)

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Check credentials, account state and the dealer gate.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            InactiveUserError: Account disabled
            DealerApprovalPendingError / DealerRejectedError: Dealer gate
        """
        try:
            if not email or not email.strip():
                raise ValidationError("Email is required")
            if not password:
                raise ValidationError("Password is required")

            user = await self.user_repo.authenticate_user(email, password)
            if not user:
                logger.warning(f"Failed authentication attempt for email: {email}")
                raise InvalidCredentialsError()

            if not user.is_active:
                raise InactiveUserError()

            if user.profile is None:
                logger.error(f"User {user.id} has no profile")
                raise InvalidCredentialsError()

            try:
                check_sign_in_gate(user.profile)
            except (DealerApprovalPendingError, DealerRejectedError) as e:
                logger.warning(f"Sign-in refused for dealer {user.email}: {e.error_code}")
                raise

            logger.info(f"User authenticated successfully: {user.email}")
            return user

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Authentication error for {email}: {e}")
            raise InvalidCredentialsError()

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(
            user_id=user.id, email=user.email, role=user.profile.role, settings=self.settings
        )
        refresh_token = create_refresh_token(user_id=user.id, email=user.email, settings=self.settings)
        return access_token, refresh_token

    async def _merge_local_favorites(self, user: User, local_favorites: List[str]) -> Tuple[User, MergeResult]:
        """
        Merge the visitor's local favorites into the account.

        A failed merge rolls the session back, which expires the loaded user;
        the user is then read again so the sign-in can still complete.
        """
        user_id = user.id
        merge_result = await self.merge_service.merge(LocalFavoritesStore.from_ids(local_favorites), user_id)
        if merge_result.remaining_local_favorites:
            user = await self.user_repo.get_by_id(user_id)
        return user, merge_result

    @property
    def access_token_lifetime(self) -> int:
        return self.settings.access_token_expire_minutes * 60

    async def login(
        self,
        email: str,
        password: str,
        local_favorites: Optional[List[str]] = None
    ) -> Tuple[User, str, str, MergeResult]:
        """
        Authenticate, merge local favorites, then issue tokens.

        A failed merge does not fail the login; the result says the local
        favorites were kept.

        Returns:
            Tuple of (user, access_token, refresh_token, merge_result)
        """
        user = await self.authenticate_user(email, password)
        user, merge_result = await self._merge_local_favorites(user, local_favorites or [])

        access_token, refresh_token = self.create_tokens(user)
        return user, access_token, refresh_token, merge_result

    async def signup(self, signup_data: SignupRequest) -> dict:
        """
        Register a user or dealer.

        Users are signed in straight away and their local favorites merged.
        Dealers start pending and get only an approval-watch token.

        Raises:
            DuplicateResourceError: Email already registered
            ValidationError: Invalid email or password
        """
        try:
            if await self.user_repo.get_by_email(signup_data.email):
                raise DuplicateResourceError("User", signup_data.email)

            is_dealer = signup_data.role == UserRole.DEALER
            profile_data = {
                "full_name": signup_data.full_name,
                "phone": signup_data.phone,
                "role": signup_data.role,
                "approval_status": ApprovalStatus.PENDING if is_dealer else None,
                "agency_name": signup_data.agency_name if is_dealer else None,
            }

            try:
                user = await self.user_repo.create_user(
                    {"email": signup_data.email, "password": signup_data.password},
                    profile_data
                )
            except ValueError as e:
                if "already exists" in str(e):
                    raise DuplicateResourceError("User", signup_data.email)
                raise ValidationError(str(e))

            logger.info(f"Signed up {signup_data.role.value}: {user.email} (ID: {user.id})")

            if is_dealer:
                return {
                    "profile": user.profile,
                    "requires_approval": True,
                    "message": (
                        "Dealer account created. You can sign in once an admin "
                        "approves your application."
                    ),
                    "approval_watch_token": create_approval_watch_token(user.id, user.email, settings=self.settings),
                }

            user, merge_result = await self._merge_local_favorites(user, signup_data.local_favorites)
            access_token, refresh_token = self.create_tokens(user)
            return {
                "profile": user.profile,
                "requires_approval": False,
                "message": "Account created",
                "access_token": access_token,
                "refresh_token": refresh_token,
                "token_type": "bearer",
                "expires_in": self.access_token_lifetime,
                "favorites_merge": merge_result.to_dict(),
            }

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to sign up {signup_data.email}: {e}")
            raise BadRequestError(f"Failed to create account: {str(e)}")

    async def _resolve_token(self, token: str, token_types: Tuple[str, ...]) -> User:
        last_error: Optional[JWTError] = None
        payload = None
        for token_type in token_types:
            try:
                payload = verify_token(token, token_type=token_type, settings=self.settings)
                break
            except JWTError as e:
                last_error = e

        if payload is None:
            if last_error is not None and "expired" in str(last_error).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(last_error) if last_error else "Invalid token")

        try:
            user_id = uuid.UUID(payload.user_id)
        except ValueError:
            raise InvalidTokenError("Invalid token subject")

        user = await self.user_repo.get_by_id(user_id)
        if not user or user.profile is None:
            raise InvalidTokenError("Account no longer exists")
        if not user.is_active:
            raise InactiveUserError()
        return user

    async def get_current_user(self, token: str) -> Profile:
        """
        Resolve an access token to the caller's profile, re-applying the dealer gate.

        Raises:
            InvalidTokenError / TokenExpiredError: Bad token
            DealerApprovalPendingError / DealerRejectedError: Dealer no longer approved
        """
        user = await self._resolve_token(token, (ACCESS_TOKEN,))
        check_sign_in_gate(user.profile)
        return user.profile

    async def get_notification_subscriber(self, token: str) -> Profile:
        """
        Resolve a token for the approval notification channel. Pending dealers
        may connect with their approval-watch token.
        """
        user = await self._resolve_token(token, (ACCESS_TOKEN, APPROVAL_WATCH_TOKEN))
        return user.profile

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token. The dealer gate applies here too.
        """
        user = await self._resolve_token(refresh_token, (REFRESH_TOKEN,))
        check_sign_in_gate(user.profile)
        return create_access_token(
            user_id=user.id, email=user.email, role=user.profile.role, settings=self.settings
        )
