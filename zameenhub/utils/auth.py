"""
JWT helpers.

Three token kinds share one signing key and are told apart by the ``type``
claim: access and refresh tokens for signed-in accounts, and approval-watch
tokens that only open the approval notification channel for a dealer who
cannot sign in yet.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import uuid

from zameenhub.config import Settings, get_settings
from zameenhub.models.profile import UserRole

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
APPROVAL_WATCH_TOKEN = "approval_watch"


class TokenPayload:
    """Decoded claims of a verified token."""

    def __init__(self, user_id: str, email: str, role: Optional[str], exp: datetime, token_type: str):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp
        self.token_type = token_type

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        return cls(
            user_id=data["sub"],
            email=data["email"],
            role=data.get("role"),  # access tokens only
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
            token_type=data["type"]
        )


def _encode(claims: Dict[str, Any], lifetime: timedelta, settings: Settings) -> str:
    issued_at = datetime.now(timezone.utc)
    return jwt.encode(
        {**claims, "iat": issued_at, "exp": issued_at + lifetime},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None
) -> str:
    """
    Sign a short-lived access token.

    The role claim is informational; every request re-reads the profile, so a
    role or approval change takes effect before the token expires.
    """
    settings = settings or get_settings()
    return _encode(
        {"sub": str(user_id), "email": email, "role": role.value, "type": ACCESS_TOKEN},
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
        settings
    )


def create_refresh_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None
) -> str:
    settings = settings or get_settings()
    return _encode(
        {"sub": str(user_id), "email": email, "type": REFRESH_TOKEN},
        expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days),
        settings
    )


def create_approval_watch_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None
) -> str:
    settings = settings or get_settings()
    return _encode(
        {"sub": str(user_id), "email": email, "type": APPROVAL_WATCH_TOKEN},
        expires_delta or timedelta(hours=settings.approval_watch_token_expire_hours),
        settings
    )


def verify_token(
    token: str,
    token_type: str = ACCESS_TOKEN,
    settings: Optional[Settings] = None
) -> TokenPayload:
    """
    Decode a token and check that it is of the expected kind.

    Raises:
        JWTError: If the signature, expiry, type or claims are invalid
    """
    settings = settings or get_settings()
    # jose checks "exp" itself and raises ExpiredSignatureError, a JWTError
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    if payload.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")
    if not payload.get("sub") or not payload.get("email") or "exp" not in payload:
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)
