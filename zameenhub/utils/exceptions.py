"""
Exception hierarchy for the ZameenHub API.

Each class fixes its HTTP status and error code; the handlers in
``zameenhub.services.error_handler`` render them into the error envelope.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status


class APIException(HTTPException):
    """Base class for errors raised deliberately by services."""

    status_code_default: int = status.HTTP_400_BAD_REQUEST
    error_code_default: str = "API_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=detail,
            headers=headers
        )
        self.error_code = error_code or self.error_code_default

    def __str__(self) -> str:
        return str(self.detail)


class BadRequestError(APIException):
    status_code_default = status.HTTP_400_BAD_REQUEST
    error_code_default = "BAD_REQUEST"


class ValidationError(APIException):
    """Business-rule validation failure, optionally with per-field details."""

    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code_default = "VALIDATION_ERROR"

    def __init__(self, detail: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(detail)
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    status_code_default = status.HTTP_404_NOT_FOUND
    error_code_default = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"
        super().__init__(detail)


class ConflictError(APIException):
    status_code_default = status.HTTP_409_CONFLICT
    error_code_default = "CONFLICT"


class UnauthorizedError(APIException):
    """Missing, invalid or expired credentials."""

    status_code_default = status.HTTP_401_UNAUTHORIZED
    error_code_default = "UNAUTHORIZED"

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(APIException):
    """Authenticated, but not allowed."""

    status_code_default = status.HTTP_403_FORBIDDEN
    error_code_default = "FORBIDDEN"

    # Whether the same request may succeed later without the caller changing anything
    retryable: bool = False

    def __init__(self, detail: str = "Access forbidden", error_code: Optional[str] = None):
        super().__init__(detail, error_code=error_code)


class InvalidCredentialsError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    def __init__(self, detail: str = "Token has expired"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InactiveUserError(ForbiddenError):
    def __init__(self, detail: str = "User account is inactive"):
        super().__init__(detail)


class InsufficientPermissionsError(ForbiddenError):
    error_code_default = "INSUFFICIENT_PERMISSIONS"

    def __init__(self, action: str):
        super().__init__(f"Insufficient permissions to {action}")


class DealerApprovalPendingError(ForbiddenError):
    """Dealer sign-in refused until an admin approves the account."""

    error_code_default = "DEALER_PENDING_APPROVAL"
    retryable = True

    def __init__(self, detail: str = (
        "Your dealer account is pending approval. "
        "Please wait for admin approval before signing in."
    )):
        super().__init__(detail)


class DealerRejectedError(ForbiddenError):
    """Dealer sign-in refused for good."""

    error_code_default = "DEALER_REJECTED"

    def __init__(self, detail: str = (
        "Your dealer account application has been rejected. "
        "Please contact support for more information."
    )):
        super().__init__(detail)


class PropertyNotFoundError(NotFoundError):
    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class DuplicateResourceError(ConflictError):
    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")
