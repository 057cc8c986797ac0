"""
Error response schemas for OpenAPI documentation.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message", examples=["Invalid email format"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")
    rule: Optional[str] = Field(None, description="Business rule that was violated")


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["DEALER_PENDING_APPROVAL"])
    message: str = Field(..., description="Human-readable error message")
    timestamp: str = Field(..., description="Error timestamp in ISO format", examples=["2026-01-01T00:00:00Z"])
    request_id: Optional[str] = Field(None, description="Request identifier for tracking", examples=["abc12345"])
    details: Optional[List[ErrorDetail]] = Field(None, description="Detailed error information")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse


def _error_example(description: str, code: str, message: str) -> Dict[str, Any]:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": code,
                        "message": message,
                        "timestamp": "2026-01-01T00:00:00Z",
                        "request_id": "abc12345"
                    }
                }
            }
        }
    }


COMMON_ERROR_RESPONSES = {
    400: _error_example("Bad Request", "BAD_REQUEST", "Invalid request parameters"),
    401: _error_example("Unauthorized", "UNAUTHORIZED", "Authentication required"),
    403: _error_example(
        "Forbidden",
        "DEALER_PENDING_APPROVAL",
        "Your dealer account is pending approval. Please wait for admin approval before signing in."
    ),
    404: _error_example("Not Found", "NOT_FOUND", "Property not found"),
    409: _error_example("Conflict", "CONFLICT", "User with email 'dealer@example.com' already exists"),
    422: _error_example("Validation Error", "VALIDATION_ERROR", "Request validation failed"),
    500: _error_example("Internal Server Error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred"),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    return {
        code: COMMON_ERROR_RESPONSES[code]
        for code in status_codes
        if code in COMMON_ERROR_RESPONSES
    }


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(401, 403)


def get_common_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(400, 401, 403, 404, 422, 500)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    return get_error_responses(400, 401, 403, 404, 409, 422, 500)
