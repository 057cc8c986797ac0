"""
Error rendering for the ZameenHub API.

Every failure leaves the service as
``{"error": {code, message, timestamp, request_id, details?}}``.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, timezone
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from zameenhub.utils.exceptions import APIException, ValidationError
import logging
import uuid

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Plain HTTP errors raised by routing rather than by our services
HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    413: "PAYLOAD_TOO_LARGE",
    415: "UNSUPPORTED_MEDIA_TYPE",
}

# Constraint name or message fragment -> message shown to the client
CONSTRAINT_MESSAGES = (
    ("uq_favorites_user_property", "Property is already in favorites"),
    ("users.email", "An account with this email already exists"),
    ("ix_users_email", "An account with this email already exists"),
    ("foreign key", "Referenced record does not exist"),
    ("not null", "Required field cannot be empty"),
)


class ErrorHandlerService:
    """
    Turns exceptions into the JSON error envelope and logs them.
    """

    @staticmethod
    def format_error_response(
        error_code: str,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        request_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Build the error envelope.

        Args:
            error_code: Machine-readable code such as ``DEALER_REJECTED``
            message: Human-readable message
            details: Optional per-field details
            request_id: Identifier echoed back for support requests

        Returns:
            Envelope dictionary ready for JSON encoding
        """
        body: Dict[str, Any] = {
            "code": error_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "request_id": request_id,
        }
        if details:
            body["details"] = details
        return {"error": body}

    @staticmethod
    def request_id_for(request: Optional[Request]) -> str:
        """Reuse the caller's X-Request-ID when present, otherwise mint a short one."""
        if request is not None:
            supplied = request.headers.get(REQUEST_ID_HEADER)
            if supplied:
                return supplied[:64]
        return uuid.uuid4().hex[:8]

    @staticmethod
    def _respond(
        status_code: int,
        error_code: str,
        message: str,
        request_id: str,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> JSONResponse:
        content = ErrorHandlerService.format_error_response(error_code, message, details, request_id)
        response_headers = dict(headers or {})
        response_headers[REQUEST_ID_HEADER] = request_id
        return JSONResponse(status_code=status_code, content=content, headers=response_headers)

    @staticmethod
    def handle_api_exception(exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService.request_id_for(request)
        logger.warning(
            f"[{request_id}] {exception.error_code} ({exception.status_code}) on "
            f"{request.url.path if request else '-'}: {exception.detail}"
        )

        details = exception.field_errors if isinstance(exception, ValidationError) else None
        return ErrorHandlerService._respond(
            exception.status_code,
            exception.error_code or "API_ERROR",
            exception.detail,
            request_id,
            details=details,
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """
        Request and Pydantic validation failures, one detail entry per field.
        """
        request_id = ErrorHandlerService.request_id_for(request)

        details = []
        for error in exception.errors():
            # Drop the leading "query"/"body" marker so clients see the field name
            location = [str(part) for part in error["loc"] if part not in ("query", "body", "path")]
            value = error.get("input")
            details.append({
                "field": ".".join(location) or None,
                "message": error["msg"],
                "type": error["type"],
                "input": value if isinstance(value, (str, int, float, bool, type(None))) else None,
            })

        logger.warning(f"[{request_id}] Validation failed with {len(details)} error(s)")
        return ErrorHandlerService._respond(
            422, "VALIDATION_ERROR", "Request validation failed", request_id, details=details
        )

    @staticmethod
    def handle_database_error(exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        """
        Integrity violations are conflicts (409); anything else is a 500.
        """
        request_id = ErrorHandlerService.request_id_for(request)

        if isinstance(exception, IntegrityError):
            message = ErrorHandlerService.describe_constraint(exception)
            logger.warning(f"[{request_id}] Integrity violation: {exception.orig}")
            return ErrorHandlerService._respond(409, "CONFLICT", message, request_id)

        logger.error(f"[{request_id}] Database error: {exception}", exc_info=True)
        return ErrorHandlerService._respond(500, "DATABASE_ERROR", "Database operation failed", request_id)

    @staticmethod
    def handle_http_exception(exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService.request_id_for(request)
        error_code = HTTP_ERROR_CODES.get(exception.status_code, f"HTTP_{exception.status_code}")
        logger.info(f"[{request_id}] HTTP {exception.status_code}: {exception.detail}")
        return ErrorHandlerService._respond(
            exception.status_code,
            error_code,
            str(exception.detail),
            request_id,
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService.request_id_for(request)
        logger.error(
            f"[{request_id}] Unhandled {type(exception).__name__} on "
            f"{request.url.path if request else '-'}",
            exc_info=exception
        )
        return ErrorHandlerService._respond(
            500,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred. Please try again later.",
            request_id
        )

    @staticmethod
    def describe_constraint(exception: IntegrityError) -> str:
        error_msg = str(exception.orig).lower()
        for fragment, message in CONSTRAINT_MESSAGES:
            if fragment in error_msg:
                return message
        return "Data integrity constraint violation"
