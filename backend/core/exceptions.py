"""
Domain exceptions for the Clearance Request Lifecycle Engine.

All exceptions follow the standard error format:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable description",
        "details": {}
    }
"""

from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, code, message, details=None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(DomainError):
    """Bad input or unknown/inactive reference - rejected before any mutation."""

    def __init__(self, message, details=None):
        super().__init__("VALIDATION_ERROR", message, details)


class InvalidStateError(DomainError):
    """Entity is not in the required state for the operation."""

    def __init__(self, message, details=None):
        super().__init__("INVALID_STATE", message, details)


class NotFoundError(DomainError):
    """Requested resource does not exist."""

    def __init__(self, message, details=None):
        super().__init__("NOT_FOUND", message, details)


class AuthorizationError(DomainError):
    """Actor does not own, or may not act on, the entity."""

    def __init__(self, message, details=None):
        super().__init__("FORBIDDEN", message, details)


class PersistenceError(DomainError):
    """The request store is unavailable or rejected the write."""

    def __init__(self, message, details=None):
        super().__init__("PERSISTENCE_ERROR", message, details)


STATUS_CODE_MAP = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "INVALID_STATE": status.HTTP_409_CONFLICT,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "PERSISTENCE_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(code, message, http_status, details=None):
    """Build a Response carrying the standard error envelope."""
    return Response(
        {
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            }
        },
        status=http_status,
    )


def domain_exception_handler(exc, context):
    """
    Custom exception handler for domain exceptions.

    Returns standard error format:
    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable description",
            "details": {}
        }
    }
    """
    if isinstance(exc, DomainError):
        status_code = STATUS_CODE_MAP.get(exc.code, status.HTTP_400_BAD_REQUEST)
        if exc.code == "PERSISTENCE_ERROR":
            logger.error(
                "persistence_error", extra={"details": exc.details}, exc_info=exc
            )
        return error_response(exc.code, exc.message, status_code, exc.details)

    # Use default REST framework exception handler for other exceptions
    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(response.data, dict) and "detail" in response.data:
            code = getattr(response.data["detail"], "code", None)
            error_data = {
                "error": {
                    "code": {
                        "not_authenticated": "UNAUTHORIZED",
                        "authentication_failed": "UNAUTHORIZED",
                        "permission_denied": "FORBIDDEN",
                        "not_found": "NOT_FOUND",
                        "method_not_allowed": "METHOD_NOT_ALLOWED",
                        "parse_error": "VALIDATION_ERROR",
                    }.get(code, "INTERNAL_ERROR"),
                    "message": str(response.data["detail"]),
                    "details": {},
                }
            }
        else:
            error_data = {
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": "Request validation failed",
                    "details": response.data,
                }
            }

        response.data = error_data
        return response

    logger.exception("Unhandled exception", exc_info=exc)
    return error_response(
        "INTERNAL_ERROR",
        "An internal error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
