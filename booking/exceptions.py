"""
exceptions.py
-------------
Domain errors for the booking app and the single DRF exception handler that
turns every failure into the response envelope:

    {"data": null, "error": {"message": "...", "code": "...", "details": ...}}

Services raise the classes below; views never build error responses by hand.
"""

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Internal server error"


class BookingError(Exception):
    """Base exception for all booking domain errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    default_message = GENERIC_MESSAGE

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidWindow(BookingError):
    """Raised when a time range is malformed or has zero/negative duration."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_WINDOW"
    default_message = "End time must be after start time."


class ResourceConflict(BookingError):
    """Raised when a resource is already assigned for an overlapping window."""
    status_code = status.HTTP_409_CONFLICT
    code = "RESOURCE_CONFLICT"
    default_message = "The resource is not available for the requested time."

    def __init__(self, message=None, conflicts=None):
        self.conflicts = list(conflicts or [])
        details = [c.as_dict() for c in self.conflicts] if self.conflicts else None
        super().__init__(message, details=details)


class SlotUnavailable(BookingError):
    """Raised when a staff member or hold already occupies the requested slot."""
    status_code = status.HTTP_409_CONFLICT
    code = "SLOT_UNAVAILABLE"
    default_message = "This time slot is no longer available. Please select another time."


class ActiveHoldExists(BookingError):
    status_code = status.HTTP_409_CONFLICT
    code = "ACTIVE_HOLD_EXISTS"
    default_message = "You already have an active booking hold. Please complete or cancel it first."


class InvalidTransition(BookingError):
    """Raised when a status change is not allowed from the current state."""
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_TRANSITION"
    default_message = "This change is not allowed in the current state."


class ProviderInactive(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "PROVIDER_INACTIVE"
    default_message = "Provider is not available for booking."


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Not found."


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action."


# DRF exception type -> envelope code
_DRF_CODES = [
    (drf_exceptions.ValidationError, "VALIDATION_ERROR"),
    (drf_exceptions.ParseError, "VALIDATION_ERROR"),
    (drf_exceptions.NotAuthenticated, "UNAUTHORIZED"),
    (drf_exceptions.AuthenticationFailed, "UNAUTHORIZED"),
    (drf_exceptions.PermissionDenied, "FORBIDDEN"),
    (drf_exceptions.NotFound, "NOT_FOUND"),
    (drf_exceptions.MethodNotAllowed, "METHOD_NOT_ALLOWED"),
    (drf_exceptions.Throttled, "RATE_LIMITED"),
]


def error_payload(message, code, details=None):
    error = {"message": message, "code": code}
    if details is not None:
        error["details"] = details
    return {"data": None, "error": error}


def _flatten_detail(detail):
    """
    Collapse DRF's nested error detail into one human-readable line.
    """
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            text = _flatten_detail(value)
            parts.append(text if field in ("non_field_errors", "detail") else f"{field}: {text}")
        return "; ".join(parts)
    if isinstance(detail, (list, tuple)):
        return ", ".join(_flatten_detail(item) for item in detail)
    return str(detail)


def _drf_code(exc):
    for exc_type, code in _DRF_CODES:
        if isinstance(exc, exc_type):
            return code
    return "ERROR"


def api_exception_handler(exc, context):
    """
    REST_FRAMEWORK["EXCEPTION_HANDLER"].

    - BookingError subclasses carry their own status and code.
    - DRF/Django errors keep DRF's status code.
    - Anything else is logged and hidden behind a generic 500.
    """
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else "unknown"

    if isinstance(exc, BookingError):
        set_rollback()
        if exc.status_code >= 500:
            logger.error("Booking error in %s: %s", view_name, exc.message)
        else:
            logger.info("Rejected request in %s: %s (%s)", view_name, exc.message, exc.code)
        return Response(
            error_payload(exc.message, exc.code, exc.details),
            status=exc.status_code,
        )

    if isinstance(exc, ObjectDoesNotExist):
        exc = Http404(str(exc))
    elif isinstance(exc, DjangoValidationError):
        exc = drf_exceptions.ValidationError(exc.messages)

    response = exception_handler(exc, context)
    if response is not None:
        detail = getattr(exc, "detail", None)
        if detail is None:
            detail = response.data.get("detail", "") if isinstance(response.data, dict) else response.data
        code = "NOT_FOUND" if isinstance(exc, Http404) else _drf_code(exc)
        details = response.data if code == "VALIDATION_ERROR" else None
        response.data = error_payload(_flatten_detail(detail), code, details)
        return response

    set_rollback()
    logger.exception("Unexpected error in %s", view_name, exc_info=exc)
    return Response(
        error_payload(GENERIC_MESSAGE, "INTERNAL_ERROR"),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
