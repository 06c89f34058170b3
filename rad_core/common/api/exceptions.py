# rad_core/common/api/exceptions.py

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

NO_TOKEN_MESSAGE = "Not authorized, no token provided"


def ensure_request_id(request) -> str:
    """
    Ensures request has a stable request_id attribute and returns it.
    Safe to call from middleware and the DRF exception handler.
    """
    rid = getattr(request, "request_id", None) if request is not None else None
    if not rid:
        rid = uuid.uuid4().hex
        if request is not None:
            setattr(request, "request_id", rid)
    return rid


def build_error_envelope(
    *,
    request=None,
    code: str,
    message: str,
    details: Any = None,
    error: str | None = None,
) -> dict[str, Any]:
    """
    Canonical error envelope:
      { success: false, message, code, request_id, details?, error? }

    `error` carries raw exception text and is only filled in under DEBUG.
    """
    body: dict[str, Any] = {
        "success": False,
        "message": message,
        "code": code,
        "request_id": ensure_request_id(request),
    }
    if details:
        body["details"] = details
    if error and settings.DEBUG:
        body["error"] = error
    return body


class Unauthorized(APIException):
    """
    401 raised outside the authentication classes (credential checks on
    public endpoints). DRF would downgrade AuthenticationFailed to 403 on
    views without authenticators, so this is a plain APIException.
    """
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authorized."
    default_code = "unauthorized"


class ConflictError(APIException):
    """
    409 Conflict that still flows through the global exception handler.
    Use for duplicate keys and business rules that block a state change.
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


def _translate(exc: Exception) -> Exception:
    """Map Django/ORM exceptions onto their DRF counterparts."""
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            return ValidationError(detail=exc.message_dict)
        return ValidationError(detail={"detail": exc.messages[0] if exc.messages else "Invalid input."})
    if isinstance(exc, ObjectDoesNotExist):
        return NotFound()
    if isinstance(exc, IntegrityError):
        return ConflictError("Duplicate value violates a uniqueness rule.", code="duplicate_key")
    return exc


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, ValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        # Codes set at raise time (TOKEN_EXPIRED, ...) win over the class default.
        raised = getattr(exc.detail, "code", None)
        if isinstance(raised, str) and raised:
            return raised
        if isinstance(exc, PermissionDenied):
            return "permission_denied"
        return getattr(exc, "default_code", "api_error") or "api_error"
    if http_status >= 500:
        return "server_error"
    return "error"


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    exc = _translate(exc)
    response = drf_exception_handler(exc, context)

    # Truly unhandled error
    if response is None:
        logger.exception(
            "unhandled error request_id=%s path=%s",
            ensure_request_id(request),
            getattr(request, "path", "-"),
            exc_info=exc,
        )
        return Response(
            build_error_envelope(
                request=request,
                code="server_error",
                message="Unexpected server error.",
                error=str(exc),
            ),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    http_status = response.status_code
    code = _code_for(exc, http_status)
    data = response.data

    message = "Request failed."
    details = data

    if isinstance(exc, NotAuthenticated):
        message = NO_TOKEN_MESSAGE
        details = None
    elif isinstance(data, dict) and "detail" in data:
        maybe_msg = data.get("detail")
        if isinstance(maybe_msg, list) and maybe_msg:
            maybe_msg = maybe_msg[0]
        message = str(maybe_msg)
        rest = {k: v for k, v in data.items() if k != "detail"}
        details = rest or None
    elif isinstance(data, list) and data:
        message = str(data[0])
        details = None
    elif isinstance(exc, ValidationError):
        message = "Validation failed."

    if http_status >= 500:
        logger.error("server error request_id=%s code=%s message=%s", ensure_request_id(request), code, message)

    return Response(
        build_error_envelope(
            request=request,
            code=code,
            message=message,
            details=details,
        ),
        status=http_status,
        headers=response.headers,
    )
