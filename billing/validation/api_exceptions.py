"""
Django REST Framework Exception Handler

Provides consistent error format for all API endpoints. Domain errors
(``APIError``) and unexpected exceptions are rendered here as well, so a view
never leaks a bare traceback page.
"""

from __future__ import annotations

import logging
import traceback
import uuid
from typing import Any, Dict, Optional

from django.conf import settings
from django.http import Http404
from rest_framework.views import exception_handler
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    MethodNotAllowed,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError as DRFValidationError,
)
from rest_framework.response import Response

from .errors import (
    APIError,
    ErrorCode,
    ErrorDetail,
    ErrorResponse,
    FieldError,
)

logger = logging.getLogger(__name__)


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    request = context.get("request")
    request_id = getattr(request, "request_id", None) if request else None
    if not request_id:
        request_id = str(uuid.uuid4())

    if isinstance(exc, APIError):
        exc.request_id = request_id
        return Response(exc.to_response().to_dict(), status=exc.status)

    response = exception_handler(exc, context)

    if response is not None:
        error_response = _convert_to_standard_format(exc, response, request_id)
        return Response(error_response.to_dict(), status=response.status_code, headers=_auth_headers(response))

    logger.exception(f"Unhandled API exception [request_id={request_id}]: {exc}")
    return Response(internal_error_response(exc, request_id).to_dict(), status=500)


def internal_error_response(exc: Exception, request_id: str) -> ErrorResponse:
    """500 body: the underlying message is passed through; the stack only in DEBUG."""
    return ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.INTERNAL_ERROR.value,
            message=str(exc) or type(exc).__name__,
        ),
        request_id=request_id,
        stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)) if settings.DEBUG else None,
    )


def _auth_headers(response: Response) -> Dict[str, str]:
    header = response.get("WWW-Authenticate")
    return {"WWW-Authenticate": header} if header else {}


def _convert_to_standard_format(
    exc: Exception,
    response: Response,
    request_id: str,
) -> ErrorResponse:
    if isinstance(exc, NotAuthenticated):
        return ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.AUTHENTICATION_REQUIRED.value,
                message="Authentication required. Please log in.",
            ),
            request_id=request_id,
        )

    if isinstance(exc, AuthenticationFailed):
        return ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.AUTHENTICATION_FAILED.value,
                message=str(exc.detail) if exc.detail else "Authentication failed.",
            ),
            request_id=request_id,
        )

    if isinstance(exc, PermissionDenied):
        return ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.PERMISSION_DENIED.value,
                message=str(exc.detail) if exc.detail else "You do not have permission to perform this action.",
            ),
            request_id=request_id,
        )

    if isinstance(exc, (NotFound, Http404)):
        detail = getattr(exc, "detail", None) or str(exc)
        return ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.RESOURCE_NOT_FOUND.value,
                message=str(detail) if detail else "Resource not found.",
            ),
            request_id=request_id,
        )

    if isinstance(exc, MethodNotAllowed):
        return ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.METHOD_NOT_ALLOWED.value,
                message=str(exc.detail),
            ),
            request_id=request_id,
        )

    if isinstance(exc, DRFValidationError):
        return ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.VALIDATION_ERROR.value,
                message="Validation failed. Please check your input.",
                fields=_extract_field_errors(exc.detail),
            ),
            request_id=request_id,
        )

    if isinstance(exc, APIException):
        return ErrorResponse(
            error=ErrorDetail(
                code=ErrorCode.INTERNAL_ERROR.value,
                message=str(exc.detail) if exc.detail else "An error occurred.",
            ),
            request_id=request_id,
        )

    return ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.INTERNAL_ERROR.value,
            message="An unexpected error occurred.",
        ),
        request_id=request_id,
    )


def _extract_field_errors(detail: Any, prefix: str = "") -> list[FieldError]:
    errors = []

    if isinstance(detail, dict):
        for field_name, field_errors in detail.items():
            full_field = f"{prefix}{field_name}" if prefix else field_name

            if isinstance(field_errors, list):
                for index, error in enumerate(field_errors):
                    if isinstance(error, dict):
                        # Nested list serializers report one dict per element
                        errors.extend(_extract_field_errors(error, f"{full_field}.{index}."))
                        continue
                    errors.append(FieldError(
                        field=full_field,
                        code=_map_drf_code(getattr(error, "code", "invalid")),
                        message=str(error),
                    ))
            elif isinstance(field_errors, dict):
                errors.extend(_extract_field_errors(field_errors, f"{full_field}."))
            else:
                errors.append(FieldError(
                    field=full_field,
                    code=ErrorCode.FIELD_INVALID.value,
                    message=str(field_errors),
                ))

    elif isinstance(detail, list):
        for error in detail:
            errors.append(FieldError(
                field="__all__",
                code=_map_drf_code(getattr(error, "code", "invalid")),
                message=str(error),
            ))

    else:
        errors.append(FieldError(
            field="__all__",
            code=ErrorCode.FIELD_INVALID.value,
            message=str(detail),
        ))

    return errors


def _map_drf_code(code: str) -> str:
    code_mapping = {
        "required": ErrorCode.FIELD_REQUIRED.value,
        "blank": ErrorCode.FIELD_REQUIRED.value,
        "null": ErrorCode.FIELD_REQUIRED.value,
        "empty": ErrorCode.FIELD_REQUIRED.value,
        "invalid": ErrorCode.FIELD_INVALID.value,
        "max_length": ErrorCode.FIELD_TOO_LONG.value,
        "min_length": ErrorCode.FIELD_TOO_SHORT.value,
        "max_value": ErrorCode.FIELD_OUT_OF_RANGE.value,
        "min_value": ErrorCode.FIELD_OUT_OF_RANGE.value,
        "invalid_choice": ErrorCode.FIELD_INVALID.value,
        "does_not_exist": ErrorCode.RESOURCE_NOT_FOUND.value,
        "unique": ErrorCode.RESOURCE_ALREADY_EXISTS.value,
    }

    return code_mapping.get(code, ErrorCode.FIELD_INVALID.value)
