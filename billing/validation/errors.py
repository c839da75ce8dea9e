"""
Standardized Error Handling

Provides consistent error format:
API: { success: false, error: { code, message, fields? }, request_id }

HTTP Status Code Standards:
- 200: Success
- 201: Created
- 400: Bad Request (validation errors, duplicates, bad credentials, bad reset token)
- 401: Unauthorized (missing or invalid bearer token)
- 404: Not Found (absent, or owned by someone else)
- 500: Internal Server Error
"""

from __future__ import annotations

import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from django.http import JsonResponse

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FIELD_REQUIRED = "FIELD_REQUIRED"
    FIELD_INVALID = "FIELD_INVALID"
    FIELD_TOO_SHORT = "FIELD_TOO_SHORT"
    FIELD_TOO_LONG = "FIELD_TOO_LONG"
    FIELD_OUT_OF_RANGE = "FIELD_OUT_OF_RANGE"
    FIELD_INVALID_FORMAT = "FIELD_INVALID_FORMAT"

    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    TOKEN_INVALID = "TOKEN_INVALID"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_ALREADY_EXISTS = "RESOURCE_ALREADY_EXISTS"

    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class FieldError:
    field: str
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "field": self.field,
            "code": self.code,
            "message": self.message,
        }


@dataclass
class ErrorDetail:
    code: str
    message: str
    fields: Optional[List[FieldError]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.fields:
            result["fields"] = [f.to_dict() for f in self.fields]
        return result


@dataclass
class ErrorResponse:
    success: bool = False
    error: Optional[ErrorDetail] = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    stack: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "success": self.success,
            "error": self.error.to_dict() if self.error else None,
            "request_id": self.request_id,
        }
        if self.stack:
            result["stack"] = self.stack
        return result

    def to_json_response(self, status: int = 400) -> JsonResponse:
        return JsonResponse(self.to_dict(), status=status)


class APIError(Exception):
    status = 400

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        status: Optional[int] = None,
        fields: Optional[List[FieldError]] = None,
        request_id: Optional[str] = None,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        if status is not None:
            self.status = status
        self.fields = fields
        self.request_id = request_id or str(uuid.uuid4())
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            success=False,
            error=ErrorDetail(
                code=self.code,
                message=self.message,
                fields=self.fields,
            ),
            request_id=self.request_id,
        )

    def to_json_response(self) -> JsonResponse:
        return self.to_response().to_json_response(self.status)


class ValidationError(APIError):
    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[List[FieldError]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            status=400,
            fields=fields,
            request_id=request_id,
        )


class ConflictError(APIError):
    """A uniquely-keyed record already exists (email, client name, invoice number)."""

    def __init__(
        self,
        message: str = "Resource already exists",
        request_id: Optional[str] = None,
    ):
        super().__init__(
            code=ErrorCode.RESOURCE_ALREADY_EXISTS,
            message=message,
            status=400,
            request_id=request_id,
        )


class InvalidCredentialsError(APIError):
    def __init__(
        self,
        message: str = "Invalid credentials",
        request_id: Optional[str] = None,
    ):
        super().__init__(
            code=ErrorCode.AUTHENTICATION_FAILED,
            message=message,
            status=400,
            request_id=request_id,
        )


class TokenInvalidError(APIError):
    def __init__(
        self,
        message: str = "Token is invalid or has expired",
        request_id: Optional[str] = None,
    ):
        super().__init__(
            code=ErrorCode.TOKEN_INVALID,
            message=message,
            status=400,
            request_id=request_id,
        )


class NotFoundError(APIError):
    def __init__(
        self,
        message: str = "Resource not found",
        request_id: Optional[str] = None,
    ):
        super().__init__(
            code=ErrorCode.RESOURCE_NOT_FOUND,
            message=message,
            status=404,
            request_id=request_id,
        )
