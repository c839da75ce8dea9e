"""
Centralized error taxonomy.

Every failure leaving the API is rendered as
``{success: false, error: {code, message, fields?}, request_id}``.
"""

from .errors import (
    APIError,
    ConflictError,
    ErrorCode,
    ErrorResponse,
    InvalidCredentialsError,
    NotFoundError,
    TokenInvalidError,
    ValidationError,
)

__all__ = [
    "APIError",
    "ConflictError",
    "ErrorCode",
    "ErrorResponse",
    "InvalidCredentialsError",
    "NotFoundError",
    "TokenInvalidError",
    "ValidationError",
]
