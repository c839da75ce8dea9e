"""
Error Handling Middleware

Turns exceptions raised outside DRF's own handler (plain Django views, URL
resolution) into the standard JSON error envelope.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from django.http import Http404, HttpRequest, HttpResponse, JsonResponse

from .api_exceptions import internal_error_response
from .errors import APIError, ErrorCode, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware:
    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if not getattr(request, "request_id", None):
            request.request_id = str(uuid.uuid4())
        return self.get_response(request)

    def process_exception(self, request: HttpRequest, exc: Exception) -> Optional[HttpResponse]:
        request_id = getattr(request, "request_id", None) or str(uuid.uuid4())

        if isinstance(exc, APIError):
            exc.request_id = request_id
            return exc.to_json_response()

        if isinstance(exc, Http404):
            return self._create_json_error(
                ErrorCode.RESOURCE_NOT_FOUND,
                str(exc) or "Resource not found",
                404,
                request_id,
            )

        logger.exception(
            f"Unhandled exception [request_id={request_id}]: {exc}",
            extra={"request_id": request_id},
        )
        return internal_error_response(exc, request_id).to_json_response(500)

    def _create_json_error(
        self,
        code: ErrorCode,
        message: str,
        status: int,
        request_id: str,
    ) -> JsonResponse:
        return ErrorResponse(
            error=ErrorDetail(code=code.value, message=message),
            request_id=request_id,
        ).to_json_response(status)
