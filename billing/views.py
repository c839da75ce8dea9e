import logging
import uuid

from django.http import HttpResponse

from billing.validation.errors import ErrorCode, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


def _request_id(request) -> str:
    return getattr(request, "request_id", None) or str(uuid.uuid4())


def index(request):
    return HttpResponse("InvoiceDesk API is running...", content_type="text/plain")


def path_not_found(request, exception=None):
    return ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.RESOURCE_NOT_FOUND.value,
            message=f"Path not found: {request.path}",
        ),
        request_id=_request_id(request),
    ).to_json_response(404)


def server_error(request):
    return ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.INTERNAL_ERROR.value,
            message="An unexpected error occurred.",
        ),
        request_id=_request_id(request),
    ).to_json_response(500)
