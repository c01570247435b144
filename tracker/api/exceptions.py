from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler
import structlog

from ..domain.errors import InvalidInput, RetryableConflict

logger = structlog.get_logger()


def tracker_exception_handler(exc, context):
    if isinstance(exc, InvalidInput):
        return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    if isinstance(exc, RetryableConflict):
        logger.warning("request_conflict", error=str(exc))
        return Response({"error": str(exc), "retryable": True},
                        status=status.HTTP_503_SERVICE_UNAVAILABLE)
    return exception_handler(exc, context)
