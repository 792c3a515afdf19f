import logging

from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class CountryError(Exception):
    """Base error carrying the HTTP status and message clients receive."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class SourceUnavailable(CountryError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "External data source unavailable"

    SOURCE_LABELS = {
        "countries": "Could not fetch data from Countries API",
        "rates": "Could not fetch data from Exchange rates API",
    }

    def __init__(self, which, reason=None):
        self.which = which
        self.reason = reason
        super().__init__(details=self.SOURCE_LABELS.get(which, which))


class ValidationError(CountryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, details):
        super().__init__(details=details)


class NotFound(CountryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Country not found"


class PersistenceError(CountryError):
    """The refresh transaction failed and was rolled back."""


class RenderError(Exception):
    """Summary image could not be produced. Never reported to clients."""


def error_body(status_code, message, details=None):
    error = {"status": status_code, "message": message}
    if details is not None:
        error["details"] = details
    return {"error": error}


def error_response(status_code, message, details=None):
    return Response(error_body(status_code, message, details), status=status_code)


def api_exception_handler(exc, context):
    """
    REST framework EXCEPTION_HANDLER.
    Renders CountryError and DRF's own exceptions as
    {"error": {"status", "message", "details"?}}.
    """
    if isinstance(exc, CountryError):
        return error_response(exc.status_code, exc.message, exc.details)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.error(
            "Unhandled error in %s", type(view).__name__ if view else "view", exc_info=exc
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    data = response.data
    if isinstance(exc, drf_exceptions.ValidationError):
        message, details = "Validation failed", data
    elif isinstance(data, dict) and "detail" in data:
        message, details = str(data["detail"]), None
    else:
        message, details = "Request failed", data
    response.data = error_body(response.status_code, message, details)
    return response
