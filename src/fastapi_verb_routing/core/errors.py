"""Translation of request failures into status codes and response bodies.

Three kinds of failure are told apart:

- RequestValidationFailure -> 400 with ``{"message", "errors"}``
- ApiError -> its own status with ``{"message"}``
- anything else -> 500 with a generic message; details go to the log only
"""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from fastapi_verb_routing.core.schema import validation_failure
from fastapi_verb_routing.exceptions import ApiError, RequestValidationFailure

logger = logging.getLogger(__name__)

BAD_REQUEST = 400
INTERNAL_SERVER_ERROR = 500

GENERIC_ERROR_MESSAGE = "Internal Server Error"


@dataclass(frozen=True)
class ErrorResponse:
    """Status code and JSON content for a failed request."""

    status_code: int
    content: dict[str, Any]


def translate_error(exc: BaseException, *, context: dict[str, Any] | None = None) -> ErrorResponse:
    """Map a failure raised by the pipeline to an ErrorResponse.

    Args:
        exc: The failure.
        context: Extra fields for the log record of undeclared failures.

    Returns:
        The status code and body to send.
    """
    if isinstance(exc, ValidationError):
        exc = validation_failure(exc)

    if isinstance(exc, RequestValidationFailure):
        return ErrorResponse(
            status_code=BAD_REQUEST,
            content={"message": exc.message, "errors": list(exc.errors)},
        )

    if isinstance(exc, ApiError):
        return ErrorResponse(status_code=exc.status_code, content={"message": exc.message})

    logger.error(
        "Unhandled exception in route handler: %s: %s",
        type(exc).__name__,
        exc,
        exc_info=exc,
        extra=context or {},
    )
    return ErrorResponse(
        status_code=INTERNAL_SERVER_ERROR,
        content={"message": GENERIC_ERROR_MESSAGE},
    )
