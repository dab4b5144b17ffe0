"""Application exceptions and the standard error envelope.

Services raise these; whoever drives a session (request handler, CLI) lets
them propagate out of the session scope so the transaction rolls back, then
renders ``exc.to_dict()``.

"No active price" is not an exception: pricing returns a
``PricingOutcome`` the caller branches on.
"""

import logging
from typing import Union

logger = logging.getLogger(__name__)


class ReceivingError(Exception):
    """Base exception for receiving and pricing errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        details: Union[dict, list, None] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return create_error_response(self.message, self.error_code, self.details)


class InputValidationError(ReceivingError):
    """Malformed input: negative weight, out-of-range percentage, unknown metric."""

    def __init__(self, message: str, details: Union[dict, list, None] = None):
        super().__init__(message, error_code="VALIDATION_ERROR", details=details)


class ResourceNotFoundError(ReceivingError):
    """Exception for resources not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            message=f"{resource} not found: {identifier}",
            error_code="RESOURCE_NOT_FOUND",
        )


class ConflictError(ReceivingError):
    """The operation would create a second record where only one is allowed."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message, error_code=error_code)


def create_error_response(
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
) -> dict:
    """Build the standard error envelope.

    Format:
    {
        "error": {
            "code": "ERROR_CODE",
            "message": "Human-readable error message",
            "details": {...}  // Optional additional details
        }
    }
    """
    content = {
        "error": {
            "code": error_code,
            "message": message,
        }
    }

    if details:
        content["error"]["details"] = details

    return content


def describe_exception(exc: Exception) -> dict:
    """Render any exception as an error envelope, hiding internals."""
    if isinstance(exc, ReceivingError):
        logger.warning(
            "Receiving error: %s - %s", exc.error_code, exc.message,
            extra={"error_code": exc.error_code},
        )
        return exc.to_dict()

    # pydantic.ValidationError and friends expose .errors()
    errors_fn = getattr(exc, "errors", None)
    if callable(errors_fn):
        errors = []
        for error in errors_fn():
            field = " -> ".join(str(loc) for loc in error["loc"])
            errors.append({
                "field": field,
                "message": error["msg"],
                "type": error["type"],
            })
        return create_error_response(
            "Validation error", "VALIDATION_ERROR", {"errors": errors},
        )

    logger.error("Unhandled exception: %s", exc, exc_info=exc)
    return create_error_response(
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_SERVER_ERROR",
    )
