"""Error taxonomy for the tax service.

Every error carries a human-readable message, a machine-readable error code,
the HTTP status it maps to and an optional field-level ``details`` map of the
form ``{field: [messages]}`` which the dashboard renders next to each input.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class TaxServiceError(Exception):
    """Base error for all tax service failures."""

    error_code = "TAX_SERVICE_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str,
        details: dict[str, list[str]] | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.details = details or {}
        self.context = context or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(TaxServiceError):
    """Malformed or out-of-range input. Fixed by correcting the input."""

    error_code = "VALIDATION_ERROR"
    status_code = 422

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details={field: [message]})


class NotFound(TaxServiceError):
    """A referenced establishment, client, stay or tax record does not exist."""

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(
        self,
        resource: str,
        resource_id: Any,
        field: str | None = None,
        *,
        message: str | None = None,
        details: dict[str, list[str]] | None = None,
    ):
        message = message or f"{resource} {resource_id} not found"
        if details is None and field:
            details = {field: [message]}
        super().__init__(message, details=details, context={"resource": resource})
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(TaxServiceError):
    """The request conflicts with the current state of a record."""

    error_code = "CONFLICT"
    status_code = 409


class TransientError(TaxServiceError):
    """Storage or network failure. The caller may retry the whole operation."""

    error_code = "TRANSIENT_ERROR"
    status_code = 503


def _location_to_field(loc: tuple[Any, ...]) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "__root__"


def request_validation_details(exc: RequestValidationError) -> dict[str, list[str]]:
    """Flatten pydantic errors into the ``{field: [messages]}`` map."""
    details: dict[str, list[str]] = {}
    for error in exc.errors():
        field = _location_to_field(tuple(error.get("loc", ())))
        message = str(error.get("msg", "Invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        details.setdefault(field, []).append(message)
    return details


async def tax_service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, TaxServiceError)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, RequestValidationError)
    return JSONResponse(
        status_code=422,
        content={
            "error": ValidationError.error_code,
            "message": "Request validation failed",
            "details": request_validation_details(exc),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaxServiceError, tax_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
