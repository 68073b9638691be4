"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module fournit une gestion centralisée des erreurs avec des enveloppes standardisées
`{code, message, trace_id, details}` et la traduction des erreurs métier (valeurs) en réponses HTTP.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from backend.core.constants import (
    HTTP_CONFLICT,
    HTTP_GONE,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_UNPROCESSABLE_ENTITY,
)
from backend.domain.errors import ProfileError, VersionConflictError

log = structlog.get_logger(__name__)


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None


class APIError(HTTPException):
    """Custom API error with standard envelope."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        trace_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize an API error with standardized envelope."""
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.trace_id = trace_id
        self.details = details


class ErrorCodes:
    """Standard error codes for the API."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    PROFILE_RETIRED = "PROFILE_RETIRED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def create_error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
            **({"details": envelope.details} if envelope.details else {}),
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Extract trace ID from request headers or request state."""
    trace_id = request.headers.get("X-Request-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "request_id", None)


def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions with standard envelope."""
    trace_id = extract_trace_id(request) or exc.trace_id
    log.info(
        "api_error",
        code=exc.code,
        status_code=exc.status_code,
        trace_id=trace_id,
    )
    return create_error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        trace_id=trace_id,
        details=exc.details,
    )


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions with standard envelope."""
    trace_id = extract_trace_id(request)
    log.error(
        "unexpected_error",
        trace_id=trace_id,
        exception_type=type(exc).__name__,
        exc_info=exc,
    )
    return create_error_response(
        status_code=HTTP_INTERNAL_SERVER_ERROR,
        code=ErrorCodes.INTERNAL_ERROR,
        message="An unexpected error occurred",
        trace_id=trace_id,
    )


def not_found(message: str, trace_id: str | None = None) -> APIError:
    """Create a 404 Not Found error."""
    return APIError(HTTP_NOT_FOUND, ErrorCodes.NOT_FOUND, message, trace_id)


def gone(message: str, trace_id: str | None = None) -> APIError:
    """Create a 410 Gone error (retired profile lineage)."""
    return APIError(HTTP_GONE, ErrorCodes.PROFILE_RETIRED, message, trace_id)


def from_profile_errors(errors: Sequence[ProfileError]) -> APIError:
    """Traduit des erreurs métier: conflit de version -> 409, sinon 422 avec tous les champs."""
    records = [err.as_record() for err in errors]
    if any(isinstance(err, VersionConflictError) for err in errors):
        return APIError(
            HTTP_CONFLICT,
            ErrorCodes.VERSION_CONFLICT,
            errors[0].message,
            details={"errors": records},
        )
    return APIError(
        HTTP_UNPROCESSABLE_ENTITY,
        ErrorCodes.VALIDATION_ERROR,
        f"profile submission has {len(records)} invalid field(s)",
        details={"errors": records},
    )
