"""Domain error taxonomy and the DRF exception handler.

Services raise subclasses of the five error kinds below.  The API
boundary never builds error responses by hand: ``api_exception_handler``
maps each kind onto the matching DRF exception and lets
``drf-standardized-errors`` render the uniform body::

    {"type": "client_error", "errors": [{"code": "...", "detail": "...", "attr": null}]}

Every domain exception carries a stable ``code`` that clients can switch on.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from drf_standardized_errors.handler import exception_handler
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for business-rule violations raised by services."""

    code = "domain_error"

    def __init__(self, message: str = "", code: Optional[str] = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class NotFoundError(DomainError):
    code = "not_found"


class DomainValidationError(DomainError):
    code = "invalid"


class PermissionDeniedError(DomainError):
    code = "permission_denied"


class ConflictError(DomainError):
    code = "conflict"


class ExternalDependencyError(DomainError):
    code = "external_dependency_error"


# ---------------------------------------------------------------------------
# HTTP translation
# ---------------------------------------------------------------------------


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The resource is not in a state that allows this operation."
    default_code = "conflict"


class BadGateway(exceptions.APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "An upstream provider failed to handle the request."
    default_code = "external_dependency_error"


def to_api_exception(exc: DomainError) -> exceptions.APIException:
    """Translate a domain error into the DRF exception for its kind."""
    detail = str(exc) or None
    if isinstance(exc, NotFoundError):
        return exceptions.NotFound(detail=detail, code=exc.code)
    if isinstance(exc, DomainValidationError):
        return exceptions.ValidationError(detail=detail, code=exc.code)
    if isinstance(exc, PermissionDeniedError):
        return exceptions.PermissionDenied(detail=detail, code=exc.code)
    if isinstance(exc, ConflictError):
        return Conflict(detail=detail, code=exc.code)
    if isinstance(exc, ExternalDependencyError):
        return BadGateway(detail=detail, code=exc.code)
    return exceptions.APIException(detail=detail, code=exc.code)


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Optional[Response]:
    """DRF ``EXCEPTION_HANDLER``: domain errors first, then the standard format."""
    if isinstance(exc, DomainError):
        log = logger.bind(error_code=exc.code, error_kind=type(exc).__name__)
        if isinstance(exc, ExternalDependencyError):
            log.error("api.external_dependency_failed", detail=str(exc))
        else:
            log.info("api.domain_error", detail=str(exc))
        exc = to_api_exception(exc)
    return exception_handler(exc, context)
