"""DRF exception handler producing one error envelope for the whole API.

Shape::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": ...}]}

Domain errors from ``shared.domain.exceptions`` are mapped here, so views
let them propagate instead of catching each kind.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.exceptions import (
    ConflictError,
    DomainError,
    InsufficientStock,
    InvalidStateTransition,
    NotFound,
)

logger = structlog.get_logger(__name__)

DOMAIN_STATUS_CODES = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InsufficientStock: status.HTTP_409_CONFLICT,
    InvalidStateTransition: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
}


def _status_for(exc: DomainError) -> int:
    for kind, code in DOMAIN_STATUS_CODES.items():
        if isinstance(exc, kind):
            return code
    return status.HTTP_400_BAD_REQUEST


def _flatten(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            name = key if attr is None else f"{attr}.{key}"
            top_level = attr is None and key in ("detail", "non_field_errors")
            errors.extend(_flatten(value, None if top_level else name))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, value in enumerate(detail):
            nested = isinstance(value, (dict, list))
            name = f"{attr}.{index}" if nested and attr else attr
            errors.extend(_flatten(value, name))
        return errors
    return [
        {
            "code": getattr(detail, "code", "error"),
            "detail": str(detail),
            "attr": attr,
        }
    ]


def api_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    if isinstance(exc, DomainError):
        status_code = _status_for(exc)
        logger.info(
            "api.domain_error",
            code=exc.code,
            status_code=status_code,
            **{k: str(v) for k, v in exc.context.items()},
        )
        error = {"code": exc.code, "detail": exc.message, "attr": None}
        error.update({k: str(v) for k, v in exc.context.items()})
        return Response(
            {"type": "client_error", "errors": [error]},
            status=status_code,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    error_type = (
        "validation_error" if isinstance(exc, ValidationError) else "client_error"
    )
    if response.status_code >= 500:
        error_type = "server_error"
    response.data = {"type": error_type, "errors": _flatten(response.data)}
    return response
