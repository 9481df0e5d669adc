import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()

CORRELATION_HEADER = "X-Request-ID"


def get_correlation_id() -> str:
    """Correlation ID of the request being served, or ``""`` outside one."""
    return correlation_id_var.get()


class CorrelationIdMiddleware:
    """Attach a correlation ID to every request and every log line under it.

    Reads ``X-Request-ID`` from the request or generates a UUID4, binds it to
    structlog's context variables (so order and stock log lines emitted by
    the services carry it) and echoes it back in the response header.  Outbox
    rows written during the request copy it, so the Celery drain can log
    handler output under the same ID.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        token = correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=cid)

        started = time.monotonic()
        logger.info(
            "request_started",
            method=request.method,
            path=request.get_full_path(),
        )

        try:
            response = self.get_response(request)
        finally:
            correlation_id_var.reset(token)

        logger.info(
            "request_finished",
            method=request.method,
            path=request.get_full_path(),
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )

        response[CORRELATION_HEADER] = cid
        return response
