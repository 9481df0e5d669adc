import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import connections
from django.db.models import Count
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

from modules.core.models import EventStatus, OutboxEvent

logger = structlog.get_logger()

HEALTH_CACHE_KEY = "_health_check"


def _check_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _check_cache() -> None:
    cache.set(HEALTH_CACHE_KEY, "ok", 10)
    if cache.get(HEALTH_CACHE_KEY) != "ok":
        raise ConnectionError("Cache read failed")


def _probe(name: str, check: Callable[[], None]) -> Dict[str, Any]:
    started = time.monotonic()
    try:
        check()
    except Exception:
        logger.error("health.probe_failed", probe=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - started) * 1000, 2),
    }


def _outbox_backlog() -> Dict[str, int]:
    backlog = {"pending": 0, "failed": 0}
    rows = (
        OutboxEvent.objects.filter(status__in=[EventStatus.PENDING, EventStatus.FAILED])
        .values("status")
        .annotate(total=Count("id"))
    )
    for row in rows:
        backlog[row["status"].lower()] = row["total"]
    return backlog


def health_check(request: HttpRequest) -> JsonResponse:
    """Report database, cache and outbox backlog.

    The outbox backlog is informational: a growing count means the Celery
    worker is not draining events, but orders keep being accepted.
    """
    services: Dict[str, Dict[str, Any]] = {
        "database": _probe("database", _check_database),
        "cache": _probe("cache", _check_cache),
    }
    healthy = all(probe["status"] == "up" for probe in services.values())

    if services["database"]["status"] == "up":
        services["outbox"] = _outbox_backlog()

    status = "healthy" if healthy else "unhealthy"
    logger.info("health.checked", status=status)

    return JsonResponse(
        {
            "status": status,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
