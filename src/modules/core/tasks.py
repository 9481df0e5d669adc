"""Celery tasks of the core module."""

from __future__ import annotations

from typing import Dict, Optional

import structlog
from celery import shared_task
from django.conf import settings
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: Optional[int] = None) -> Dict[str, int]:
    """Drain pending outbox rows onto the in-process event bus.

    Each row is handled in its own transaction so one poisoned event does not
    block the batch.  Unknown event types and handler errors mark the row as
    failed; it is retried until ``OutboxEvent.MAX_RETRIES``.
    """
    limit = batch_size or settings.OUTBOX_BATCH_SIZE
    event_ids = list(
        OutboxEvent.objects.publishable(OutboxEvent.MAX_RETRIES).values_list(
            "id", flat=True
        )[:limit]
    )

    published = failed = 0
    for event_id in event_ids:
        with transaction.atomic():
            outbox = (
                OutboxEvent.objects.publishable(OutboxEvent.MAX_RETRIES)
                .select_for_update()
                .filter(id=event_id)
                .first()
            )
            if outbox is None:
                continue
            log = logger.bind(
                outbox_id=str(outbox.id),
                event_type=outbox.event_type,
                aggregate_id=outbox.aggregate_id,
                correlation_id=outbox.correlation_id,
            )

            event_class = DomainEvent.lookup(outbox.event_type)
            if event_class is None:
                outbox.mark_as_failed(f"Unknown event type {outbox.event_type}.")
                log.warning("outbox.unknown_event_type")
                failed += 1
                continue

            try:
                with structlog.contextvars.bound_contextvars(
                    correlation_id=outbox.correlation_id
                ):
                    delivered = event_bus.publish(event_class.from_payload(outbox.payload))
            except Exception as exc:
                outbox.mark_as_failed(str(exc))
                log.exception("outbox.publish_failed")
                failed += 1
                continue

            outbox.mark_as_published()
            log.info("outbox.published", handlers=delivered)
            published += 1

    logger.info("outbox.batch_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
