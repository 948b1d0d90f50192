"""Celery tasks for the core module: the transactional outbox relay."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

RELAY_BATCH_SIZE = 100


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int = RELAY_BATCH_SIZE) -> dict[str, int]:
    """Publish deliverable outbox rows on the in-process event bus.

    Rows are locked (``skip_locked``) so concurrent workers never deliver
    the same event twice.  A handler failure marks only that row as failed.
    """
    published = failed = skipped = 0

    with transaction.atomic():
        events = list(
            OutboxEvent.objects.deliverable()
            .select_for_update(skip_locked=True)[:batch_size]
        )
        for outbox_event in events:
            log = logger.bind(
                outbox_id=str(outbox_event.id),
                event_type=outbox_event.event_type,
                aggregate_id=outbox_event.aggregate_id,
            )
            event_class = event_bus.event_class_for(outbox_event.event_type)
            if event_class is None:
                log.warning("outbox.no_subscribers")
                outbox_event.mark_as_published()
                skipped += 1
                continue
            try:
                event_bus.publish(event_class.from_payload(outbox_event.payload))
            except Exception as exc:
                log.error("outbox.publish_failed", error=str(exc), exc_info=True)
                outbox_event.mark_as_failed(str(exc))
                failed += 1
                continue
            outbox_event.mark_as_published()
            published += 1

    logger.info(
        "outbox.relay_completed",
        published=published,
        failed=failed,
        skipped=skipped,
    )
    return {"published": published, "failed": failed, "skipped": skipped}
