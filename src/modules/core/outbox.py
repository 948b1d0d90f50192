"""Write an aggregate's pending domain events to the outbox table."""

from __future__ import annotations

from typing import Any

import structlog

from modules.core.models import OutboxEvent

logger = structlog.get_logger(__name__)


def record_domain_events(entity: Any, topic: str) -> int:
    """Persist and clear ``entity.domain_events``; must run inside the caller's transaction."""
    events = entity.domain_events
    OutboxEvent.objects.bulk_create(
        [
            OutboxEvent(
                event_type=event.event_name,
                aggregate_id=str(event.aggregate_id),
                payload=event.to_payload(),
                topic=topic,
            )
            for event in events
        ]
    )
    entity.clear_domain_events()
    if events:
        logger.info(
            "outbox.events_recorded",
            topic=topic,
            aggregate_id=str(entity.pk),
            event_types=[event.event_name for event in events],
        )
    return len(events)
