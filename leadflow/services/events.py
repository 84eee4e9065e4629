"""Pipeline events for the external notification dispatcher.

Events are written in the caller's transaction (so they commit or roll back
with the change they describe). After commit, ``dispatch_events`` forwards
them to the optional webhook; delivery is best effort and never fails the
request that produced them.
"""

import logging
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.models.pipeline_event import EventType, PipelineEvent

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 5.0


def record_event(
    db: AsyncSession,
    event_type: EventType,
    entity_type: str,
    entity_id: UUID,
    payload: Optional[Dict[str, Any]] = None,
) -> PipelineEvent:
    """Add an event to the session. The caller commits."""
    event = PipelineEvent(
        type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        payload=payload or {},
    )
    db.add(event)
    logger.debug("Queued %s event for %s %s", event_type.value, entity_type, entity_id)
    return event


def event_body(event: PipelineEvent) -> Dict[str, Any]:
    return {
        "id": str(event.id),
        "type": event.type.value,
        "entity_type": event.entity_type,
        "entity_id": str(event.entity_id),
        "payload": event.payload,
    }


async def dispatch_events(events: Iterable[PipelineEvent]) -> int:
    """POST committed events to the notification webhook. Returns the delivered count."""
    events = list(events)
    if not events or not settings.NOTIFICATION_WEBHOOK_URL:
        return 0

    delivered = 0
    async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS) as client:
        for event in events:
            try:
                response = await client.post(settings.NOTIFICATION_WEBHOOK_URL, json=event_body(event))
                response.raise_for_status()
                delivered += 1
            except httpx.HTTPError as e:
                logger.warning(
                    "Notification webhook failed for %s event %s: %s",
                    event.type.value,
                    event.id,
                    e,
                )
    logger.info("Dispatched %d/%d pipeline events", delivered, len(events))
    return delivered
