"""Client update requests: creation under quota, listing and status changes."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import InvalidSubmission, NotFound, QuotaExceeded
from leadflow.core.time import utcnow
from leadflow.models.pipeline_event import EventType
from leadflow.models.update_request import RequestStatus, UpdateRequest
from leadflow.schemas.update_request import Attachment, UpdateRequestCreate
from leadflow.services.conversion import get_client
from leadflow.services.events import dispatch_events, record_event
from leadflow.services.quota import can_submit, quote_for, record_submission
from leadflow.services.request_classifier import suggest_price_cents

logger = logging.getLogger(__name__)


def validate_attachments(attachments: List[Attachment]) -> List[dict]:
    """Attachments are uploaded before the request exists; only check the references."""
    too_large = [a.name for a in attachments if a.size > settings.ATTACHMENT_MAX_BYTES]
    if too_large:
        raise InvalidSubmission(
            "Attachment exceeds the maximum size",
            details={"files": too_large, "max_bytes": settings.ATTACHMENT_MAX_BYTES},
        )
    return [a.model_dump() for a in attachments]


async def create_request(
    db: AsyncSession,
    client_id: UUID,
    data: UpdateRequestCreate,
    transcript_hash: Optional[str] = None,
) -> UpdateRequest:
    client = await get_client(db, client_id)

    if not await can_submit(db, client.id):
        logger.warning("Client %s hit the open-request limit", client.id)
        raise QuotaExceeded(
            f"Only {settings.OPEN_REQUEST_LIMIT} open requests are allowed at a time",
            details={"client_id": str(client.id), "limit": settings.OPEN_REQUEST_LIMIT},
        )

    attachments = validate_attachments(data.attachments)
    quote = quote_for(data.size_tier)
    ai_price_cents = await suggest_price_cents(data.description)

    request = UpdateRequest(
        client_id=client.id,
        title=data.title.strip(),
        description=data.description.strip(),
        size_tier=quote.size_tier,
        quoted_price_cents=quote.price_cents,
        ai_price_cents=ai_price_cents,
        priority=data.priority,
        attachments=attachments,
        transcript_hash=transcript_hash,
    )
    db.add(request)
    await db.flush()
    event = record_event(db, EventType.REQUEST_CREATED, "update_request", request.id, {
        "client_id": str(client.id),
        "title": request.title,
        "size_tier": quote.size_tier.value,
        "quoted_price_cents": quote.price_cents,
        "ai_price_cents": ai_price_cents,
        "priority": request.priority.value,
    })
    await db.commit()
    await db.refresh(request)

    await record_submission(db, client.id)
    logger.info("Created %s update request %s for client %s", quote.size_tier.value, request.id, client.id)
    await dispatch_events([event])
    return request


async def list_requests(
    db: AsyncSession,
    client_id: UUID,
    status: Optional[RequestStatus] = None,
) -> List[UpdateRequest]:
    await get_client(db, client_id)
    query = select(UpdateRequest).where(UpdateRequest.client_id == client_id)
    if status:
        query = query.where(UpdateRequest.status == status)
    result = await db.execute(query.order_by(UpdateRequest.created_at.desc()))
    return list(result.scalars().all())


async def get_request(db: AsyncSession, request_id: UUID) -> UpdateRequest:
    result = await db.execute(select(UpdateRequest).where(UpdateRequest.id == request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise NotFound("Update request not found", details={"request_id": str(request_id)})
    return request


async def update_request_status(
    db: AsyncSession,
    request_id: UUID,
    status: RequestStatus,
    internal_notes: Optional[str] = None,
) -> UpdateRequest:
    """Set a request's status. ``completed_at`` tracks time of entry into done."""
    request = await get_request(db, request_id)
    previous = request.status

    if internal_notes is not None:
        request.internal_notes = internal_notes

    events = []
    if previous != status:
        request.status = status
        if status == RequestStatus.DONE:
            request.completed_at = utcnow()
        elif previous == RequestStatus.DONE:
            request.completed_at = None
        events.append(record_event(db, EventType.REQUEST_STATUS_CHANGED, "update_request", request.id, {
            "client_id": str(request.client_id),
            "from": previous.value,
            "to": status.value,
        }))

    await db.commit()
    await db.refresh(request)
    if events:
        logger.info("Request %s moved from %s to %s", request.id, previous.value, status.value)
        await dispatch_events(events)
    return request
