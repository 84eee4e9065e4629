"""
Client-portal request chat.

A signed-in client describes a change in conversation; once the assistant
has enough detail it answers with a single JSON object
(title, description, size_tier, priority, quoted_price_cents). That object
becomes an update request through the same quota and tier pricing as the
form. The model's ``quoted_price_cents`` is ignored: the tier decides the
price.

Turns are stateless like the intake chat. Resending a transcript that already
produced a request returns that request.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import AIServiceUnavailable, MalformedIntakePayload
from leadflow.models.update_request import RequestPriority, SizeTier, UpdateRequest
from leadflow.schemas.submission import ConversationTurn
from leadflow.schemas.update_request import UpdateRequestCreate
from leadflow.services.ai_gateway import chat_completion, ensure_configured, gateway_client, transcript_fingerprint
from leadflow.services.conversion import get_client
from leadflow.services.intake_parser import extract_intake_json
from leadflow.services.normalizer import clean_str
from leadflow.services.update_requests import create_request

logger = logging.getLogger(__name__)

REQUEST_CHAT_PROMPT = """You help existing clients of a small web studio describe changes they want on their website, and tell them what the change costs.

Be friendly and brief. Ask follow-up questions until you know exactly what should change and where.

Size the change with these tiers:
- tiny (free): one typo, one sentence or one image swap
- small ($50): one section or block needs updating
- medium ($100): a whole page or a new section
- large (quote needed): anything bigger, or when the scope is unclear

When you have enough detail, reply with ONLY this JSON object and no other text:
{
  "title": "short summary of the request",
  "description": "what should change, where, and any content to use",
  "size_tier": "tiny" | "small" | "medium" | "large",
  "priority": "low" | "normal" | "high",
  "quoted_price_cents": 0 | 5000 | 10000 | null
}

quoted_price_cents follows the tier: tiny 0, small 5000, medium 10000, large null.
Do not send the JSON until the request is clear."""


@dataclass
class RequestChatResult:
    message: str
    request: Optional[UpdateRequest] = None

    @property
    def complete(self) -> bool:
        return self.request is not None


def request_from_payload(payload: Mapping[str, Any]) -> UpdateRequestCreate:
    """Validate the assistant's request JSON. Incomplete JSON means keep chatting."""
    title = clean_str(payload.get("title"))
    description = clean_str(payload.get("description"))
    if not title or not description:
        raise MalformedIntakePayload("Request JSON is missing a title or description")

    try:
        size_tier = SizeTier(str(payload.get("size_tier") or "").strip().lower())
    except ValueError:
        raise MalformedIntakePayload(
            "Request JSON has no usable size tier",
            details={"size_tier": payload.get("size_tier")},
        )

    try:
        priority = RequestPriority(str(payload.get("priority") or "normal").strip().lower())
    except ValueError:
        priority = RequestPriority.NORMAL

    return UpdateRequestCreate(
        title=title[:255],
        description=description,
        size_tier=size_tier,
        priority=priority,
    )


async def request_assistant_reply(transcript: List[ConversationTurn]) -> str:
    ensure_configured("request assistant")
    async with gateway_client() as client:
        reply = await chat_completion(client, REQUEST_CHAT_PROMPT, [turn.model_dump() for turn in transcript])

    content = reply.get("content")
    if not content or not isinstance(content, str):
        logger.error("Request chat reply had no content")
        raise AIServiceUnavailable("The request assistant returned an empty response")
    return content


async def find_chat_request(db: AsyncSession, client_id: UUID, fingerprint: str) -> Optional[UpdateRequest]:
    result = await db.execute(
        select(UpdateRequest).where(
            UpdateRequest.client_id == client_id,
            UpdateRequest.transcript_hash == fingerprint,
        )
    )
    return result.scalars().first()


async def request_chat_turn(
    db: AsyncSession,
    client_id: UUID,
    transcript: List[ConversationTurn],
) -> RequestChatResult:
    """Run one portal chat turn; create the update request once the JSON arrives."""
    client = await get_client(db, client_id)
    client_id = client.id

    message = await request_assistant_reply(transcript)
    result = RequestChatResult(message=message)
    try:
        data = request_from_payload(extract_intake_json(message))
    except MalformedIntakePayload:
        return result

    fingerprint = transcript_fingerprint(transcript)
    existing = await find_chat_request(db, client_id, fingerprint)
    if existing is not None:
        logger.info("Request chat turn resent; returning request %s", existing.id)
        result.request = existing
        return result

    result.request = await create_request(db, client_id, data, transcript_hash=fingerprint)
    logger.info("Request chat created request %s for client %s", result.request.id, client_id)
    return result
