"""
Conversational AI intake.

Each turn is stateless: the caller sends the full transcript, the service
forwards it (behind the system prompt) to an OpenAI-compatible
chat-completions gateway and returns the assistant's reply. The model may
call ``get_pricing_estimate`` once per turn; the tool is answered from the
checklist pricing table and the model is asked again with the result.

When the reply carries the final intake JSON the submission is normalized
and stored, and the turn is reported complete. Until then the reply is just
conversation.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.coercion import coerce_bool
from leadflow.core.exceptions import AIServiceUnavailable, InvalidSubmission, MalformedIntakePayload
from leadflow.models.lead import Lead
from leadflow.models.project_intake import ProjectIntake
from leadflow.schemas.pricing import PricingInputs
from leadflow.schemas.submission import ConversationTurn
from leadflow.services.ai_gateway import (
    chat_completion,
    ensure_configured,
    first_tool_call,
    gateway_client,
    tool_arguments,
    transcript_fingerprint,
)
from leadflow.services.leads import get_lead, save_submission
from leadflow.services.normalizer import normalize_intake_message
from leadflow.services.pricing import breakdown_text, compute_estimate

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are the project intake assistant for a small web studio that builds simple, focused websites for small businesses and solo professionals.

Talk like a person: short sentences, direct answers, no filler. Ask ONE question at a time.

Work through the conversation in this order:
1. Understand the business, the current site (if any), the timeline and whether they considered DIY builders.
2. Extract requirements from whatever they send, including pasted conversations with other assistants. Never ask them to retype what they already pasted.
   - page count (sites are capped at 7 pages)
   - content readiness: ready, light_editing or heavy_shaping
   - timeline: normal, or rush (48-72 hours)
   - features beyond a brochure site (gallery, blog, scheduling, newsletter)
   - design preferences: vibe, 1-3 inspiration sites, colors or styles to use or avoid, what each page should do
3. When you can scope the project, call get_pricing_estimate and present the breakdown it returns. Never quote prices any other way and never call an estimate final.
4. Handle objections plainly. Online stores are out of scope. If someone is not a fit, say so.
5. Ask whether they want to move forward. Only after they agree, collect full name, email, business name and current website.

When everything is collected, reply with ONLY this JSON object and no other text:

{
  "name": "",
  "email": "",
  "business_name": "",
  "website_url": "",
  "project_description": "",
  "goal": "",
  "pages": "",
  "content_ready": "",
  "timeline": "",
  "budget": "",
  "design_examples": "",
  "advanced_features": "",
  "update_preference": "",
  "fit": "good" | "borderline" | "not a fit",
  "intake_summary": "",
  "raw_chat": [],
  "vibe": "",
  "inspiration_sites": "",
  "color_style_preferences": "",
  "page_details": "",
  "lovable_build_prompt": ""
}

Fill every field. "raw_chat" is the whole conversation as {role, content} objects. "intake_summary" is 2-3 sentences. "lovable_build_prompt" is a complete build brief for the site: business, vibe, inspiration sites, color preferences and each page with its purpose."""

PRICING_TOOL = {
    "type": "function",
    "function": {
        "name": "get_pricing_estimate",
        "description": (
            "Calculate the project estimate with a line-by-line breakdown. "
            "Use it whenever there is enough information to scope the project."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "pageCount": {"type": "number", "description": "Number of pages (1-7)"},
                "contentReadiness": {
                    "type": "string",
                    "enum": ["ready", "light_editing", "heavy_shaping"],
                    "description": "ready = has content, light_editing = needs polish, heavy_shaping = needs rewriting",
                },
                "isRush": {"type": "boolean", "description": "Rush delivery (48-72 hours)"},
                "features": {
                    "type": "array",
                    "items": {"type": "string", "enum": ["gallery", "blog"]},
                    "description": "Optional add-on pages",
                },
            },
            "required": ["pageCount", "contentReadiness", "isRush"],
        },
    },
}


@dataclass
class ChatResult:
    message: str
    estimate: Optional[Dict[str, Any]] = None
    lead: Optional[Lead] = None
    intake: Optional[ProjectIntake] = None

    @property
    def complete(self) -> bool:
        return self.lead is not None


def pricing_tool_result(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Answer a ``get_pricing_estimate`` call from the checklist table.

    Arguments come straight from the model, so anything unusable is priced
    at its default rather than rejected.
    """
    estimate = compute_estimate(PricingInputs(
        page_count=arguments.get("pageCount"),
        content_readiness=arguments.get("contentReadiness") or "ready",
        features=arguments.get("features") or [],
        timeline="rush" if coerce_bool(arguments.get("isRush")) else "normal",
    ))
    return {
        "total": estimate.total,
        "base": estimate.breakdown.base,
        "addOns": estimate.breakdown.add_ons,
        "pageCount": estimate.page_count,
        "breakdown_text": breakdown_text(estimate),
    }


async def _complete(client: httpx.AsyncClient, messages: List[Dict[str, Any]], with_tools: bool) -> Dict[str, Any]:
    return await chat_completion(client, SYSTEM_PROMPT, messages, tools=[PRICING_TOOL] if with_tools else None)


async def _answer_tool_call(
    client: httpx.AsyncClient,
    messages: List[Dict[str, Any]],
    reply: Dict[str, Any],
) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    tool_call = first_tool_call(reply) or {}
    function = tool_call.get("function")
    if not isinstance(function, dict) or function.get("name") != PRICING_TOOL["function"]["name"]:
        logger.warning("Ignoring unusable tool call %s", tool_call.get("function"))
        return None, None

    estimate = pricing_tool_result(tool_arguments(function))

    follow_up = [
        *messages,
        reply,
        {"role": "tool", "tool_call_id": tool_call.get("id"), "content": json.dumps(estimate)},
    ]
    try:
        answer = await _complete(client, follow_up, with_tools=False)
    except AIServiceUnavailable:
        # Keep whatever the first reply said
        logger.error("Follow-up after pricing tool call failed")
        return None, estimate
    return answer.get("content"), estimate


async def assistant_reply(transcript: List[ConversationTurn]) -> Tuple[str, Optional[Dict[str, Any]]]:
    """One stateless model turn. Returns ``(message, pricing estimate or None)``."""
    ensure_configured("intake assistant")

    messages = [turn.model_dump() for turn in transcript]
    async with gateway_client() as client:
        reply = await _complete(client, messages, with_tools=True)
        content = reply.get("content")
        estimate = None
        if reply.get("tool_calls"):
            follow_up_content, estimate = await _answer_tool_call(client, messages, reply)
            content = follow_up_content or content

    if not content or not isinstance(content, str):
        logger.error("AI gateway reply had no content")
        raise AIServiceUnavailable("The intake assistant returned an empty response")
    return content, estimate


async def find_completed_intake(db: AsyncSession, fingerprint: str) -> Optional[ProjectIntake]:
    result = await db.execute(
        select(ProjectIntake)
        .where(ProjectIntake.transcript_hash == fingerprint)
        .order_by(ProjectIntake.created_at)
    )
    return result.scalars().first()


async def chat_turn(db: AsyncSession, transcript: List[ConversationTurn]) -> ChatResult:
    """Run one turn and store the intake once the final JSON arrives.

    Resending a transcript that already completed returns the stored
    records instead of saving them again.
    """
    message, estimate = await assistant_reply(transcript)
    result = ChatResult(message=message, estimate=estimate)

    full_transcript = [turn.model_dump() for turn in transcript]
    full_transcript.append({"role": "assistant", "content": message})
    try:
        submission = normalize_intake_message(message, transcript=full_transcript)
    except MalformedIntakePayload:
        return result
    except InvalidSubmission as e:
        logger.warning("Intake JSON arrived without usable identity: %s", e.message)
        return result

    fingerprint = transcript_fingerprint(transcript)
    existing = await find_completed_intake(db, fingerprint)
    if existing is not None and existing.lead_id is not None:
        logger.info("Completing turn resent; returning intake %s", existing.id)
        result.lead, result.intake = await get_lead(db, existing.lead_id), existing
        return result

    result.lead, result.intake = await save_submission(db, submission, transcript_hash=fingerprint)
    logger.info("Intake chat completed for %s (intake %s)", result.lead.email, result.intake.id)
    return result
