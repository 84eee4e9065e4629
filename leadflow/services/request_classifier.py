"""Free/paid classification of client edit requests.

The model is forced to answer through the ``classify_edit_request`` tool.
Its price is a suggestion stored next to the tier quote, never in place of
it.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from leadflow.core.config import settings
from leadflow.core.exceptions import AIServiceUnavailable, InvalidSubmission
from leadflow.schemas.update_request import RequestClassification
from leadflow.services.ai_gateway import (
    chat_completion,
    ensure_configured,
    first_tool_call,
    gateway_client,
    tool_arguments,
)

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 10
PRICE_CHOICES = [0, 50, 100, 150, 200, 250, 300, 350]

CLASSIFY_PROMPT = """You sort website update requests into free and paid edits.

Free edits:
- fixing a typo or spelling mistake
- swapping an existing photo for a new one
- changing a few words or a single sentence
- updating a phone number, address, email or opening hours
- replacing text inside an existing block
- changing one or two gallery images without touching the layout
- adding or removing one item in an existing list

Paid edits:
- any layout change
- new sections or pages
- rewriting several paragraphs or restructuring content
- changes to navigation, headings or page flow
- new functionality such as forms, galleries, buttons or embeds
- design revisions beyond a small tweak
- anything that takes more than a few minutes

Prices: small paid edits $50, medium edits $100-$150, large edits (new sections, pages or features) $200-$350.
When the request is unclear, set confidence to "low" instead of guessing details."""

CLASSIFY_TOOL = {
    "type": "function",
    "function": {
        "name": "classify_edit_request",
        "description": "Classify a website edit request and recommend a price",
        "parameters": {
            "type": "object",
            "properties": {
                "type": {"type": "string", "enum": ["free", "paid"]},
                "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
                "explanation": {"type": "string"},
                "recommended_price": {"type": "number", "enum": PRICE_CHOICES},
            },
            "required": ["type", "confidence", "explanation", "recommended_price"],
            "additionalProperties": False,
        },
    },
}


async def classify_request(description: str) -> RequestClassification:
    text = (description or "").strip()
    if len(text) < MIN_DESCRIPTION_LENGTH:
        raise InvalidSubmission(
            "Description is too short, please add more detail",
            details={"min_length": MIN_DESCRIPTION_LENGTH},
        )
    ensure_configured("request classifier")

    async with gateway_client() as client:
        reply = await chat_completion(
            client,
            CLASSIFY_PROMPT,
            [{"role": "user", "content": f'Classify this website edit request: "{text}"'}],
            tools=[CLASSIFY_TOOL],
            tool_choice={"type": "function", "function": {"name": "classify_edit_request"}},
        )

    tool_call = first_tool_call(reply) or {}
    function = tool_call.get("function")
    arguments = tool_arguments(function) if isinstance(function, dict) else {}
    try:
        return RequestClassification.model_validate(arguments)
    except ValidationError:
        logger.error("Classifier returned an incomplete classification: %s", arguments)
        raise AIServiceUnavailable("The request classifier returned an invalid response")


async def suggest_price_cents(description: str) -> Optional[int]:
    """Classifier price in cents, or None when no usable classification is available."""
    if not settings.ai_configured:
        return None
    try:
        classification = await classify_request(description)
    except (AIServiceUnavailable, InvalidSubmission) as e:
        logger.warning("Skipping price suggestion: %s", e.message)
        return None
    return classification.price_cents
