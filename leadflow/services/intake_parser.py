"""Extraction of the final JSON object from an intake assistant message.

The intake model finishes the conversation by emitting free text followed by
a single JSON object. Until that object shows up (and parses), the
conversation is simply still in progress.
"""

import json
import logging

from leadflow.core.exceptions import MalformedIntakePayload

logger = logging.getLogger(__name__)


def _matching_brace(text: str, start: int) -> int:
    """Index of the ``}`` closing the ``{`` at ``start``, or -1.

    Braces inside JSON string literals are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def extract_intake_json(message: str | None) -> dict:
    """Return the JSON object embedded in ``message``.

    Scans from the first ``{`` to its matching ``}``; if that span does not
    parse, falls back to the span ending at the last ``}``. Raises
    :class:`MalformedIntakePayload` when neither yields a JSON object.
    """
    if not message:
        raise MalformedIntakePayload("Empty assistant message")

    start = message.find("{")
    if start == -1:
        raise MalformedIntakePayload("No JSON object in assistant message")

    candidates = []
    end = _matching_brace(message, start)
    if end != -1:
        candidates.append(message[start:end + 1])
    last = message.rfind("}")
    if last > start and last != end:
        candidates.append(message[start:last + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed

    logger.debug("Intake JSON not parseable yet (%d chars scanned)", len(message) - start)
    raise MalformedIntakePayload(
        "Assistant message does not contain a complete JSON object",
        details={"offset": start},
    )
