"""
OpenAI-compatible chat-completions gateway.

Shared by the prospect intake chat, the client request chat and the request
classifier. Every failure the caller can do nothing about (not configured,
rate limited, non-200, unreadable body) becomes :class:`AIServiceUnavailable`.
"""

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel

from leadflow.core.config import settings
from leadflow.core.exceptions import AIServiceUnavailable

logger = logging.getLogger(__name__)


def ensure_configured(assistant: str) -> None:
    if not settings.ai_configured:
        logger.warning("%s requested but the AI gateway is not configured", assistant)
        raise AIServiceUnavailable(f"The {assistant} is not configured")


def gateway_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.AI_TIMEOUT_SECONDS)


async def chat_completion(
    client: httpx.AsyncClient,
    system_prompt: str,
    messages: List[Dict[str, Any]],
    tools: Optional[List[Dict[str, Any]]] = None,
    tool_choice: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """POST one chat completion and return the first choice's message."""
    payload: Dict[str, Any] = {
        "model": settings.AI_MODEL,
        "messages": [{"role": "system", "content": system_prompt}, *messages],
        "stream": False,
    }
    if tools:
        payload["tools"] = tools
    if tool_choice:
        payload["tool_choice"] = tool_choice

    try:
        response = await client.post(
            settings.AI_GATEWAY_URL,
            headers={
                "Authorization": f"Bearer {settings.AI_API_KEY}",
                "Content-Type": "application/json",
            },
            json=payload,
        )
    except httpx.HTTPError as e:
        logger.error("AI gateway request failed: %s", e)
        raise AIServiceUnavailable("The assistant is unavailable, please try again")

    if response.status_code == 429:
        logger.warning("AI gateway rate limited the request")
        raise AIServiceUnavailable("The assistant is busy, please try again in a moment")
    if response.status_code != 200:
        logger.error("AI gateway error: %s - %s", response.status_code, response.text[:500])
        raise AIServiceUnavailable("The assistant is unavailable, please try again")

    try:
        message = response.json()["choices"][0]["message"]
    except (ValueError, KeyError, IndexError, TypeError):
        message = None
    if not isinstance(message, dict):
        logger.error("AI gateway returned an unexpected body: %s", response.text[:500])
        raise AIServiceUnavailable("The assistant returned an invalid response")
    return message


def first_tool_call(reply: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    tool_calls = reply.get("tool_calls")
    if not isinstance(tool_calls, list) or not tool_calls or not isinstance(tool_calls[0], dict):
        return None
    return tool_calls[0]


def tool_arguments(function: Dict[str, Any]) -> Dict[str, Any]:
    """Decoded tool-call arguments, ``{}`` when they are not a JSON object."""
    arguments = function.get("arguments")
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError:
            return {}
    return arguments if isinstance(arguments, dict) else {}


def transcript_fingerprint(transcript: Sequence[BaseModel]) -> str:
    """Stable digest of a caller's transcript; a resent turn has the same one."""
    body = json.dumps([turn.model_dump() for turn in transcript], sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(body.encode("utf-8")).hexdigest()
