"""Tests for the conversational intake gateway calls and event dispatch."""

import json
import uuid

import httpx
import pytest
from unittest.mock import patch, AsyncMock

from leadflow.core.config import settings
from leadflow.core.exceptions import AIServiceUnavailable
from leadflow.models.pipeline_event import EventType, PipelineEvent
from leadflow.schemas.submission import ConversationTurn
from leadflow.services.events import dispatch_events
from leadflow.services.intake_chat import assistant_reply, pricing_tool_result

TRANSCRIPT = [ConversationTurn(role="user", content="Four pages, need rewriting, no rush")]


@pytest.fixture
def ai_configured():
    with patch.object(settings, "AI_GATEWAY_URL", "https://gateway.test/v1/chat/completions"), \
         patch.object(settings, "AI_API_KEY", "test-key"):
        yield


def test_pricing_tool_uses_checklist_table():
    result = pricing_tool_result({"pageCount": 4, "contentReadiness": "heavy_shaping", "isRush": False})
    assert result["total"] == 1250
    assert result["addOns"] == {"Content Shaping": 300}
    assert "Total: $1250" in result["breakdown_text"]


def test_pricing_tool_tolerates_missing_arguments():
    assert pricing_tool_result({})["total"] == 500


def test_pricing_tool_coerces_loose_model_arguments():
    result = pricing_tool_result({
        "pageCount": "4 pages",
        "contentReadiness": 7,
        "isRush": "false",
        "features": "blog",
    })
    assert result["pageCount"] == 4
    assert result["addOns"] == {"Blog": 150}
    assert result["total"] == 1100


@pytest.mark.asyncio
async def test_tool_call_with_fractional_pages_still_prices(ai_configured):
    tool_reply = {
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": "call_2",
            "function": {"name": "get_pricing_estimate", "arguments": json.dumps({"pageCount": 2.5, "isRush": True})},
        }],
    }
    final = {"role": "assistant", "content": "About $850 with rush delivery."}

    with patch("leadflow.services.intake_chat._complete", new_callable=AsyncMock, side_effect=[tool_reply, final]):
        message, estimate = await assistant_reply(TRANSCRIPT)

    assert message == final["content"]
    assert estimate["pageCount"] == 2
    assert estimate["total"] == 850


@pytest.mark.asyncio
async def test_malformed_tool_call_is_ignored(ai_configured):
    reply = {"role": "assistant", "content": "Tell me more.", "tool_calls": {"oops": True}}
    with patch("leadflow.services.intake_chat._complete", new_callable=AsyncMock, return_value=reply) as complete:
        message, estimate = await assistant_reply(TRANSCRIPT)

    assert message == "Tell me more."
    assert estimate is None
    complete.assert_awaited_once()


@pytest.mark.asyncio
async def test_reply_without_tool_call(ai_configured):
    with patch(
        "leadflow.services.intake_chat._complete",
        new_callable=AsyncMock,
        return_value={"role": "assistant", "content": "What does your business do?"},
    ) as complete:
        message, estimate = await assistant_reply(TRANSCRIPT)

    assert message == "What does your business do?"
    assert estimate is None
    complete.assert_awaited_once()


@pytest.mark.asyncio
async def test_tool_call_gets_follow_up(ai_configured):
    tool_reply = {
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": "call_1",
            "type": "function",
            "function": {
                "name": "get_pricing_estimate",
                "arguments": json.dumps({"pageCount": 4, "contentReadiness": "heavy_shaping", "isRush": False}),
            },
        }],
    }
    final = {"role": "assistant", "content": "That comes to $1,250."}

    with patch("leadflow.services.intake_chat._complete", new_callable=AsyncMock, side_effect=[tool_reply, final]) as complete:
        message, estimate = await assistant_reply(TRANSCRIPT)

    assert message == "That comes to $1,250."
    assert estimate["total"] == 1250
    follow_up_messages = complete.await_args_list[1].args[1]
    assert follow_up_messages[-1]["role"] == "tool"
    assert follow_up_messages[-1]["tool_call_id"] == "call_1"
    assert json.loads(follow_up_messages[-1]["content"])["total"] == 1250


@pytest.mark.asyncio
async def test_failed_follow_up_keeps_first_reply(ai_configured):
    tool_reply = {
        "role": "assistant",
        "content": "Let me price that.",
        "tool_calls": [{"id": "c", "function": {"name": "get_pricing_estimate", "arguments": "{}"}}],
    }
    with patch(
        "leadflow.services.intake_chat._complete",
        new_callable=AsyncMock,
        side_effect=[tool_reply, AIServiceUnavailable("down")],
    ):
        message, estimate = await assistant_reply(TRANSCRIPT)

    assert message == "Let me price that."
    assert estimate["total"] == 500


@pytest.mark.asyncio
async def test_gateway_rate_limit_is_unavailable(ai_configured):
    response = httpx.Response(429, request=httpx.Request("POST", settings.AI_GATEWAY_URL))
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
        with pytest.raises(AIServiceUnavailable):
            await assistant_reply(TRANSCRIPT)


@pytest.mark.asyncio
async def test_gateway_body_is_parsed(ai_configured):
    response = httpx.Response(
        200,
        json={"choices": [{"message": {"role": "assistant", "content": "Hello!"}}]},
        request=httpx.Request("POST", settings.AI_GATEWAY_URL),
    )
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response) as post:
        message, _ = await assistant_reply(TRANSCRIPT)

    assert message == "Hello!"
    payload = post.await_args.kwargs["json"]
    assert payload["messages"][0]["role"] == "system"
    assert payload["messages"][1] == {"role": "user", "content": TRANSCRIPT[0].content}
    assert payload["tools"][0]["function"]["name"] == "get_pricing_estimate"


def _event():
    return PipelineEvent(
        id=uuid.uuid4(),
        type=EventType.LEAD_CREATED,
        entity_type="lead",
        entity_id=uuid.uuid4(),
        payload={"email": "a@x.com"},
    )


@pytest.mark.asyncio
async def test_dispatch_skipped_without_webhook():
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as post:
        assert await dispatch_events([_event()]) == 0
    post.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatch_failures_are_swallowed():
    url = "https://hooks.test/leadflow"
    ok = httpx.Response(200, request=httpx.Request("POST", url))
    with patch.object(settings, "NOTIFICATION_WEBHOOK_URL", url), \
         patch("httpx.AsyncClient.post", new_callable=AsyncMock, side_effect=[ok, httpx.ConnectError("boom")]) as post:
        delivered = await dispatch_events([_event(), _event()])

    assert delivered == 1
    assert post.await_count == 2
    body = post.await_args_list[0].kwargs["json"]
    assert body["type"] == "lead_created"
    assert body["payload"] == {"email": "a@x.com"}
