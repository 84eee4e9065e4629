"""Tests for the portal request chat and the free/paid request classifier."""

import json

import httpx
import pytest
from unittest.mock import patch, AsyncMock
from sqlalchemy import func, select

from leadflow.core.config import settings
from leadflow.core.exceptions import AIServiceUnavailable, InvalidSubmission, MalformedIntakePayload, QuotaExceeded
from leadflow.models.update_request import RequestPriority, SizeTier, UpdateRequest
from leadflow.schemas.submission import ConversationTurn
from leadflow.services.request_chat import request_chat_turn, request_from_payload
from leadflow.services.request_classifier import classify_request, suggest_price_cents

TRANSCRIPT = [ConversationTurn(role="user", content="Can you add a testimonials section to the home page?")]

FINAL_REPLY = (
    "Got it, here is your request.\n"
    '{"title": "Testimonials section", "description": "Add three client quotes under the hero", '
    '"size_tier": "small", "priority": "HIGH", "quoted_price_cents": 99999}'
)


@pytest.fixture
def ai_configured():
    with patch.object(settings, "AI_GATEWAY_URL", "https://gateway.test/v1/chat/completions"), \
         patch.object(settings, "AI_API_KEY", "test-key"):
        yield


def _classifier_response(arguments):
    return httpx.Response(
        200,
        json={"choices": [{"message": {
            "role": "assistant",
            "content": None,
            "tool_calls": [{
                "id": "call_1",
                "type": "function",
                "function": {"name": "classify_edit_request", "arguments": json.dumps(arguments)},
            }],
        }}]},
        request=httpx.Request("POST", settings.AI_GATEWAY_URL),
    )


async def _request_count(db) -> int:
    result = await db.execute(select(func.count(UpdateRequest.id)))
    return result.scalar()


def test_request_payload_maps_tier_and_priority():
    data = request_from_payload({
        "title": " Fix footer ",
        "description": "Update the phone number",
        "size_tier": "Tiny",
        "priority": "urgent",
    })
    assert data.title == "Fix footer"
    assert data.size_tier == SizeTier.TINY
    assert data.priority == RequestPriority.NORMAL


@pytest.mark.parametrize("payload", [
    {"description": "No title", "size_tier": "small"},
    {"title": "No tier", "description": "Something"},
    {"title": "Bad tier", "description": "Something", "size_tier": "enormous"},
])
def test_incomplete_request_payload_keeps_chatting(payload):
    with pytest.raises(MalformedIntakePayload):
        request_from_payload(payload)


@pytest.mark.asyncio
async def test_chat_turn_creates_request_at_tier_price(db, converted_client):
    client_id = converted_client.id
    with patch(
        "leadflow.services.request_chat.request_assistant_reply",
        new_callable=AsyncMock,
        return_value=FINAL_REPLY,
    ):
        result = await request_chat_turn(db, client_id, TRANSCRIPT)

    assert result.complete is True
    assert result.request.title == "Testimonials section"
    assert result.request.size_tier == SizeTier.SMALL
    assert result.request.priority == RequestPriority.HIGH
    assert result.request.quoted_price_cents == 5000
    assert result.request.client_id == client_id


@pytest.mark.asyncio
async def test_chat_turn_in_progress_writes_nothing(db, converted_client):
    with patch(
        "leadflow.services.request_chat.request_assistant_reply",
        new_callable=AsyncMock,
        return_value="Which page should the section go on?",
    ):
        result = await request_chat_turn(db, converted_client.id, TRANSCRIPT)

    assert result.complete is False
    assert result.message == "Which page should the section go on?"
    assert await _request_count(db) == 0


@pytest.mark.asyncio
async def test_resent_chat_turn_returns_same_request(db, converted_client):
    client_id = converted_client.id
    with patch(
        "leadflow.services.request_chat.request_assistant_reply",
        new_callable=AsyncMock,
        return_value=FINAL_REPLY,
    ):
        first = await request_chat_turn(db, client_id, TRANSCRIPT)
        second = await request_chat_turn(db, client_id, TRANSCRIPT)

    assert second.request.id == first.request.id
    assert await _request_count(db) == 1


@pytest.mark.asyncio
async def test_chat_turn_respects_open_request_cap(db, converted_client):
    client_id = converted_client.id
    replies = [
        FINAL_REPLY,
        FINAL_REPLY.replace("Testimonials section", "Second"),
        FINAL_REPLY.replace("Testimonials section", "Third"),
    ]
    transcripts = [[ConversationTurn(role="user", content=f"Request {n}")] for n in range(3)]

    with patch(
        "leadflow.services.request_chat.request_assistant_reply",
        new_callable=AsyncMock,
        side_effect=replies,
    ):
        await request_chat_turn(db, client_id, transcripts[0])
        await request_chat_turn(db, client_id, transcripts[1])
        with pytest.raises(QuotaExceeded):
            await request_chat_turn(db, client_id, transcripts[2])

    assert await _request_count(db) == 2


@pytest.mark.asyncio
async def test_request_chat_unconfigured_is_unavailable(db, converted_client):
    with pytest.raises(AIServiceUnavailable):
        await request_chat_turn(db, converted_client.id, TRANSCRIPT)


@pytest.mark.asyncio
async def test_classifier_forces_tool_and_parses_arguments(ai_configured):
    response = _classifier_response({
        "type": "paid",
        "confidence": "high",
        "explanation": "New section on the home page",
        "recommended_price": 100,
    })
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response) as post:
        classification = await classify_request("Add a testimonials section to the home page")

    assert classification.type == "paid"
    assert classification.price_cents == 10000
    payload = post.await_args.kwargs["json"]
    assert payload["tool_choice"]["function"]["name"] == "classify_edit_request"
    assert payload["tools"][0]["function"]["name"] == "classify_edit_request"


@pytest.mark.asyncio
async def test_classifier_rejects_short_description(ai_configured):
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock) as post:
        with pytest.raises(InvalidSubmission):
            await classify_request("typo")
    post.assert_not_awaited()


@pytest.mark.asyncio
async def test_incomplete_classification_is_unavailable(ai_configured):
    response = _classifier_response({"type": "paid", "confidence": "high"})
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
        with pytest.raises(AIServiceUnavailable):
            await classify_request("Rework the whole about page layout")


@pytest.mark.asyncio
async def test_price_suggestion_survives_gateway_errors(ai_configured):
    response = httpx.Response(500, text="boom", request=httpx.Request("POST", settings.AI_GATEWAY_URL))
    with patch("httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response):
        assert await suggest_price_cents("Rework the whole about page layout") is None


@pytest.mark.asyncio
async def test_request_chat_endpoint(client):
    resp = await client.post("/api/v1/leads/contact", json={"name": "P", "email": "p@x.com"})
    converted = await client.post(f"/api/v1/leads/{resp.json()['lead']['id']}/convert")
    client_id = converted.json()["id"]

    with patch(
        "leadflow.services.request_chat.request_assistant_reply",
        new_callable=AsyncMock,
        return_value=FINAL_REPLY,
    ):
        resp = await client.post(f"/api/v1/clients/{client_id}/requests/chat", json={
            "messages": [{"role": "user", "content": "Add testimonials please"}],
        })

    assert resp.status_code == 200
    body = resp.json()
    assert body["complete"] is True
    assert body["request"]["quoted_price_cents"] == 5000
    assert body["request"]["ai_price_cents"] is None


@pytest.mark.asyncio
async def test_classify_endpoint(client):
    short = await client.post("/api/v1/requests/classify", json={"description": "hi"})
    assert short.status_code == 422
    assert short.json()["code"] == "invalid_submission"

    unconfigured = await client.post("/api/v1/requests/classify", json={"description": "Swap the hero photo for a new one"})
    assert unconfigured.status_code == 503
