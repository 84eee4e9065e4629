"""Tests for update-request pricing, the open-request cap and the monthly allowance."""

from datetime import date
from unittest.mock import patch, AsyncMock

import pytest
from sqlalchemy import func, select

from leadflow.core.exceptions import InvalidSubmission, QuotaExceeded
from leadflow.models.request_allowance import RequestAllowance
from leadflow.models.update_request import RequestStatus, SizeTier
from leadflow.schemas.update_request import Attachment, UpdateRequestCreate
from leadflow.services import quota, update_requests


def _request(title="Fix typo", size_tier=SizeTier.TINY, **kwargs):
    return UpdateRequestCreate(title=title, description="Details", size_tier=size_tier, **kwargs)


@pytest.mark.parametrize("tier,price,label", [
    ("tiny", 0, "free"),
    ("small", 5000, "$50"),
    ("medium", 10000, "$100"),
    ("large", None, "quote pending"),
])
def test_quote_for(tier, price, label):
    quote = quota.quote_for(tier)
    assert quote.price_cents == price
    assert quote.label == label


def test_quote_for_unknown_tier():
    with pytest.raises(InvalidSubmission):
        quota.quote_for("huge")


@pytest.mark.asyncio
async def test_record_submission_creates_then_increments(db, converted_client):
    march = date(2026, 3, 17)
    allowance = await quota.record_submission(db, converted_client.id, march)
    assert allowance.month == date(2026, 3, 1)
    assert (allowance.included_requests, allowance.used_requests) == (2, 1)

    allowance = await quota.record_submission(db, converted_client.id, date(2026, 3, 30))
    assert allowance.used_requests == 2

    april = await quota.record_submission(db, converted_client.id, date(2026, 4, 1))
    assert april.used_requests == 1


@pytest.mark.asyncio
async def test_can_submit_respects_open_cap(db, converted_client):
    first = await update_requests.create_request(db, converted_client.id, _request("One"))
    await update_requests.create_request(db, converted_client.id, _request("Two"))
    assert await quota.can_submit(db, converted_client.id) is False

    with pytest.raises(QuotaExceeded):
        await update_requests.create_request(db, converted_client.id, _request("Three"))

    await update_requests.update_request_status(db, first.id, RequestStatus.DONE)
    assert await quota.can_submit(db, converted_client.id) is True


@pytest.mark.asyncio
async def test_quota_exceeded_writes_nothing(db, converted_client):
    await update_requests.create_request(db, converted_client.id, _request("One"))
    await update_requests.create_request(db, converted_client.id, _request("Two"))

    with pytest.raises(QuotaExceeded):
        await update_requests.create_request(db, converted_client.id, _request("Three"))

    assert len(await update_requests.list_requests(db, converted_client.id)) == 2
    allowance = await quota.get_allowance(db, converted_client.id)
    assert allowance.used_requests == 2


@pytest.mark.asyncio
async def test_cancelling_does_not_refund_allowance(db, converted_client):
    """Current behavior: usage is never decremented, even for cancelled requests."""
    request = await update_requests.create_request(db, converted_client.id, _request())
    await update_requests.update_request_status(db, request.id, RequestStatus.CANCELLED)

    allowance = await quota.get_allowance(db, converted_client.id)
    assert allowance.used_requests == 1
    assert await quota.can_submit(db, converted_client.id) is True


@pytest.mark.asyncio
async def test_created_request_carries_tier_quote(db, converted_client):
    request = await update_requests.create_request(
        db, converted_client.id, _request(size_tier=SizeTier.LARGE),
    )
    assert request.quoted_price_cents is None
    assert request.status == RequestStatus.NEW

    small = await update_requests.create_request(
        db, converted_client.id, _request(size_tier=SizeTier.SMALL),
    )
    assert small.quoted_price_cents == 5000


@pytest.mark.asyncio
async def test_completed_at_tracks_done(db, converted_client):
    request = await update_requests.create_request(db, converted_client.id, _request())
    assert request.completed_at is None

    request = await update_requests.update_request_status(db, request.id, RequestStatus.DONE)
    assert request.completed_at is not None

    request = await update_requests.update_request_status(db, request.id, RequestStatus.IN_PROGRESS)
    assert request.completed_at is None


@pytest.mark.asyncio
async def test_oversized_attachment_rejected(db, converted_client):
    big = Attachment(url="https://files.io/a.png", name="a.png", size=50 * 1024 * 1024)
    with pytest.raises(InvalidSubmission):
        await update_requests.create_request(db, converted_client.id, _request(attachments=[big]))

    assert await update_requests.list_requests(db, converted_client.id) == []


@pytest.mark.asyncio
async def test_attachments_are_stored_in_order(db, converted_client):
    files = [
        Attachment(url="https://files.io/1.png", name="1.png", size=10),
        Attachment(url="https://files.io/2.pdf", name="2.pdf", size=20),
    ]
    request = await update_requests.create_request(db, converted_client.id, _request(attachments=files))
    assert [a["name"] for a in request.attachments] == ["1.png", "2.pdf"]


@pytest.mark.asyncio
async def test_allowance_insert_race_rereads_and_increments(db, converted_client):
    """The lookup misses, the insert hits the unique month row, the existing row is incremented."""
    client_id = converted_client.id
    may = date(2026, 5, 1)
    await quota.record_submission(db, client_id, may)

    real_get = quota.get_allowance
    calls = []

    async def stale_get(session, cid, month=None):
        calls.append(month)
        if len(calls) == 1:
            return None
        return await real_get(session, cid, month)

    with patch("leadflow.services.quota.get_allowance", side_effect=stale_get):
        allowance = await quota.record_submission(db, client_id, may)

    assert len(calls) == 2
    assert allowance.used_requests == 2
    rows = await db.execute(select(func.count(RequestAllowance.id)).where(RequestAllowance.client_id == client_id))
    assert rows.scalar() == 1


@pytest.mark.asyncio
async def test_classifier_price_is_stored_beside_tier_quote(db, converted_client):
    with patch(
        "leadflow.services.update_requests.suggest_price_cents",
        new_callable=AsyncMock,
        return_value=15000,
    ) as suggest:
        request = await update_requests.create_request(
            db, converted_client.id, _request(size_tier=SizeTier.SMALL),
        )

    suggest.assert_awaited_once_with("Details")
    assert request.quoted_price_cents == 5000
    assert request.ai_price_cents == 15000


@pytest.mark.asyncio
async def test_no_classifier_price_without_gateway(db, converted_client):
    request = await update_requests.create_request(db, converted_client.id, _request())
    assert request.ai_price_cents is None
