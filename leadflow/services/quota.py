"""Update-request pricing and the per-client request quota.

Two separate limits apply to client update requests:

- the open-request cap (``can_submit``): at most ``OPEN_REQUEST_LIMIT``
  requests not yet done or cancelled, checked before anything is written;
- the monthly allowance (``record_submission``): a usage counter per client
  per calendar month, incremented once for every request created and never
  decremented, cancellations included.
"""

import logging
from datetime import date
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.exceptions import InvalidSubmission
from leadflow.core.time import month_start
from leadflow.models.request_allowance import RequestAllowance
from leadflow.models.update_request import CLOSED_STATUSES, SizeTier, UpdateRequest
from leadflow.schemas.update_request import TierQuote

logger = logging.getLogger(__name__)

# size tier -> (price in cents, label); None = manual quote
TIER_QUOTES = {
    SizeTier.TINY: (0, "free"),
    SizeTier.SMALL: (5000, "$50"),
    SizeTier.MEDIUM: (10000, "$100"),
    SizeTier.LARGE: (None, "quote pending"),
}


def quote_for(size_tier: Union[SizeTier, str]) -> TierQuote:
    try:
        tier = SizeTier(size_tier)
    except ValueError:
        raise InvalidSubmission(
            f"Unknown size tier: {size_tier}",
            details={"allowed": [t.value for t in SizeTier]},
        )
    price_cents, label = TIER_QUOTES[tier]
    return TierQuote(size_tier=tier, price_cents=price_cents, label=label)


async def open_request_count(db: AsyncSession, client_id: UUID) -> int:
    result = await db.execute(
        select(func.count(UpdateRequest.id)).where(
            UpdateRequest.client_id == client_id,
            UpdateRequest.status.not_in(CLOSED_STATUSES),
        )
    )
    return result.scalar() or 0


async def can_submit(db: AsyncSession, client_id: UUID) -> bool:
    return await open_request_count(db, client_id) < settings.OPEN_REQUEST_LIMIT


async def get_allowance(db: AsyncSession, client_id: UUID, month: Optional[date] = None) -> Optional[RequestAllowance]:
    result = await db.execute(
        select(RequestAllowance).where(
            RequestAllowance.client_id == client_id,
            RequestAllowance.month == month_start(month),
        )
    )
    return result.scalar_one_or_none()


async def record_submission(db: AsyncSession, client_id: UUID, month: Optional[date] = None) -> RequestAllowance:
    """Count one new request against the client's allowance for ``month``.

    Read-modify-write without a lock: two concurrent submissions in the same
    month can under-count by one. The open-request cap is the real limit.
    Callers check ``can_submit`` first; this only records usage.
    """
    month = month_start(month)
    allowance = await get_allowance(db, client_id, month)
    if allowance is None:
        allowance = RequestAllowance(
            client_id=client_id,
            month=month,
            included_requests=settings.MONTHLY_INCLUDED_REQUESTS,
            used_requests=1,
        )
        db.add(allowance)
        try:
            await db.commit()
        except IntegrityError:
            # Another submission created the row first
            await db.rollback()
            allowance = await get_allowance(db, client_id, month)
            allowance.used_requests += 1
            await db.commit()
    else:
        allowance.used_requests += 1
        await db.commit()

    await db.refresh(allowance)
    logger.info(
        "Recorded request for client %s in %s: %d/%d used",
        client_id,
        month.isoformat(),
        allowance.used_requests,
        allowance.included_requests,
    )
    return allowance
