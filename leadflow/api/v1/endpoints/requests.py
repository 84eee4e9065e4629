"""Update request pricing and staff status changes.

- GET /api/v1/requests/quote/{size_tier} → Price for a size tier
- PUT /api/v1/requests/{id}/status → Update request status
- POST /api/v1/requests/classify → Free/paid classification of a description
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.database import get_db
from leadflow.schemas.update_request import (
    ClassifyRequestIn,
    RequestClassification,
    RequestStatusUpdate,
    TierQuote,
    UpdateRequestOut,
)
from leadflow.services import update_requests
from leadflow.services.quota import quote_for
from leadflow.services.request_classifier import classify_request

router = APIRouter()


@router.get("/quote/{size_tier}", response_model=TierQuote)
async def tier_quote(size_tier: str):
    return quote_for(size_tier)


@router.put("/{request_id}/status", response_model=UpdateRequestOut)
async def update_request_status(
    request_id: UUID,
    status_update: RequestStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await update_requests.update_request_status(
        db, request_id, status_update.status, status_update.internal_notes
    )


@router.post("/classify", response_model=RequestClassification)
async def classify(body: ClassifyRequestIn):
    return await classify_request(body.description)
