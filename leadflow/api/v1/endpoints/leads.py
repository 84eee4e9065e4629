"""Lead capture and triage.

- POST /api/v1/leads/{source} → Store a raw channel submission
- GET /api/v1/leads/ → List leads
- GET /api/v1/leads/{id} → Lead detail
- PUT /api/v1/leads/{id}/status → Update lead status
- POST /api/v1/leads/{id}/convert → Convert lead to client
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.database import get_db
from leadflow.models.lead import LeadSource, LeadStatus
from leadflow.schemas.client import ClientOut, ConversionOptions
from leadflow.schemas.lead import IntakeOut, LeadOut, LeadStatusUpdate, SubmissionOut
from leadflow.services import conversion, leads

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[LeadOut])
async def list_leads(
    status: Optional[LeadStatus] = Query(None, description="Filter by status"),
    source: Optional[LeadSource] = Query(None, description="Filter by source"),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await leads.list_leads(db, status=status, source=source, limit=limit)


@router.post("/{source}", response_model=SubmissionOut, status_code=201)
async def submit_lead(
    source: str,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    """Store a submission from the quote, checkup, contact, estimate or ai_intake channel."""
    lead, intake = await leads.submit(db, source, payload)
    return SubmissionOut(
        lead=LeadOut.model_validate(lead),
        intake=IntakeOut.model_validate(intake) if intake else None,
    )


@router.get("/{lead_id}", response_model=LeadOut)
async def get_lead(lead_id: UUID, db: AsyncSession = Depends(get_db)):
    return await leads.get_lead(db, lead_id)


@router.put("/{lead_id}/status", response_model=LeadOut)
async def update_lead_status(
    lead_id: UUID,
    status_update: LeadStatusUpdate,
    db: AsyncSession = Depends(get_db),
):
    return await leads.update_lead_status(db, lead_id, status_update.status)


@router.post("/{lead_id}/convert", response_model=ClientOut)
async def convert_lead(
    lead_id: UUID,
    options: Optional[ConversionOptions] = None,
    db: AsyncSession = Depends(get_db),
):
    """Promote a lead to a client. Idempotent per email."""
    return await conversion.convert_lead(db, lead_id, options)
