"""Conversational intake and the intake kanban board.

- POST /api/v1/intake/chat → One stateless chat turn
- GET /api/v1/intakes/ → List intakes
- GET /api/v1/intakes/{id} → Intake detail
- POST /api/v1/intakes/{id}/convert → Convert intake to client
- PUT /api/v1/intakes/{id}/stage → Move intake on the board
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.database import get_db
from leadflow.models.project_intake import KanbanStage
from leadflow.schemas.client import ClientOut, ConversionOptions
from leadflow.schemas.lead import ChatRequest, ChatResponse, IntakeOut, LeadOut, SubmissionOut
from leadflow.schemas.pipeline import KanbanStageUpdate, StageMoveOut
from leadflow.services import conversion, leads, pipeline
from leadflow.services.intake_chat import chat_turn

chat_router = APIRouter()
router = APIRouter()
logger = logging.getLogger(__name__)


@chat_router.post("/chat", response_model=ChatResponse)
async def intake_chat(request: ChatRequest, db: AsyncSession = Depends(get_db)):
    """Send the full transcript, get the next assistant message."""
    result = await chat_turn(db, request.messages)
    submission = None
    if result.complete:
        submission = SubmissionOut(
            lead=LeadOut.model_validate(result.lead),
            intake=IntakeOut.model_validate(result.intake) if result.intake else None,
        )
    return ChatResponse(
        message=result.message,
        complete=result.complete,
        submission=submission,
        estimate=result.estimate,
    )


@router.get("/", response_model=List[IntakeOut])
async def list_intakes(
    stage: Optional[KanbanStage] = Query(None, description="Filter by kanban stage"),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await leads.list_intakes(db, stage=stage, limit=limit)


@router.get("/{intake_id}", response_model=IntakeOut)
async def get_intake(intake_id: UUID, db: AsyncSession = Depends(get_db)):
    return await leads.get_intake(db, intake_id)


@router.post("/{intake_id}/convert", response_model=ClientOut)
async def convert_intake(
    intake_id: UUID,
    options: Optional[ConversionOptions] = None,
    db: AsyncSession = Depends(get_db),
):
    return await conversion.convert_intake(db, intake_id, options)


@router.put("/{intake_id}/stage", response_model=StageMoveOut)
async def move_intake(intake_id: UUID, update: KanbanStageUpdate, db: AsyncSession = Depends(get_db)):
    move = await pipeline.move_intake(db, intake_id, update.stage)
    return StageMoveOut(
        entity_id=move.entity_id,
        previous_stage=move.previous_stage,
        new_stage=move.new_stage,
        changed=move.changed,
    )
