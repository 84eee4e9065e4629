"""Clients, the sales pipeline board, and client update requests.

- GET /api/v1/clients/ → List clients
- GET /api/v1/clients/pipeline → Clients grouped by stage
- GET /api/v1/clients/{id} → Client detail
- PUT /api/v1/clients/{id}/stage → Move client on the pipeline
- POST /api/v1/clients/{id}/requests → Submit an update request
- POST /api/v1/clients/{id}/requests/chat → Portal request chat turn
- GET /api/v1/clients/{id}/requests → List a client's update requests
- GET /api/v1/clients/{id}/allowance → This month's request allowance
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.config import settings
from leadflow.core.database import get_db
from leadflow.core.time import month_start
from leadflow.models.client import PipelineStage
from leadflow.models.update_request import RequestStatus
from leadflow.schemas.client import ClientOut, PipelineBoardOut
from leadflow.schemas.pipeline import PipelineStageUpdate, StageMoveOut
from leadflow.schemas.lead import ChatRequest
from leadflow.schemas.update_request import AllowanceOut, RequestChatResponse, UpdateRequestCreate, UpdateRequestOut
from leadflow.services import pipeline, quota, update_requests
from leadflow.services.conversion import get_client
from leadflow.services.request_chat import request_chat_turn

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[ClientOut])
async def list_clients(
    stage: Optional[PipelineStage] = Query(None, description="Filter by pipeline stage"),
    limit: int = Query(200, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await pipeline.list_clients(db, stage=stage, limit=limit)


@router.get("/pipeline", response_model=PipelineBoardOut)
async def pipeline_board(db: AsyncSession = Depends(get_db)):
    board = await pipeline.pipeline_board(db)
    return PipelineBoardOut(stages={
        stage: [ClientOut.model_validate(c) for c in clients] for stage, clients in board.items()
    })


@router.get("/{client_id}", response_model=ClientOut)
async def get_client_detail(client_id: UUID, db: AsyncSession = Depends(get_db)):
    return await get_client(db, client_id)


@router.put("/{client_id}/stage", response_model=StageMoveOut)
async def move_client(client_id: UUID, update: PipelineStageUpdate, db: AsyncSession = Depends(get_db)):
    move = await pipeline.move_client(db, client_id, update.stage)
    return StageMoveOut(
        entity_id=move.entity_id,
        previous_stage=move.previous_stage,
        new_stage=move.new_stage,
        changed=move.changed,
    )


@router.post("/{client_id}/requests", response_model=UpdateRequestOut, status_code=201)
async def create_update_request(
    client_id: UUID,
    request: UpdateRequestCreate,
    db: AsyncSession = Depends(get_db),
):
    return await update_requests.create_request(db, client_id, request)


@router.get("/{client_id}/requests", response_model=List[UpdateRequestOut])
async def list_update_requests(
    client_id: UUID,
    status: Optional[RequestStatus] = Query(None, description="Filter by status"),
    db: AsyncSession = Depends(get_db),
):
    return await update_requests.list_requests(db, client_id, status=status)


@router.get("/{client_id}/allowance", response_model=AllowanceOut)
async def get_allowance(client_id: UUID, db: AsyncSession = Depends(get_db)):
    client = await get_client(db, client_id)
    month = month_start()
    allowance = await quota.get_allowance(db, client.id, month)
    open_requests = await quota.open_request_count(db, client.id)
    return AllowanceOut(
        client_id=client.id,
        month=month,
        included_requests=allowance.included_requests if allowance else settings.MONTHLY_INCLUDED_REQUESTS,
        used_requests=allowance.used_requests if allowance else 0,
        open_requests=open_requests,
        can_submit=open_requests < settings.OPEN_REQUEST_LIMIT,
    )


@router.post("/{client_id}/requests/chat", response_model=RequestChatResponse)
async def request_chat(client_id: UUID, request: ChatRequest, db: AsyncSession = Depends(get_db)):
    """Portal chat turn: send the full transcript, get the next assistant message."""
    result = await request_chat_turn(db, client_id, request.messages)
    return RequestChatResponse(
        message=result.message,
        complete=result.complete,
        request=UpdateRequestOut.model_validate(result.request) if result.request else None,
    )
