"""Stage transitions for the client pipeline and the intake kanban board.

Stages are labels: every stage is reachable from every other one, and moves
are always staff-driven. ``move_*`` is a plain commit. Moving to the current
stage is a no-op; a failed commit raises :class:`StaleStageTransition`
carrying the last stage the store confirmed, which is what an optimistic
caller rolls back to. Concurrent moves of one entity are not locked: the
last commit wins.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import StaleStageTransition
from leadflow.models.client import Client, PipelineStage
from leadflow.models.pipeline_event import EventType
from leadflow.models.project_intake import KanbanStage
from leadflow.services.conversion import get_client
from leadflow.services.events import dispatch_events, record_event
from leadflow.services.leads import get_intake

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageMove:
    entity_id: UUID
    previous_stage: str
    new_stage: str

    @property
    def changed(self) -> bool:
        return self.previous_stage != self.new_stage


async def _commit_stage(db: AsyncSession, entity, attr: str, entity_type: str, new_stage) -> StageMove:
    entity_id = entity.id
    previous = getattr(entity, attr)
    if previous == new_stage:
        return StageMove(entity_id, previous.value, new_stage.value)

    setattr(entity, attr, new_stage)
    event = record_event(db, EventType.STAGE_CHANGED, entity_type, entity_id, {
        "board": attr,
        "from": previous.value,
        "to": new_stage.value,
    })
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Stage commit for %s %s failed: %s", entity_type, entity_id, e)
        raise StaleStageTransition(
            f"Could not move {entity_type} to {new_stage.value}",
            entity_id=entity_id,
            last_known_stage=previous.value,
        )

    logger.info("Moved %s %s from %s to %s", entity_type, entity_id, previous.value, new_stage.value)
    await dispatch_events([event])
    return StageMove(entity_id, previous.value, new_stage.value)


async def move_client(db: AsyncSession, client_id: UUID, stage: PipelineStage) -> StageMove:
    client = await get_client(db, client_id)
    return await _commit_stage(db, client, "pipeline_stage", "client", stage)


async def move_intake(db: AsyncSession, intake_id: UUID, stage: KanbanStage) -> StageMove:
    intake = await get_intake(db, intake_id)
    return await _commit_stage(db, intake, "kanban_stage", "intake", stage)


async def list_clients(db: AsyncSession, stage: PipelineStage | None = None, limit: int = 200) -> List[Client]:
    query = select(Client)
    if stage:
        query = query.where(Client.pipeline_stage == stage)
    query = query.order_by(Client.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def pipeline_board(db: AsyncSession) -> Dict[PipelineStage, List[Client]]:
    """Active clients grouped by stage, in board column order."""
    board: Dict[PipelineStage, List[Client]] = {stage: [] for stage in PipelineStage}
    result = await db.execute(
        select(Client).where(Client.active.is_(True)).order_by(Client.updated_at.desc())
    )
    for client in result.scalars().all():
        board[client.pipeline_stage].append(client)
    return board
