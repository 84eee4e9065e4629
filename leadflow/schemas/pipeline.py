"""Schemas for stage transitions on the client pipeline and intake board."""

from uuid import UUID
from pydantic import BaseModel

from leadflow.models.client import PipelineStage
from leadflow.models.project_intake import KanbanStage


class PipelineStageUpdate(BaseModel):
    stage: PipelineStage


class KanbanStageUpdate(BaseModel):
    stage: KanbanStage


class StageMoveOut(BaseModel):
    """Result of a stage commit. ``changed`` is false for a same-stage move."""
    entity_id: UUID
    previous_stage: str
    new_stage: str
    changed: bool
