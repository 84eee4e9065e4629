"""Pydantic schemas for Clients and conversion."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field
from typing import Dict, List, Optional

from leadflow.models.client import PipelineStage, PlanType


class ConversionOptions(BaseModel):
    """Staff overrides applied when conversion creates a new client.

    Ignored when the email already belongs to a client.
    """
    plan_type: Optional[PlanType] = None
    setup_fee_cents: Optional[int] = Field(None, ge=0)
    monthly_fee_cents: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class ClientOut(BaseModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    business_name: Optional[str] = None
    website_url: Optional[str] = None
    pipeline_stage: PipelineStage
    plan_type: PlanType
    monthly_fee_cents: int
    setup_fee_cents: int
    monthly_included_minutes: int
    active: bool
    notes: Optional[str] = None
    source_submission_id: Optional[UUID] = None
    source_submission_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PipelineBoardOut(BaseModel):
    """Clients grouped by pipeline stage, every stage present."""
    stages: Dict[PipelineStage, List[ClientOut]]
