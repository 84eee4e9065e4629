"""Pydantic schemas for Leads and ProjectIntakes."""

from datetime import datetime
from uuid import UUID
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from leadflow.models.lead import FitStatus, LeadSource, LeadStatus
from leadflow.models.project_intake import KanbanStage
from leadflow.schemas.submission import ConversationTurn


class LeadOut(BaseModel):
    """Schema for returning lead details."""
    id: UUID
    name: str
    email: str
    source: LeadSource
    page_count: Optional[int] = None
    content_readiness: Optional[str] = None
    content_shaping: Optional[bool] = None
    rush: Optional[bool] = None
    timeline: Optional[str] = None
    budget_range: Optional[str] = None
    business_name: Optional[str] = None
    website_url: Optional[str] = None
    project_description: Optional[str] = None
    goals: Optional[str] = None
    wish: Optional[str] = None
    notes: Optional[str] = None
    special_needs: Optional[str] = None
    tech_comfort: Optional[str] = None
    features: Optional[List[str]] = None
    suggested_tier: Optional[str] = None
    discount_offered: bool = False
    discount_amount: Optional[int] = None
    estimated_price: Optional[int] = None
    fit_status: FitStatus
    status: LeadStatus
    converted_to_client_id: Optional[UUID] = None
    converted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LeadStatusUpdate(BaseModel):
    """Schema for updating lead status."""
    status: LeadStatus


class IntakeOut(BaseModel):
    """Schema for returning a project intake."""
    id: UUID
    lead_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    name: str
    email: str
    business_name: Optional[str] = None
    website_url: Optional[str] = None
    project_description: Optional[str] = None
    goals: Optional[str] = None
    pages_estimate: Optional[int] = None
    content_readiness: Optional[str] = None
    timeline: Optional[str] = None
    budget_range: Optional[str] = None
    design_examples: Optional[str] = None
    special_needs: Optional[str] = None
    tech_comfort: Optional[str] = None
    vibe: Optional[str] = None
    inspiration_sites: Optional[str] = None
    color_preferences: Optional[str] = None
    page_details: Optional[str] = None
    build_prompt: Optional[str] = None
    fit_status: FitStatus
    suggested_tier: Optional[str] = None
    kanban_stage: KanbanStage
    raw_summary: Optional[str] = None
    raw_conversation: List[ConversationTurn] = []
    discount_offered: bool = False
    discount_amount: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SubmissionOut(BaseModel):
    """A stored channel submission: always a lead, plus the intake for AI intakes."""
    lead: LeadOut
    intake: Optional[IntakeOut] = None


class ChatRequest(BaseModel):
    """One conversational turn: the full transcript so far, oldest first."""
    messages: List[ConversationTurn]


class ChatResponse(BaseModel):
    message: str
    complete: bool = False
    submission: Optional[SubmissionOut] = None
    estimate: Optional[Dict[str, Any]] = None
