"""Canonical record shapes produced by the submission normalizer.

Producer-specific field names never get past the normalizer; everything
downstream (persistence, conversion, events) sees only these two shapes.
Every optional field is present and defaults to ``None`` (or an empty
list / zero for sequence and counter fields).
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from leadflow.models.lead import FitStatus, LeadSource


class ConversationTurn(BaseModel):
    role: str
    content: str


class CanonicalLead(BaseModel):
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
    features: List[str] = Field(default_factory=list)
    suggested_tier: Optional[str] = None
    discount_offered: bool = False
    discount_amount: int = 0
    estimated_price: Optional[int] = None  # cents
    fit_status: FitStatus = FitStatus.GOOD


class CanonicalIntake(BaseModel):
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
    fit_status: FitStatus = FitStatus.GOOD
    suggested_tier: Optional[str] = None
    raw_summary: Optional[str] = None
    raw_conversation: List[ConversationTurn] = Field(default_factory=list)
    discount_offered: bool = False
    discount_amount: int = 0


class NormalizedSubmission(BaseModel):
    lead: CanonicalLead
    intake: Optional[CanonicalIntake] = None
