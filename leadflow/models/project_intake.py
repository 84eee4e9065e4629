"""ProjectIntake model: structured result of a conversational AI intake."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, Boolean, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON

from leadflow.core.database import Base, enum_values
from leadflow.core.time import utcnow
from leadflow.models.lead import FitStatus


class KanbanStage(str, enum.Enum):
    NEW = "new"
    QUALIFIED = "qualified"
    NEEDS_CONTENT = "needs_content"
    READY_TO_BUILD = "ready_to_build"
    IN_BUILD = "in_build"
    WAITING_ON_CLIENT = "waiting_on_client"
    DONE = "done"


SUGGESTED_TIERS = ("500", "1000", "1500")


class ProjectIntake(Base):
    __tablename__ = "project_intakes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    lead_id = Column(UUID(as_uuid=True), ForeignKey("leads.id"), nullable=True, index=True)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id"), nullable=True, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    business_name = Column(String, nullable=True)
    website_url = Column(String, nullable=True)
    project_description = Column(Text, nullable=True)
    goals = Column(Text, nullable=True)
    pages_estimate = Column(Integer, nullable=True)
    content_readiness = Column(String, nullable=True)
    timeline = Column(String, nullable=True)
    budget_range = Column(String, nullable=True)
    design_examples = Column(Text, nullable=True)
    special_needs = Column(Text, nullable=True)
    tech_comfort = Column(String, nullable=True)

    # Design brief captured late in the conversation
    vibe = Column(Text, nullable=True)
    inspiration_sites = Column(Text, nullable=True)
    color_preferences = Column(Text, nullable=True)
    page_details = Column(Text, nullable=True)
    build_prompt = Column(Text, nullable=True)

    fit_status = Column(Enum(FitStatus, name="fit_status", values_callable=enum_values), nullable=False, default=FitStatus.GOOD)
    suggested_tier = Column(String, nullable=True)  # "500" | "1000" | "1500"
    kanban_stage = Column(
        Enum(KanbanStage, name="kanban_stage", values_callable=enum_values),
        nullable=False,
        default=KanbanStage.NEW,
        index=True,
    )
    raw_summary = Column(Text, nullable=True)
    raw_conversation = Column(JSON, nullable=False, default=list)  # [{"role": ..., "content": ...}, ...]
    discount_offered = Column(Boolean, nullable=False, default=False)
    discount_amount = Column(Integer, nullable=False, default=0)  # dollars
    transcript_hash = Column(String(64), nullable=True, index=True)  # sha256 of the chat transcript that completed the intake

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
