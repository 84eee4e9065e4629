"""Client model: a converted prospect under engagement.

One row per normalized (lower-cased) email; the unique index is what the
conversion service relies on to resolve duplicate-email races.
"""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, Boolean, Enum
from sqlalchemy.dialects.postgresql import UUID

from leadflow.core.database import Base, enum_values
from leadflow.core.time import utcnow


class PipelineStage(str, enum.Enum):
    LEAD = "lead"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    BUILD = "build"
    LAUNCHED = "launched"
    CARE_PLAN = "care_plan"
    LOST = "lost"


class PlanType(str, enum.Enum):
    BUILD_ONLY = "build_only"
    CARE_PLAN = "care_plan"


class Client(Base):
    __tablename__ = "clients"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    business_name = Column(String, nullable=True)
    website_url = Column(String, nullable=True)
    pipeline_stage = Column(
        Enum(PipelineStage, name="pipeline_stage", values_callable=enum_values),
        nullable=False,
        default=PipelineStage.LEAD,
        index=True,
    )
    plan_type = Column(
        Enum(PlanType, name="plan_type", values_callable=enum_values),
        nullable=False,
        default=PlanType.BUILD_ONLY,
    )
    monthly_fee_cents = Column(Integer, nullable=False, default=0)
    setup_fee_cents = Column(Integer, nullable=False, default=0)
    monthly_included_minutes = Column(Integer, nullable=False, default=30)
    active = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)

    # Provenance: the Lead or ProjectIntake this client was promoted from
    source_submission_id = Column(UUID(as_uuid=True), nullable=True)
    source_submission_type = Column(String(20), nullable=True)  # "lead" | "intake"

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
