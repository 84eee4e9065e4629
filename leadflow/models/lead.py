"""Lead model: a prospect's expression of interest from any intake channel."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, Boolean, Enum, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON

from leadflow.core.database import Base, enum_values
from leadflow.core.time import utcnow


class LeadSource(str, enum.Enum):
    """Channel the lead arrived through."""
    QUOTE = "quote"
    CHECKUP = "checkup"
    CONTACT = "contact"
    AI_INTAKE = "ai_intake"


class LeadStatus(str, enum.Enum):
    NEW = "new"
    REVIEWED = "reviewed"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    CONVERTED = "converted"
    NOT_FIT = "not_fit"


class FitStatus(str, enum.Enum):
    GOOD = "good"
    BORDERLINE = "borderline"
    NOT_FIT = "not_fit"


class Lead(Base):
    """Lead model.

    Source and payload columns are written once at creation. Afterwards only
    ``status``, ``converted_to_client_id`` and ``converted_at`` change.
    """
    __tablename__ = "leads"
    __table_args__ = (
        CheckConstraint(
            "(status = 'converted') = (converted_to_client_id IS NOT NULL)",
            name="ck_leads_converted_linked",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    source = Column(Enum(LeadSource, name="lead_source", values_callable=enum_values), nullable=False)

    # Channel payload
    page_count = Column(Integer, nullable=True)
    content_readiness = Column(String, nullable=True)
    content_shaping = Column(Boolean, nullable=True)
    rush = Column(Boolean, nullable=True)
    timeline = Column(String, nullable=True)
    budget_range = Column(String, nullable=True)
    business_name = Column(String, nullable=True)
    website_url = Column(String, nullable=True)
    project_description = Column(Text, nullable=True)
    goals = Column(Text, nullable=True)
    wish = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    special_needs = Column(Text, nullable=True)
    tech_comfort = Column(String, nullable=True)
    features = Column(JSON, nullable=True)  # ["blog", "gallery", ...]
    suggested_tier = Column(String, nullable=True)
    discount_offered = Column(Boolean, nullable=False, default=False)
    discount_amount = Column(Integer, nullable=True)

    estimated_price = Column(Integer, nullable=True)  # cents
    fit_status = Column(Enum(FitStatus, name="fit_status", values_callable=enum_values), nullable=False, default=FitStatus.GOOD)
    status = Column(Enum(LeadStatus, name="lead_status", values_callable=enum_values), nullable=False, default=LeadStatus.NEW, index=True)

    converted_to_client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id"), nullable=True)
    converted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
