from sqlalchemy import Column, String, DateTime, Enum, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
import uuid
import enum

from leadflow.core.database import Base, enum_values


class EventType(str, enum.Enum):
    LEAD_CREATED = "lead_created"
    INTAKE_CREATED = "intake_created"
    LEAD_CONVERTED = "lead_converted"
    STAGE_CHANGED = "stage_changed"
    REQUEST_CREATED = "request_created"
    REQUEST_STATUS_CHANGED = "request_status_changed"


class PipelineEvent(Base):
    """Structured fact left for the external notification dispatcher."""
    __tablename__ = "pipeline_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    type = Column(Enum(EventType, name="event_type", values_callable=enum_values), nullable=False, index=True)
    entity_type = Column(String(30), nullable=False)
    entity_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
