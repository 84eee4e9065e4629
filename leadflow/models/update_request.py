"""UpdateRequest model: a bounded change request submitted by a client."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, Enum, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON

from leadflow.core.database import Base, enum_values
from leadflow.core.time import utcnow


class SizeTier(str, enum.Enum):
    TINY = "tiny"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class RequestStatus(str, enum.Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    WAITING_ON_CLIENT = "waiting_on_client"
    DONE = "done"
    CANCELLED = "cancelled"


class RequestPriority(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


# Statuses that no longer count against the concurrent-request cap
CLOSED_STATUSES = (RequestStatus.DONE, RequestStatus.CANCELLED)


class UpdateRequest(Base):
    __tablename__ = "update_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    size_tier = Column(Enum(SizeTier, name="size_tier", values_callable=enum_values), nullable=False, default=SizeTier.SMALL)
    quoted_price_cents = Column(Integer, nullable=True)  # null = quote pending
    ai_price_cents = Column(Integer, nullable=True)  # classifier suggestion; advisory only
    status = Column(
        Enum(RequestStatus, name="request_status", values_callable=enum_values),
        nullable=False,
        default=RequestStatus.NEW,
        index=True,
    )
    priority = Column(
        Enum(RequestPriority, name="request_priority", values_callable=enum_values),
        nullable=False,
        default=RequestPriority.NORMAL,
    )
    attachments = Column(JSON, nullable=False, default=list)  # [{"url", "name", "size"}, ...]
    internal_notes = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    transcript_hash = Column(String(64), nullable=True, index=True)  # set when created from the request chat

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
