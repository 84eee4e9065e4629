from sqlalchemy import Column, Date, DateTime, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
import uuid

from leadflow.core.database import Base
from leadflow.core.time import utcnow


class RequestAllowance(Base):
    """Per-client, per-calendar-month request counter.

    ``month`` is always the first day of the month. Rows are created lazily
    and ``used_requests`` only ever grows.
    """
    __tablename__ = "request_allowances"
    __table_args__ = (
        UniqueConstraint("client_id", "month", name="uq_request_allowances_client_month"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(Date, nullable=False)
    included_requests = Column(Integer, nullable=False, default=2)
    used_requests = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
