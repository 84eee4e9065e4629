"""Pydantic schemas for client update requests and the monthly allowance."""

from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from leadflow.models.update_request import RequestPriority, RequestStatus, SizeTier


class Attachment(BaseModel):
    """Reference to a file already uploaded to object storage."""
    url: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    size: int = Field(..., ge=0)


class UpdateRequestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    size_tier: SizeTier = SizeTier.SMALL
    priority: RequestPriority = RequestPriority.NORMAL
    attachments: List[Attachment] = []


class UpdateRequestOut(BaseModel):
    id: UUID
    client_id: UUID
    title: str
    description: str
    size_tier: SizeTier
    quoted_price_cents: Optional[int] = None
    ai_price_cents: Optional[int] = None
    status: RequestStatus
    priority: RequestPriority
    attachments: List[Attachment] = []
    internal_notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RequestStatusUpdate(BaseModel):
    status: RequestStatus
    internal_notes: Optional[str] = None


class TierQuote(BaseModel):
    size_tier: SizeTier
    price_cents: Optional[int] = None
    label: str


class AllowanceOut(BaseModel):
    client_id: UUID
    month: date
    included_requests: int
    used_requests: int
    open_requests: int
    can_submit: bool


class ClassifyRequestIn(BaseModel):
    description: str


class RequestClassification(BaseModel):
    """Free/paid call on an edit request. ``recommended_price`` is whole dollars."""
    type: Literal["free", "paid"]
    confidence: Literal["high", "medium", "low"]
    explanation: str
    recommended_price: int = Field(..., ge=0)

    @property
    def price_cents(self) -> int:
        return self.recommended_price * 100


class RequestChatResponse(BaseModel):
    message: str
    complete: bool = False
    request: Optional[UpdateRequestOut] = None
