"""Lead persistence: channel submissions in, canonical Lead/ProjectIntake rows out."""

import logging
from typing import Any, List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import InvalidTransition, NotFound
from leadflow.models.lead import Lead, LeadSource, LeadStatus
from leadflow.models.pipeline_event import EventType
from leadflow.models.project_intake import KanbanStage, ProjectIntake
from leadflow.schemas.submission import NormalizedSubmission
from leadflow.services.events import dispatch_events, record_event
from leadflow.services.normalizer import normalize

logger = logging.getLogger(__name__)


def build_lead(submission: NormalizedSubmission) -> Lead:
    return Lead(**submission.lead.model_dump())


def build_intake(submission: NormalizedSubmission, lead: Optional[Lead] = None) -> ProjectIntake:
    data = submission.intake.model_dump()
    return ProjectIntake(lead_id=lead.id if lead else None, **data)


async def save_submission(
    db: AsyncSession,
    submission: NormalizedSubmission,
    transcript_hash: Optional[str] = None,
) -> Tuple[Lead, Optional[ProjectIntake]]:
    """Persist a normalized submission and its creation events in one commit."""
    lead = build_lead(submission)
    db.add(lead)
    await db.flush()

    events = [record_event(db, EventType.LEAD_CREATED, "lead", lead.id, {
        "source": lead.source.value,
        "name": lead.name,
        "email": lead.email,
        "estimated_price": lead.estimated_price,
        "fit_status": lead.fit_status.value,
    })]

    intake = None
    if submission.intake is not None:
        intake = build_intake(submission, lead)
        intake.transcript_hash = transcript_hash
        db.add(intake)
        await db.flush()
        events.append(record_event(db, EventType.INTAKE_CREATED, "intake", intake.id, {
            "lead_id": str(lead.id),
            "email": intake.email,
            "fit_status": intake.fit_status.value,
            "suggested_tier": intake.suggested_tier,
        }))

    await db.commit()
    await db.refresh(lead)
    if intake is not None:
        await db.refresh(intake)

    logger.info(
        "Created %s lead %s for %s (estimated_price=%s)",
        lead.source.value,
        lead.id,
        lead.email,
        lead.estimated_price,
    )
    await dispatch_events(events)
    return lead, intake


async def submit(
    db: AsyncSession,
    source: str,
    raw: Mapping[str, Any],
) -> Tuple[Lead, Optional[ProjectIntake]]:
    """Normalize a raw channel payload and persist it."""
    return await save_submission(db, normalize(source, raw))


async def list_leads(
    db: AsyncSession,
    status: Optional[LeadStatus] = None,
    source: Optional[LeadSource] = None,
    limit: int = 100,
) -> List[Lead]:
    query = select(Lead)
    if status:
        query = query.where(Lead.status == status)
    if source:
        query = query.where(Lead.source == source)
    query = query.order_by(Lead.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_lead(db: AsyncSession, lead_id: UUID) -> Lead:
    result = await db.execute(select(Lead).where(Lead.id == lead_id))
    lead = result.scalar_one_or_none()
    if not lead:
        raise NotFound("Lead not found", details={"lead_id": str(lead_id)})
    return lead


async def update_lead_status(db: AsyncSession, lead_id: UUID, status: LeadStatus) -> Lead:
    """Staff triage of a lead.

    ``converted`` is only reachable through conversion, and a converted lead
    keeps its status, so ``status = converted`` always matches a client link.
    """
    lead = await get_lead(db, lead_id)
    if status == LeadStatus.CONVERTED:
        raise InvalidTransition(
            "Leads are marked converted by converting them to a client",
            details={"lead_id": str(lead_id)},
        )
    if lead.status == LeadStatus.CONVERTED:
        raise InvalidTransition(
            "Converted leads cannot change status",
            details={"lead_id": str(lead_id), "client_id": str(lead.converted_to_client_id)},
        )
    if lead.status == status:
        return lead

    lead.status = status
    await db.commit()
    await db.refresh(lead)
    logger.info("Updated lead %s status to %s", lead_id, status.value)
    return lead


async def list_intakes(
    db: AsyncSession,
    stage: Optional[KanbanStage] = None,
    limit: int = 100,
) -> List[ProjectIntake]:
    query = select(ProjectIntake)
    if stage:
        query = query.where(ProjectIntake.kanban_stage == stage)
    query = query.order_by(ProjectIntake.created_at.desc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_intake(db: AsyncSession, intake_id: UUID) -> ProjectIntake:
    result = await db.execute(select(ProjectIntake).where(ProjectIntake.id == intake_id))
    intake = result.scalar_one_or_none()
    if not intake:
        raise NotFound("Intake not found", details={"intake_id": str(intake_id)})
    return intake
