"""Lead/intake to client conversion.

At most one Client exists per lower-cased email. Conversion looks the email
up first and reuses the match; when two conversions race past the lookup,
the unique index rejects the loser's insert and the loser re-reads and
returns the winner.
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadflow.core.exceptions import ConversionFailed, NotFound
from leadflow.core.time import utcnow
from leadflow.models.client import Client, PipelineStage, PlanType
from leadflow.models.lead import Lead, LeadStatus
from leadflow.models.pipeline_event import EventType
from leadflow.models.project_intake import ProjectIntake
from leadflow.schemas.client import ConversionOptions
from leadflow.services.events import dispatch_events, record_event
from leadflow.services.leads import get_intake, get_lead

logger = logging.getLogger(__name__)

LEAD_NOTE_FIELDS = ("project_description", "goals", "wish", "notes", "special_needs")
INTAKE_NOTE_FIELDS = ("project_description", "goals", "special_needs", "raw_summary")


def assemble_notes(record, fields) -> Optional[str]:
    """Join whichever descriptive fields are present, blank line between."""
    parts = []
    for field in fields:
        value = getattr(record, field, None)
        if value and str(value).strip():
            parts.append(str(value).strip())
    return "\n\n".join(parts) or None


async def find_client_by_email(db: AsyncSession, email: str) -> Optional[Client]:
    result = await db.execute(
        select(Client).where(func.lower(Client.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def get_client(db: AsyncSession, client_id: UUID) -> Client:
    result = await db.execute(select(Client).where(Client.id == client_id))
    client = result.scalar_one_or_none()
    if not client:
        raise NotFound("Client not found", details={"client_id": str(client_id)})
    return client


async def _lookup(db: AsyncSession, email: str) -> Optional[Client]:
    """``find_client_by_email`` with store failures surfaced as ``ConversionFailed``."""
    try:
        return await find_client_by_email(db, email)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Client lookup for %s failed: %s", email, e)
        raise ConversionFailed("Client lookup failed, please retry", details={"email": email})


async def resolve_client(
    db: AsyncSession,
    seed: Client,
) -> Tuple[Client, bool]:
    """Return ``(client, created)`` for ``seed.email``, inserting ``seed`` if needed.

    The insert is committed on its own so a losing race surfaces here as an
    ``IntegrityError`` on the unique email index.
    """
    existing = await _lookup(db, seed.email)
    if existing:
        return existing, False

    email = seed.email
    db.add(seed)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        winner = await _lookup(db, email)
        if winner is None:
            logger.error("Client insert for %s conflicted but no client was found", email)
            raise ConversionFailed(
                "Client creation conflicted and no existing client was found",
                details={"email": email},
            )
        logger.warning("Duplicate-email race for %s resolved to client %s", email, winner.id)
        return winner, False
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Client insert for %s failed: %s", email, e)
        raise ConversionFailed("Client could not be created, please retry", details={"email": email})

    await db.refresh(seed)
    logger.info("Created client %s for %s", seed.id, seed.email)
    return seed, True


def seed_client(
    name: str,
    email: str,
    business_name: Optional[str],
    website_url: Optional[str],
    notes: Optional[str],
    source_id: UUID,
    source_type: str,
    options: Optional[ConversionOptions] = None,
) -> Client:
    options = options or ConversionOptions()
    return Client(
        name=name,
        email=email.strip().lower(),
        business_name=business_name,
        website_url=website_url,
        notes=options.notes if options.notes is not None else notes,
        pipeline_stage=PipelineStage.LEAD,
        plan_type=options.plan_type or PlanType.BUILD_ONLY,
        setup_fee_cents=options.setup_fee_cents or 0,
        monthly_fee_cents=options.monthly_fee_cents or 0,
        source_submission_id=source_id,
        source_submission_type=source_type,
    )


async def intake_for_lead(db: AsyncSession, lead_id: UUID) -> Optional[ProjectIntake]:
    result = await db.execute(select(ProjectIntake).where(ProjectIntake.lead_id == lead_id))
    return result.scalars().first()


def mark_lead_converted(lead: Lead, client: Client) -> None:
    lead.status = LeadStatus.CONVERTED
    lead.converted_to_client_id = client.id
    lead.converted_at = utcnow()


def _link_failed(source_type: str, source_id: UUID, client_id: UUID, error: SQLAlchemyError) -> ConversionFailed:
    logger.error("Linking %s %s to client %s failed: %s", source_type, source_id, client_id, error)
    return ConversionFailed(
        "Client exists but the submission could not be linked, please retry",
        details={"client_id": str(client_id), f"{source_type}_id": str(source_id)},
    )


async def _commit_link(db: AsyncSession, client: Client, source_type: str, source_id: UUID, created: bool):
    client_id = client.id
    event = record_event(db, EventType.LEAD_CONVERTED, source_type, source_id, {
        "client_id": str(client_id),
        "email": client.email,
        "created": created,
    })
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise _link_failed(source_type, source_id, client_id, e)
    await dispatch_events([event])


async def convert_lead(
    db: AsyncSession,
    lead_id: UUID,
    options: Optional[ConversionOptions] = None,
) -> Client:
    """Promote a lead to a client. Converting an already-converted lead returns its client."""
    lead = await get_lead(db, lead_id)
    if lead.status == LeadStatus.CONVERTED and lead.converted_to_client_id:
        return await get_client(db, lead.converted_to_client_id)

    seed = seed_client(
        name=lead.name,
        email=lead.email,
        business_name=lead.business_name,
        website_url=lead.website_url,
        notes=assemble_notes(lead, LEAD_NOTE_FIELDS),
        source_id=lead.id,
        source_type="lead",
        options=options,
    )
    client, created = await resolve_client(db, seed)
    client_id = client.id

    try:
        # A rolled-back race expires every loaded instance
        await db.refresh(lead)
        intake = await intake_for_lead(db, lead_id)
    except SQLAlchemyError as e:
        await db.rollback()
        raise _link_failed("lead", lead_id, client_id, e)

    mark_lead_converted(lead, client)
    if intake is not None and intake.client_id is None:
        intake.client_id = client_id
    await _commit_link(db, client, "lead", lead_id, created)
    logger.info("Converted lead %s to client %s (new=%s)", lead_id, client_id, created)
    return client


async def convert_intake(
    db: AsyncSession,
    intake_id: UUID,
    options: Optional[ConversionOptions] = None,
) -> Client:
    """Promote an AI intake to a client and convert its originating lead with it."""
    intake = await get_intake(db, intake_id)
    if intake.client_id:
        return await get_client(db, intake.client_id)

    seed = seed_client(
        name=intake.name,
        email=intake.email,
        business_name=intake.business_name,
        website_url=intake.website_url,
        notes=assemble_notes(intake, INTAKE_NOTE_FIELDS),
        source_id=intake.id,
        source_type="intake",
        options=options,
    )
    client, created = await resolve_client(db, seed)
    client_id = client.id

    try:
        await db.refresh(intake)
        lead = await db.get(Lead, intake.lead_id) if intake.lead_id else None
    except SQLAlchemyError as e:
        await db.rollback()
        raise _link_failed("intake", intake_id, client_id, e)

    intake.client_id = client_id
    if lead is not None and lead.status != LeadStatus.CONVERTED:
        mark_lead_converted(lead, client)
    await _commit_link(db, client, "intake", intake_id, created)
    logger.info("Converted intake %s to client %s (new=%s)", intake_id, client_id, created)
    return client
