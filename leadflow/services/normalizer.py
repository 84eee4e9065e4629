"""Submission normalizer.

Each intake channel posts a differently-shaped payload. One mapping function
per producer turns its raw key/value object into the canonical
:class:`CanonicalLead` (plus :class:`CanonicalIntake` for the AI intake).

Rules shared by every mapper:
- email is trimmed and lower-cased; name is trimmed;
- a missing/blank name or email raises :class:`InvalidSubmission`;
- every other field is coerced where possible and defaulted (``None``,
  ``[]`` or ``0``) when absent, never raised on.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Dict, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from leadflow.core.coercion import coerce_bool, coerce_int
from leadflow.core.config import settings
from leadflow.core.exceptions import InvalidSubmission
from leadflow.models.lead import FitStatus, LeadSource
from leadflow.models.project_intake import SUGGESTED_TIERS
from leadflow.schemas.pricing import FEATURE_KEYS, EstimatorInputs, PricingInputs
from leadflow.schemas.submission import (
    CanonicalIntake,
    CanonicalLead,
    ConversationTurn,
    NormalizedSubmission,
)
from leadflow.services.intake_parser import extract_intake_json
from leadflow.services.pricing import compute_estimate, compute_range_estimate

logger = logging.getLogger(__name__)

_email_adapter = TypeAdapter(EmailStr)

CHECKUP_WISH = "I'd like a site checkup"
ESTIMATE_WISH = "Estimate request"

TIER_PRICE_CENTS = {"500": 50000, "1000": 100000, "1500": 150000}
DEFAULT_TIER_PRICE_CENTS = TIER_PRICE_CENTS["1000"]

SITE_TYPE_LABELS = {
    "personal": "Personal or solo-professional site",
    "business": "Small business or organization site",
    "creative": "Creative project site",
}
CONTENT_HELP_LABELS = {
    "none": "Client will write all content",
    "light": "Light editing needed",
    "moderate": "Help shaping the wording",
    "full": "Full content rewrite",
}
FEATURE_LABELS = {
    "portfolio": "Portfolio/gallery page",
    "gallery": "Portfolio/gallery page",
    "blog": "Blog page",
    "scheduling": "Scheduling integration",
    "newsletter": "Newsletter integration",
}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------
def first(raw: Mapping[str, Any], *keys: str) -> Any:
    """First present, non-blank value among synonymous keys."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v).strip() for v in value if str(v).strip())
    text = str(value).strip()
    if not text or text.lower() in ("null", "none", "n/a"):
        return None
    return text


def selected_features(value: Any) -> list[str]:
    """Feature keys from either a ``{"blog": true}`` map or a ``["blog"]`` list."""
    if isinstance(value, Mapping):
        chosen = {str(k).strip().lower() for k, on in value.items() if coerce_bool(on)}
    elif isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        chosen = {str(k).strip().lower() for k in value}
    else:
        chosen = set()
    known = [key for key in FEATURE_KEYS if key in chosen]
    return known + sorted(chosen - set(FEATURE_KEYS))


def require_identity(raw: Mapping[str, Any]) -> tuple[str, str]:
    name = clean_str(first(raw, "name", "full_name", "fullName"))
    email = clean_str(first(raw, "email", "email_address", "emailAddress"))
    missing = [field for field, value in (("name", name), ("email", email)) if not value]
    if missing:
        raise InvalidSubmission(
            f"Missing required field(s): {', '.join(missing)}",
            details={"missing": missing},
        )
    try:
        email = str(_email_adapter.validate_python(email))
    except ValidationError:
        raise InvalidSubmission("Invalid email address", details={"email": email})
    return name, email.strip().lower()


def project_description(raw: Mapping[str, Any]) -> Optional[str]:
    return clean_str(first(
        raw,
        "project_description",
        "projectDescription",
        "business_description",
        "businessDescription",
        "description",
    ))


# ---------------------------------------------------------------------------
# Per-channel mappers
# ---------------------------------------------------------------------------
def from_quote(raw: Mapping[str, Any]) -> NormalizedSubmission:
    name, email = require_identity(raw)
    page_count = coerce_int(first(raw, "pageCount", "page_count", "pages"))
    content_shaping = coerce_bool(first(raw, "contentShaping", "content_shaping"))
    readiness = clean_str(first(raw, "contentReadiness", "content_readiness"))
    if readiness is None:
        readiness = "heavy_shaping" if content_shaping else "ready"
    rush = coerce_bool(first(raw, "rushDelivery", "rush_delivery", "rush"))
    timeline = (clean_str(first(raw, "timeline")) or ("rush" if rush else "normal")).lower()
    features = selected_features(first(raw, "features", "addOns", "add_ons"))

    estimate = compute_estimate(PricingInputs(
        page_count=page_count if page_count is not None else 1,
        content_readiness=readiness,
        features={key: True for key in features},
        timeline=timeline,
    ))
    lead = CanonicalLead(
        name=name,
        email=email,
        source=LeadSource.QUOTE,
        page_count=estimate.page_count,
        content_readiness=readiness,
        content_shaping=content_shaping or readiness == "heavy_shaping",
        rush=timeline == "rush",
        timeline=timeline,
        project_description=project_description(raw),
        notes=clean_str(first(raw, "notes", "projectNotes", "project_notes")),
        features=features,
        estimated_price=estimate.total * 100,
    )
    return NormalizedSubmission(lead=lead)


def from_checkup(raw: Mapping[str, Any]) -> NormalizedSubmission:
    name, email = require_identity(raw)
    lead = CanonicalLead(
        name=name,
        email=email,
        source=LeadSource.CHECKUP,
        website_url=clean_str(first(raw, "websiteUrl", "website_url", "url")),
        business_name=clean_str(first(raw, "businessName", "business_name")),
        wish=CHECKUP_WISH,
        notes=clean_str(first(raw, "notes")),
        estimated_price=settings.CHECKUP_PRICE_CENTS,
    )
    return NormalizedSubmission(lead=lead)


def from_contact(raw: Mapping[str, Any]) -> NormalizedSubmission:
    name, email = require_identity(raw)
    lead = CanonicalLead(
        name=name,
        email=email,
        source=LeadSource.CONTACT,
        business_name=clean_str(first(raw, "businessName", "business_name")),
        website_url=clean_str(first(raw, "websiteUrl", "website_url")),
        project_description=project_description(raw),
        wish=clean_str(first(raw, "wish")),
        notes=clean_str(first(raw, "notes")),
    )
    return NormalizedSubmission(lead=lead)


def from_estimate(raw: Mapping[str, Any]) -> NormalizedSubmission:
    """Slider estimator. Stored as a contact lead carrying the estimate summary."""
    name, email = require_identity(raw)
    content_help = (clean_str(first(raw, "contentHelp", "content_help")) or "none").lower()
    timeline = (clean_str(first(raw, "timeline")) or "normal").lower()
    features = selected_features(first(raw, "addOns", "add_ons", "features"))
    page_count = coerce_int(first(raw, "pageCount", "page_count", "pages"))

    estimate = compute_range_estimate(EstimatorInputs(
        page_count=page_count if page_count is not None else 1,
        content_help=content_help,
        features={key: True for key in features},
        timeline=timeline,
    ))

    site_type = (clean_str(first(raw, "siteType", "site_type")) or "personal").lower()
    add_on_labels = list(dict.fromkeys(FEATURE_LABELS[k] for k in features if k in FEATURE_LABELS))
    summary = "\n".join([
        "Estimate Request:",
        f"- Site type: {SITE_TYPE_LABELS.get(site_type, site_type)}",
        f"- Pages: {estimate.page_count}",
        f"- Content help: {CONTENT_HELP_LABELS.get(content_help, content_help)}",
        f"- Add-ons: {', '.join(add_on_labels) if add_on_labels else 'None'}",
        f"- Timeline: {'Rush (48-72 hours)' if timeline == 'rush' else 'Normal'}",
        f"- Estimated price range: ${estimate.low_cents // 100} - ${estimate.high_cents // 100}",
    ])

    lead = CanonicalLead(
        name=name,
        email=email,
        source=LeadSource.CONTACT,
        page_count=estimate.page_count,
        content_readiness=content_help,
        rush=timeline == "rush",
        timeline=timeline,
        project_description=summary,
        wish=ESTIMATE_WISH,
        notes=clean_str(first(raw, "notes")),
        features=features,
        estimated_price=estimate.total_cents,
    )
    return NormalizedSubmission(lead=lead)


def map_fit_status(value: Any) -> FitStatus:
    text = (clean_str(value) or "").lower()
    if not text or text == "good":
        return FitStatus.GOOD
    if text in ("borderline", "maybe"):
        return FitStatus.BORDERLINE
    return FitStatus.NOT_FIT


def suggest_tier(explicit: Any, budget: Optional[str]) -> Optional[str]:
    tier = clean_str(explicit)
    if tier in SUGGESTED_TIERS:
        return tier
    if not budget:
        return None
    if "1500" in budget or "1,500" in budget:
        return "1500"
    if "500" in budget:
        return "500"
    return "1000"


def conversation_turns(value: Any) -> list[ConversationTurn]:
    if not isinstance(value, list):
        return []
    turns = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        role = clean_str(item.get("role"))
        content = item.get("content")
        if role is None or content is None:
            continue
        turns.append(ConversationTurn(role=role, content=str(content)))
    return turns


def from_ai_intake(raw: Mapping[str, Any], transcript: Optional[list] = None) -> NormalizedSubmission:
    """AI intake JSON. Accepts both the prompt's names and the canonical names."""
    name, email = require_identity(raw)

    budget = clean_str(first(raw, "budget", "budget_range"))
    tier = suggest_tier(first(raw, "suggested_tier"), budget)
    discount_amount = coerce_int(first(raw, "discount_amount")) or 0
    discount_offered = coerce_bool(first(raw, "discount_offered")) or discount_amount > 0
    turns = conversation_turns(first(raw, "raw_chat", "raw_conversation"))
    if not turns and transcript:
        turns = conversation_turns(transcript)

    intake = CanonicalIntake(
        name=name,
        email=email,
        business_name=clean_str(first(raw, "business_name")),
        website_url=clean_str(first(raw, "website_url")),
        project_description=project_description(raw),
        goals=clean_str(first(raw, "goal", "goals")),
        pages_estimate=coerce_int(first(raw, "pages", "pages_estimate")),
        content_readiness=clean_str(first(raw, "content_ready", "content_readiness")),
        timeline=clean_str(first(raw, "timeline")),
        budget_range=budget,
        design_examples=clean_str(first(raw, "design_examples")),
        special_needs=clean_str(first(raw, "advanced_features", "special_needs")),
        tech_comfort=clean_str(first(raw, "update_preference", "tech_comfort")),
        vibe=clean_str(first(raw, "vibe")),
        inspiration_sites=clean_str(first(raw, "inspiration_sites")),
        color_preferences=clean_str(first(raw, "color_style_preferences", "color_preferences")),
        page_details=clean_str(first(raw, "page_details")),
        build_prompt=clean_str(first(raw, "lovable_build_prompt", "build_prompt")),
        fit_status=map_fit_status(first(raw, "fit", "fit_status")),
        suggested_tier=tier,
        raw_summary=clean_str(first(raw, "intake_summary", "raw_summary")),
        raw_conversation=turns,
        discount_offered=discount_offered,
        discount_amount=discount_amount,
    )

    base_cents = TIER_PRICE_CENTS.get(tier or "", DEFAULT_TIER_PRICE_CENTS)
    lead = CanonicalLead(
        name=name,
        email=email,
        source=LeadSource.AI_INTAKE,
        page_count=intake.pages_estimate,
        content_readiness=intake.content_readiness,
        timeline=intake.timeline,
        budget_range=budget,
        business_name=intake.business_name,
        website_url=intake.website_url,
        project_description=intake.project_description,
        goals=intake.goals,
        special_needs=intake.special_needs,
        tech_comfort=intake.tech_comfort,
        suggested_tier=tier,
        discount_offered=discount_offered,
        discount_amount=discount_amount,
        estimated_price=max(base_cents - discount_amount * 100, 0),
        fit_status=intake.fit_status,
    )
    return NormalizedSubmission(lead=lead, intake=intake)


CHANNEL_MAPPERS: Dict[str, Callable[[Mapping[str, Any]], NormalizedSubmission]] = {
    "quote": from_quote,
    "checkup": from_checkup,
    "contact": from_contact,
    "estimate": from_estimate,
    "ai_intake": from_ai_intake,
}


def normalize(source: str, raw: Mapping[str, Any]) -> NormalizedSubmission:
    """Map a raw channel payload to the canonical record shape(s)."""
    mapper = CHANNEL_MAPPERS.get(source)
    if mapper is None:
        raise InvalidSubmission(
            f"Unknown submission source: {source}",
            details={"allowed": sorted(CHANNEL_MAPPERS)},
        )
    if not isinstance(raw, Mapping):
        raise InvalidSubmission("Submission payload must be an object")
    submission = mapper(raw)
    logger.debug("Normalized %s submission for %s", source, submission.lead.email)
    return submission


def normalize_intake_message(message: str, transcript: Optional[list] = None) -> NormalizedSubmission:
    """Parse the assistant's final message and normalize its JSON.

    Raises ``MalformedIntakePayload`` while the JSON is not there yet.
    """
    payload = extract_intake_json(message)
    return from_ai_intake(payload, transcript=transcript)
