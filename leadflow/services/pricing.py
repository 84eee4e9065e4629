"""
Deterministic project pricing.

Two tables are kept side by side on purpose:

- the checklist table (``compute_estimate``) quoted by the quote form and the
  conversational intake, in whole dollars, pages clamped to 1..7;
- the slider table (``compute_range_estimate``) used by the self-serve
  estimator, in cents, pages clamped to 1..8, shown as a +/-10% band.

Both are pure: identical inputs give identical, equal results. Prices are
computed once at submission time and stored; nothing recomputes them later.
"""

from typing import Mapping

from leadflow.schemas.pricing import (
    EstimatorInputs,
    PriceBreakdown,
    PriceEstimate,
    PricingInputs,
    RangeEstimate,
)


# ---------------------------------------------------------------------------
# Checklist table (dollars)
# ---------------------------------------------------------------------------
CHECKLIST_MIN_PAGES = 1
CHECKLIST_MAX_PAGES = 7
BASE_PRICE = 500             # includes the first page
PAGE_PRICE_2_TO_4 = 150
PAGE_PRICE_5_TO_7 = 100

CONTENT_SHAPING_PRICES = {
    "ready": 0,
    "light_editing": 150,
    "heavy_shaping": 300,
}
CONTENT_READINESS_ALIASES = {
    "heavy": "heavy_shaping",
    "light": "light_editing",
    "needs_help": "heavy_shaping",
}
CHECKLIST_FEATURE_PRICES = {
    "Gallery": 100,
    "Blog": 150,
}
RUSH_PRICE = 200

# ---------------------------------------------------------------------------
# Slider table (cents)
# ---------------------------------------------------------------------------
RANGE_MIN_PAGES = 1
RANGE_MAX_PAGES = 8
RANGE_BASE_CENTS = 50000
RANGE_EXTRA_PAGE_CENTS = 20000
CONTENT_HELP_CENTS = {
    "none": 0,
    "light": 15000,
    "moderate": 30000,
    "full": 60000,
}
RANGE_FEATURE_CENTS = {
    "Portfolio/gallery page": 30000,
    "Blog page": 30000,
    "Scheduling integration": 15000,
    "Newsletter integration": 20000,
}
RANGE_RUSH_CENTS = 15000

# Which add-on line each feature key feeds, per table. Keys absent from a
# table are accepted and simply unpriced there.
CHECKLIST_FEATURE_LINES = {
    "gallery": "Gallery",
    "portfolio": "Gallery",
    "blog": "Blog",
}
RANGE_FEATURE_LINES = {
    "portfolio": "Portfolio/gallery page",
    "gallery": "Portfolio/gallery page",
    "blog": "Blog page",
    "scheduling": "Scheduling integration",
    "newsletter": "Newsletter integration",
}


def clamp_pages(page_count, low: int, high: int) -> int:
    try:
        pages = int(page_count)
    except (TypeError, ValueError):
        pages = low
    return max(low, min(pages, high))


def normalize_content_readiness(value: str | None) -> str:
    key = (value or "ready").strip().lower()
    key = CONTENT_READINESS_ALIASES.get(key, key)
    return key if key in CONTENT_SHAPING_PRICES else "ready"


def _is_rush(timeline: str | None) -> bool:
    return (timeline or "").strip().lower() == "rush"


def _selected_lines(features: Mapping[str, bool], lines: Mapping[str, str]) -> list[str]:
    """Add-on lines hit by the selected features, deduplicated, table order."""
    hit = {lines[key] for key, on in features.items() if on and key in lines}
    return [line for line in dict.fromkeys(lines.values()) if line in hit]


def page_base_price(pages: int) -> int:
    """Checklist base: first page 500, pages 2-4 at 150, pages 5-7 at 100."""
    base = BASE_PRICE
    base += PAGE_PRICE_2_TO_4 * max(0, min(pages, 4) - 1)
    base += PAGE_PRICE_5_TO_7 * max(0, min(pages, 7) - 4)
    return base


def compute_estimate(inputs: PricingInputs) -> PriceEstimate:
    """Checklist estimate in whole dollars. Never raises on odd inputs."""
    pages = clamp_pages(inputs.page_count, CHECKLIST_MIN_PAGES, CHECKLIST_MAX_PAGES)
    base = page_base_price(pages)

    add_ons: dict[str, int] = {}
    readiness = normalize_content_readiness(inputs.content_readiness)
    if CONTENT_SHAPING_PRICES[readiness]:
        add_ons["Content Shaping"] = CONTENT_SHAPING_PRICES[readiness]
    for line in _selected_lines(inputs.features, CHECKLIST_FEATURE_LINES):
        add_ons[line] = CHECKLIST_FEATURE_PRICES[line]
    if _is_rush(inputs.timeline):
        add_ons["Rush Delivery"] = RUSH_PRICE

    total = base + sum(add_ons.values())
    return PriceEstimate(
        total=total,
        page_count=pages,
        breakdown=PriceBreakdown(base=base, add_ons=add_ons),
    )


def _round_half_up(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def compute_range_estimate(inputs: EstimatorInputs) -> RangeEstimate:
    """Slider estimate in cents with a low/high band at 90% / 110%."""
    pages = clamp_pages(inputs.page_count, RANGE_MIN_PAGES, RANGE_MAX_PAGES)
    base = RANGE_BASE_CENTS + (pages - 1) * RANGE_EXTRA_PAGE_CENTS

    add_ons: dict[str, int] = {}
    help_key = (inputs.content_help or "none").strip().lower()
    help_cents = CONTENT_HELP_CENTS.get(help_key, 0)
    if help_cents:
        add_ons["Content help"] = help_cents
    for line in _selected_lines(inputs.features, RANGE_FEATURE_LINES):
        add_ons[line] = RANGE_FEATURE_CENTS[line]
    if _is_rush(inputs.timeline):
        add_ons["Rush delivery"] = RANGE_RUSH_CENTS

    total = base + sum(add_ons.values())
    return RangeEstimate(
        total_cents=total,
        low_cents=_round_half_up(total * 9, 10),
        high_cents=_round_half_up(total * 11, 10),
        page_count=pages,
        breakdown=PriceBreakdown(base=base, add_ons=add_ons),
    )


def breakdown_text(estimate: PriceEstimate) -> str:
    """Plain-text breakdown handed to the intake model as tool output."""
    lines = [f"Base (1 page): ${BASE_PRICE}"]
    extra_pages = estimate.breakdown.base - BASE_PRICE
    if extra_pages:
        lines.append(f"Additional pages ({estimate.page_count - 1}): +${extra_pages}")
    for name, price in estimate.breakdown.add_ons.items():
        lines.append(f"{name}: +${price}")
    lines.append(f"Total: ${estimate.total}")
    return "\n".join(lines)
