"""Tests for the checklist and slider pricing tables."""

import pytest

from leadflow.schemas.pricing import EstimatorInputs, PricingInputs
from leadflow.services.pricing import (
    breakdown_text,
    compute_estimate,
    compute_range_estimate,
    page_base_price,
)


def test_single_ready_page_is_base_price():
    estimate = compute_estimate(PricingInputs(page_count=1, content_readiness="ready", features={}, timeline="normal"))
    assert estimate.total == 500
    assert estimate.breakdown.base == 500
    assert estimate.breakdown.add_ons == {}


def test_five_pages_heavy_shaping_blog_rush():
    estimate = compute_estimate(PricingInputs(
        page_count=5,
        content_readiness="heavy_shaping",
        features={"blog": True},
        timeline="rush",
    ))
    assert estimate.breakdown.base == 1050
    assert estimate.breakdown.add_ons == {"Content Shaping": 300, "Blog": 150, "Rush Delivery": 200}
    assert estimate.total == 1700


def test_estimate_is_pure():
    inputs = PricingInputs(page_count=3, content_readiness="light_editing", features={"gallery": True})
    assert compute_estimate(inputs) == compute_estimate(inputs)


@pytest.mark.parametrize("pages,base", [(1, 500), (2, 650), (4, 950), (5, 1050), (7, 1250)])
def test_page_base_price_tiers(pages, base):
    assert page_base_price(pages) == base


@pytest.mark.parametrize("pages,clamped", [(0, 1), (-3, 1), (12, 7)])
def test_checklist_clamps_page_count(pages, clamped):
    estimate = compute_estimate(PricingInputs(page_count=pages))
    assert estimate.page_count == clamped


def test_unknown_features_and_readiness_are_unpriced():
    estimate = compute_estimate(PricingInputs(
        page_count=1,
        content_readiness="whatever",
        features={"scheduling": True, "newsletter": True, "blog": False},
    ))
    assert estimate.total == 500


def test_gallery_and_portfolio_share_one_line():
    estimate = compute_estimate(PricingInputs(features={"gallery": True, "portfolio": True}))
    assert estimate.breakdown.add_ons == {"Gallery": 100}


def test_heavy_alias_maps_to_heavy_shaping():
    estimate = compute_estimate(PricingInputs(content_readiness="heavy"))
    assert estimate.breakdown.add_ons == {"Content Shaping": 300}


def test_breakdown_text_lists_every_line():
    estimate = compute_estimate(PricingInputs(page_count=4, content_readiness="heavy_shaping"))
    text = breakdown_text(estimate)
    assert "Base (1 page): $500" in text
    assert "Additional pages (3): +$450" in text
    assert "Content Shaping: +$300" in text
    assert text.endswith("Total: $1250")


def test_range_estimate_band():
    estimate = compute_range_estimate(EstimatorInputs(
        page_count=3,
        content_help="moderate",
        features={"portfolio": True, "newsletter": True},
        timeline="rush",
    ))
    # 50000 + 2*20000 + 30000 + 30000 + 20000 + 15000
    assert estimate.total_cents == 185000
    assert estimate.low_cents == 166500
    assert estimate.high_cents == 203500


def test_range_estimate_allows_eight_pages():
    estimate = compute_range_estimate(EstimatorInputs(page_count=20))
    assert estimate.page_count == 8
    assert estimate.total_cents == 50000 + 7 * 20000


def test_tables_stay_distinct():
    checklist = compute_estimate(PricingInputs(page_count=3))
    slider = compute_range_estimate(EstimatorInputs(page_count=3))
    assert checklist.total * 100 == 80000
    assert slider.total_cents == 90000


@pytest.mark.parametrize("raw,pages", [("4 pages", 4), (2.5, 2), ("lots", 1), (None, 1), ("12", 7)])
def test_loose_page_counts_are_coerced_not_rejected(raw, pages):
    estimate = compute_estimate(PricingInputs(page_count=raw))
    assert estimate.page_count == pages
    assert estimate.breakdown.base == page_base_price(pages)


def test_loose_inputs_on_slider_table():
    estimate = compute_range_estimate(EstimatorInputs(
        page_count="3 pages",
        content_help=None,
        features=["Blog"],
        timeline="Rush",
    ))
    assert estimate.page_count == 3
    assert estimate.breakdown.add_ons == {"Blog page": 30000, "Rush delivery": 15000}
    assert estimate.total_cents == 50000 + 2 * 20000 + 30000 + 15000


def test_non_string_readiness_falls_back_to_ready():
    estimate = compute_estimate(PricingInputs(page_count=1, content_readiness=7, features="gallery"))
    assert estimate.breakdown.add_ons == {"Gallery": 100}
    assert estimate.total == 600
