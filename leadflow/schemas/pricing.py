"""Pydantic schemas for the two estimate tables."""

from collections.abc import Iterable, Mapping
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from leadflow.core.coercion import coerce_bool, coerce_int

ContentReadiness = Literal["ready", "light_editing", "heavy_shaping"]
ContentHelp = Literal["none", "light", "moderate", "full"]
Timeline = Literal["normal", "rush"]

# Union of every channel's add-on vocabulary
FEATURE_KEYS = ("gallery", "blog", "scheduling", "newsletter", "portfolio")


class _EstimateInputs(BaseModel):
    """Shared input coercion. Odd values fall back to defaults instead of failing."""
    page_count: int = 1
    features: Dict[str, bool] = Field(default_factory=dict)
    timeline: Optional[str] = "normal"

    @field_validator("page_count", mode="before")
    @classmethod
    def loose_page_count(cls, v: Any) -> int:
        pages = coerce_int(v)
        return 1 if pages is None else pages

    @field_validator("features", mode="before")
    @classmethod
    def loose_features(cls, v: Any) -> Dict[str, bool]:
        if isinstance(v, Mapping):
            return {str(k).strip().lower(): coerce_bool(on) for k, on in v.items()}
        if isinstance(v, str):
            return {v.strip().lower(): True} if v.strip() else {}
        if isinstance(v, Iterable):
            return {str(k).strip().lower(): True for k in v}
        return {}

    @field_validator("timeline", "content_readiness", "content_help", mode="before", check_fields=False)
    @classmethod
    def loose_text(cls, v: Any) -> Optional[str]:
        if v is None or isinstance(v, str):
            return v
        return str(v)


class PricingInputs(_EstimateInputs):
    """Checklist estimator inputs. Values are coerced, never rejected."""
    content_readiness: Optional[str] = "ready"


class EstimatorInputs(_EstimateInputs):
    """Slider estimator inputs."""
    content_help: Optional[str] = "none"


class PriceBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: int
    add_ons: Dict[str, int] = Field(default_factory=dict)


class PriceEstimate(BaseModel):
    """Checklist table result, whole dollars."""
    model_config = ConfigDict(frozen=True)

    total: int
    page_count: int
    breakdown: PriceBreakdown


class RangeEstimate(BaseModel):
    """Slider table result, cents, with the +/-10% band shown to prospects."""
    model_config = ConfigDict(frozen=True)

    total_cents: int
    low_cents: int
    high_cents: int
    page_count: int
    breakdown: PriceBreakdown
