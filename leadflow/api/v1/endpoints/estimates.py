"""Price estimates.

- POST /api/v1/estimates/checklist → checklist table (whole dollars)
- POST /api/v1/estimates/range → slider table (cents, with low/high band)
"""

from fastapi import APIRouter

from leadflow.schemas.pricing import EstimatorInputs, PriceEstimate, PricingInputs, RangeEstimate
from leadflow.services.pricing import compute_estimate, compute_range_estimate

router = APIRouter()


@router.post("/checklist", response_model=PriceEstimate)
async def checklist_estimate(inputs: PricingInputs):
    return compute_estimate(inputs)


@router.post("/range", response_model=RangeEstimate)
async def range_estimate(inputs: EstimatorInputs):
    return compute_range_estimate(inputs)
