"""POST /v1/quote, /v1/affordability, /v1/recommendations - stateless financing math"""

import logging
from fastapi import APIRouter, HTTPException, Request

from astral_gateway.api.v1.schemas import (
    AffordabilityRequest,
    AffordabilityResponse,
    AffordabilitySchema,
    FinancingPlanSchema,
    LeasingPlanSchema,
    QuoteRequest,
    QuoteResponse,
    RecommendationItem,
    RecommendationRequest,
    RecommendationResponse,
)
from astral_gateway.api.dependencies import get_request_id
from astral_gateway.domain.affordability import estimate
from astral_gateway.domain.exceptions import ValidationError
from astral_gateway.domain.models import FINANCING, LEASING
from astral_gateway.domain.plans import build_plans
from astral_gateway.domain.rates import rate_for
from astral_gateway.domain.recommendations import advisor_candidates, recommend
from astral_gateway.infrastructure.observability.metrics import plans_computed_counter

router = APIRouter()


@router.post("/quote", response_model=QuoteResponse)
def create_quote(request_body: QuoteRequest, request: Request):
    """
    Price one vehicle both ways for the buyer.

    Returns the credit-score rate, the affordable price range, and the
    financing and leasing plans side by side.
    """
    user_input = request_body.user_input.to_domain()
    vehicle = request_body.vehicle.to_domain()

    try:
        rate = rate_for(user_input.credit_score)
        affordability = estimate(
            user_input.income, user_input.credit_score, user_input.down_payment, user_input.loan_term_years
        )
        financing, leasing = build_plans(vehicle.price, user_input, rate)
    except ValidationError as e:
        logging.warning(f"Invalid quote input: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    plans_computed_counter.labels(plan_type=FINANCING).inc()
    plans_computed_counter.labels(plan_type=LEASING).inc()

    return QuoteResponse(
        interest_rate=rate,
        affordability=AffordabilitySchema.from_domain(affordability),
        financing=FinancingPlanSchema(**financing.__dict__),
        leasing=LeasingPlanSchema(**leasing.__dict__),
    )


@router.post("/affordability", response_model=AffordabilityResponse)
def get_affordability(request_body: AffordabilityRequest, request: Request):
    """Affordable vehicle price range: 15% of monthly income, inverted at the buyer's rate"""
    user_input = request_body.user_input.to_domain()
    try:
        affordability = estimate(
            user_input.income, user_input.credit_score, user_input.down_payment, user_input.loan_term_years
        )
    except ValidationError as e:
        logging.warning(f"Invalid affordability input: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return AffordabilityResponse(
        interest_rate=rate_for(user_input.credit_score),
        affordability=AffordabilitySchema.from_domain(affordability),
    )


@router.post("/recommendations", response_model=RecommendationResponse)
def get_recommendations(request_body: RecommendationRequest, request: Request):
    """
    Rank a caller-supplied catalog for the buyer.

    Returns:
        Recommendations (top matches first, then by price) and the model
        names worth sending to the advisory service
    """
    user_input = request_body.user_input.to_domain()
    vehicles = [v.to_domain() for v in request_body.vehicles]

    try:
        recommendations = recommend(vehicles, user_input, request_body.top_models)
        candidates = advisor_candidates(vehicles, user_input)
    except ValidationError as e:
        logging.warning(f"Invalid recommendation input: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    return RecommendationResponse(
        recommendations=[RecommendationItem.from_domain(r) for r in recommendations],
        advisor_candidates=[v.model for v in candidates],
    )
