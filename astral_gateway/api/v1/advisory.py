"""Advisory endpoints - structured inputs out, opaque advisor text back"""

import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from astral_gateway.api.v1.schemas import (
    AdviceRequest,
    AdviceResponse,
    ChatRequest,
    ChatResponse,
    FinancingPlanSchema,
    InsightsRequest,
    InsightsResponse,
    RecommendationItem,
    SummaryResponse,
)
from astral_gateway.api.dependencies import get_advisory_client, get_now, get_request_id
from astral_gateway.domain.exceptions import AdvisoryAPIError, ValidationError
from astral_gateway.domain.plans import build_financing_plan
from astral_gateway.domain.rates import rate_for
from astral_gateway.domain.recommendations import advisor_candidates, recommend
from astral_gateway.domain.schedule import schedule
from astral_gateway.infrastructure.clients.advisory import AdvisoryClient, build_chat_context
from astral_gateway.infrastructure.database.session import get_db
from astral_gateway.infrastructure.database.repositories import LoanRepository, ProfileRepository, SavedPlanRepository

router = APIRouter()


@router.get("/users/{user_id}/timeline/summary", response_model=SummaryResponse)
async def get_timeline_summary(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    advisory_client: AdvisoryClient = Depends(get_advisory_client),
):
    """Advisor's narrative of the user's upcoming payments"""
    request_id = get_request_id(request)
    loans = list(LoanRepository(db).get_loans(user_id).values())
    if not loans:
        raise HTTPException(status_code=404, detail="No active loans")

    today = now.date()
    events = schedule(loans, today)

    try:
        summary = await advisory_client.get_timeline_summary(loans, events, today)
    except AdvisoryAPIError as e:
        logging.error(f"Advisory API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Advisory service unavailable")

    return SummaryResponse(summary=summary)


@router.post("/advice/financing", response_model=AdviceResponse)
async def get_financing_advice(
    request_body: AdviceRequest,
    request: Request,
    advisory_client: AdvisoryClient = Depends(get_advisory_client),
):
    """Advisor's take on financing one vehicle, with the plan it was given"""
    request_id = get_request_id(request)
    user_input = request_body.user_input.to_domain()
    vehicle = request_body.vehicle.to_domain()

    try:
        plan = build_financing_plan(vehicle.price, user_input, rate_for(user_input.credit_score))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        advice = await advisory_client.get_financing_advice(user_input, vehicle, plan)
    except AdvisoryAPIError as e:
        logging.error(f"Advisory API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Advisory service unavailable")

    return AdviceResponse(advice=advice, plan=FinancingPlanSchema(**plan.__dict__))


@router.post("/insights", response_model=InsightsResponse)
async def get_insights(
    request_body: InsightsRequest,
    request: Request,
    advisory_client: AdvisoryClient = Depends(get_advisory_client),
):
    """
    Let the advisor pick from the affordable matches, then rank the catalog.

    The advisor only sees the vehicles worth comparing (see advisor_candidates);
    its picks become the top matches of the full recommendation list.
    """
    request_id = get_request_id(request)
    user_input = request_body.user_input.to_domain()
    vehicles = [v.to_domain() for v in request_body.vehicles]

    try:
        candidates = advisor_candidates(vehicles, user_input)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        insights = await advisory_client.get_financial_insights(user_input.preferences.description, candidates)
    except AdvisoryAPIError as e:
        logging.error(f"Advisory API error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Advisory service unavailable")

    recommendations = recommend(vehicles, user_input, insights.recommended_models)
    return InsightsResponse(
        recommended_models=insights.recommended_models,
        financial_tips=insights.financial_tips,
        recommendations=[RecommendationItem.from_domain(r) for r in recommendations],
    )


@router.get("/users/{user_id}/plans/summary", response_model=SummaryResponse)
async def get_saved_plans_summary(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    advisory_client: AdvisoryClient = Depends(get_advisory_client),
):
    """Advisor's comparison of the user's saved plans"""
    plans = SavedPlanRepository(db).get_plans_by_user(user_id)

    try:
        summary = await advisory_client.get_saved_plans_summary(plans)
    except AdvisoryAPIError as e:
        logging.error(f"Advisory API error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Advisory service unavailable")

    return SummaryResponse(summary=summary)


@router.post("/users/{user_id}/chat", response_model=ChatResponse)
async def chat(
    user_id: str,
    request_body: ChatRequest,
    request: Request,
    db: Session = Depends(get_db),
    advisory_client: AdvisoryClient = Depends(get_advisory_client),
):
    """Chatbot reply, grounded in the user's stored profile and saved plans"""
    context = build_chat_context(
        request_body.view,
        ProfileRepository(db).get_user_input(user_id),
        SavedPlanRepository(db).get_plans_by_user(user_id),
        request_body.recommended_models,
    )
    history = [m.to_domain() for m in request_body.history]

    try:
        reply = await advisory_client.get_chat_response(history, request_body.message, context)
    except AdvisoryAPIError as e:
        logging.error(f"Advisory API error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail="Advisory service unavailable")

    return ChatResponse(reply=reply.strip())
