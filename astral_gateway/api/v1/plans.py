"""/v1/users/{user_id}/plans - save, list and delete plans for vehicles"""

import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from astral_gateway.api.v1.schemas import SavedPlanResponse, SavedPlansResponse, SavePlanRequest
from astral_gateway.api.dependencies import get_now, get_request_id
from astral_gateway.domain.exceptions import ValidationError
from astral_gateway.domain.models import SavedPlan
from astral_gateway.domain.plans import build_plan
from astral_gateway.domain.rates import rate_for
from astral_gateway.infrastructure.database.session import get_db
from astral_gateway.infrastructure.database.repositories import ProfileRepository, SavedPlanRepository
from astral_gateway.infrastructure.observability.metrics import plans_computed_counter

router = APIRouter()


@router.post("/users/{user_id}/plans", response_model=SavedPlanResponse, status_code=201)
def save_plan(
    user_id: str,
    request_body: SavePlanRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Compute and save a plan for a vehicle.

    The plan is always rebuilt server-side from the vehicle price and the
    user's inputs (request body, or the stored profile when omitted).
    """
    request_id = get_request_id(request)
    vehicle = request_body.vehicle.to_domain()
    user_input = (
        request_body.user_input.to_domain()
        if request_body.user_input is not None
        else ProfileRepository(db).get_user_input(user_id)
    )

    try:
        plan = build_plan(vehicle.price, user_input, rate_for(user_input.credit_score), request_body.plan_type)
    except ValidationError as e:
        logging.warning(f"Invalid plan input: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    saved = SavedPlan(
        id=f"{int(now.timestamp() * 1000)}-{vehicle.model}",
        vehicle=vehicle,
        user_input=user_input,
        plan=plan,
        saved_at=now,
    )

    try:
        SavedPlanRepository(db).create_plan(user_id, saved)
        db.commit()
    except IntegrityError:
        db.rollback()
        logging.warning(f"Duplicate saved plan {saved.id}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Plan already saved")

    plans_computed_counter.labels(plan_type=plan.plan_type).inc()
    return SavedPlanResponse.from_domain(saved)


@router.get("/users/{user_id}/plans", response_model=SavedPlansResponse)
def list_plans(user_id: str, db: Session = Depends(get_db)):
    """Saved plans, newest first"""
    plans = SavedPlanRepository(db).get_plans_by_user(user_id)
    return SavedPlansResponse(user_id=user_id, plans=[SavedPlanResponse.from_domain(p) for p in plans])


@router.delete("/users/{user_id}/plans/{plan_id}", status_code=204)
def delete_plan(user_id: str, plan_id: str, db: Session = Depends(get_db)):
    if not SavedPlanRepository(db).delete_plan(user_id, plan_id):
        raise HTTPException(status_code=404, detail="Plan not found")
    db.commit()
    return Response(status_code=204)


@router.delete("/users/{user_id}/plans", status_code=204)
def clear_plans(user_id: str, db: Session = Depends(get_db)):
    """Remove every saved plan; committed loans are unaffected"""
    SavedPlanRepository(db).delete_all(user_id)
    db.commit()
    return Response(status_code=204)
