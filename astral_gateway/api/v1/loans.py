"""/v1/users/{user_id}/loans and /schedule - commit plans, record payments, project due dates"""

import time
import logging
from datetime import date, datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from astral_gateway.api.v1.schemas import (
    CommitRequest,
    CommitResponse,
    LoanSchema,
    LoansResponse,
    PaymentEventSchema,
    PaymentRequest,
    PaymentResponse,
    ScheduleResponse,
)
from astral_gateway.api.dependencies import get_now, get_request_id
from astral_gateway.domain.exceptions import InvalidPaymentAmount
from astral_gateway.domain.loans import commit_plan
from astral_gateway.domain.models import ActiveLoan, CommitResult
from astral_gateway.domain.payments import apply_payment, suggested_payment
from astral_gateway.domain.schedule import loan_end_date, schedule
from astral_gateway.domain.tracking import is_on_track
from astral_gateway.infrastructure.database.session import get_db
from astral_gateway.infrastructure.database.repositories import LoanRepository, SavedPlanRepository, loan_from_record
from astral_gateway.infrastructure.observability.metrics import (
    loans_committed_counter,
    loans_off_track_gauge,
    record_payment,
)
from astral_gateway.infrastructure.observability.logging import log_commit, log_payment

router = APIRouter()


def loan_view(loan: ActiveLoan, now: datetime) -> LoanSchema:
    """Loan with status fields evaluated at `now`"""
    return LoanSchema.from_domain(
        loan,
        on_track=is_on_track(loan, now),
        suggested_payment=suggested_payment(loan, now),
        end_date=loan_end_date(loan),
    )


@router.post("/users/{user_id}/loans", response_model=CommitResponse)
def commit_loan(
    user_id: str,
    request_body: CommitRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Commit a saved plan as an active loan.

    Flow:
    1. Load the saved plan (404 if unknown)
    2. Build the loan against the user's current loans
    3. Insert it, or report already_committed for a repeat (200, not an error)

    Returns 201 when a loan is created.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    saved = SavedPlanRepository(db).get_plan(user_id, request_body.plan_id)
    if saved is None:
        raise HTTPException(status_code=404, detail="Plan not found")

    loan_repo = LoanRepository(db)
    result = commit_plan(saved.id, saved.plan, saved.vehicle, now, loan_repo.get_loans(user_id))

    if not result.already_committed:
        try:
            loan_repo.add_loan(user_id, result.loan)
            db.commit()
        except IntegrityError:
            # A concurrent request committed the same plan first
            db.rollback()
            existing = LoanRepository(db).get_loans(user_id)[saved.id]
            result = CommitResult(loan=existing, already_committed=True)

    response.status_code = 200 if result.already_committed else 201

    loans_committed_counter.labels(
        plan_type=result.loan.plan_type,
        outcome="duplicate" if result.already_committed else "created",
    ).inc()
    log_commit(
        request_id,
        user_id,
        result.loan.id,
        result.loan.plan_type,
        result.already_committed,
        (time.time() - start_time) * 1000,
    )

    return CommitResponse(loan=loan_view(result.loan, now), already_committed=result.already_committed)


@router.get("/users/{user_id}/loans", response_model=LoansResponse)
def list_loans(user_id: str, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    """Active loans with on-track status and the suggested next payment"""
    loans = [loan_view(loan, now) for loan in LoanRepository(db).get_loans(user_id).values()]
    loans_off_track_gauge.set(sum(1 for loan in loans if not loan.on_track))
    return LoansResponse(user_id=user_id, loans=loans)


@router.post("/users/{user_id}/loans/{loan_id}/payments", response_model=PaymentResponse)
def make_payment(
    user_id: str,
    loan_id: str,
    request_body: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Apply a payment to one loan.

    The loan row is locked for the transaction and versioned, so two
    concurrent payments cannot overwrite each other's balance. A rejected
    payment leaves the loan untouched.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    loan_repo = LoanRepository(db)
    record = loan_repo.get_for_update(user_id, loan_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Loan not found")

    loan = loan_from_record(record)

    try:
        updated = apply_payment(loan, request_body.amount, now)
        loan_repo.save_payment_state(record, updated)
        db.commit()

    except InvalidPaymentAmount as e:
        db.rollback()
        record_payment(loan.plan_type, "rejected")
        logging.warning(f"Payment rejected: {e}", extra={"request_id": request_id, "loan_id": loan_id})
        raise HTTPException(status_code=422, detail=str(e))

    except StaleDataError:
        db.rollback()
        record_payment(loan.plan_type, "conflict")
        logging.warning("Concurrent payment detected", extra={"request_id": request_id, "loan_id": loan_id})
        raise HTTPException(status_code=409, detail="Loan was updated concurrently, retry the payment")

    record_payment(loan.plan_type, "applied", request_body.amount)
    log_payment(
        request_id,
        user_id,
        loan_id,
        updated.plan_type,
        request_body.amount,
        updated.amount_left,
        (time.time() - start_time) * 1000,
    )

    return PaymentResponse(loan=loan_view(updated, now))


@router.get("/users/{user_id}/schedule", response_model=ScheduleResponse)
def get_schedule(
    user_id: str,
    start: Optional[date] = Query(None, description="First due date to include (default: today)"),
    until: Optional[date] = Query(None, description="Last due date to include (default: end of every term)"),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Upcoming payments across all of a user's loans, soonest first.

    An `until` before `start` returns an empty schedule.
    """
    start = start or now.date()
    loans = LoanRepository(db).get_loans(user_id).values()
    events = schedule(loans, start, until)

    return ScheduleResponse(
        user_id=user_id,
        start=start,
        until=until,
        events=[PaymentEventSchema.from_domain(e) for e in events],
    )
