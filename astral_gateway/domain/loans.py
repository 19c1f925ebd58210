"""Commit a chosen plan as a tracked obligation"""

from datetime import datetime
from typing import Mapping, Tuple
from astral_gateway.domain.exceptions import ValidationError
from astral_gateway.domain.validation import payment_count
from astral_gateway.domain.models import (
    FINANCING,
    LEASING,
    ActiveLoan,
    CommitResult,
    Vehicle,
    VehiclePlan,
)

# Timeline colors, assigned round-robin by number of loans already held
LOAN_PALETTE: Tuple[str, ...] = ("#9b59b6", "#3498db", "#1abc9c", "#e74c3c", "#f1c40f", "#2ecc71", "#e67e22")


def palette_color(index: int) -> str:
    return LOAN_PALETTE[index % len(LOAN_PALETTE)]


def commit_plan(
    loan_id: str,
    plan: VehiclePlan,
    vehicle: Vehicle,
    now: datetime,
    existing_loans: Mapping[str, ActiveLoan],
) -> CommitResult:
    """
    Turn a saved plan into an ActiveLoan.

    Requirements:
    - Idempotent: an existing loan with the same id is returned untouched
      with already_committed=True (not an error)
    - The loan starts `now` and is due on now's day-of-month every month
    - Financing tracks the principal as amount_left / initial_loan_amount
    - Leasing is not balance-tracked (amount_left = 0) and starts unpaid

    `existing_loans` is only read; the caller stores the new loan.
    """
    existing = existing_loans.get(loan_id)
    if existing is not None:
        return CommitResult(loan=existing, already_committed=True)

    color = palette_color(len(existing_loans))

    if plan.plan_type == FINANCING:
        loan = ActiveLoan(
            id=loan_id,
            vehicle_model=vehicle.model,
            image_url=vehicle.image,
            plan_type=FINANCING,
            monthly_payment=plan.monthly_payment,
            total_cost=plan.total_cost,
            loan_start_date=now,
            loan_term_months=payment_count(plan.loan_term_years),
            payment_day_of_month=now.day,
            color=color,
            amount_left=plan.loan_amount,
            initial_loan_amount=plan.loan_amount,
        )
    elif plan.plan_type == LEASING:
        loan = ActiveLoan(
            id=loan_id,
            vehicle_model=vehicle.model,
            image_url=vehicle.image,
            plan_type=LEASING,
            monthly_payment=plan.monthly_payment,
            total_cost=plan.monthly_payment * plan.term_months,
            loan_start_date=now,
            loan_term_months=plan.term_months,
            payment_day_of_month=now.day,
            color=color,
            amount_left=0.0,
            last_payment_month=None,
        )
    else:
        raise ValidationError(f"Unknown plan type: {plan.plan_type!r}")

    return CommitResult(loan=loan, already_committed=False)
