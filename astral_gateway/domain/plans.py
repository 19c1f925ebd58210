"""Build financing or leasing plans for a vehicle price"""

from typing import Tuple
from astral_gateway.domain.amortization import amortize
from astral_gateway.domain.exceptions import ValidationError
from astral_gateway.domain.leasing import lease
from astral_gateway.domain.models import FINANCING, LEASING, FinancingPlan, LeasingPlan, UserInput, VehiclePlan
from astral_gateway.domain.validation import require_non_negative


def build_financing_plan(vehicle_price: float, user_input: UserInput, annual_rate: float) -> FinancingPlan:
    """Loan for price minus down payment; total cost adds the down payment back"""
    price = require_non_negative("vehicle_price", vehicle_price)
    down_payment = require_non_negative("down_payment", user_input.down_payment)

    loan_amount = max(0.0, price - down_payment)
    amortization = amortize(loan_amount, annual_rate, user_input.loan_term_years)

    return FinancingPlan(
        loan_amount=loan_amount,
        monthly_payment=amortization.monthly_payment,
        total_cost=amortization.total_cost + down_payment,
        interest_rate=annual_rate,
        loan_term_years=user_input.loan_term_years,
    )


def build_plan(vehicle_price: float, user_input: UserInput, annual_rate: float, plan_type: str) -> VehiclePlan:
    """
    Compute the requested plan variant from scratch.

    Pure: identical inputs always give identical plans, so callers can
    rebuild on every input change without tracking previous results.

    Raises:
        ValidationError: unknown plan type or invalid numeric input
    """
    if plan_type == FINANCING:
        return build_financing_plan(vehicle_price, user_input, annual_rate)
    if plan_type == LEASING:
        return lease(vehicle_price, user_input.down_payment, annual_rate)
    raise ValidationError(f"Unknown plan type: {plan_type!r}")


def build_plans(vehicle_price: float, user_input: UserInput, annual_rate: float) -> Tuple[FinancingPlan, LeasingPlan]:
    """Both variants side by side for comparison"""
    financing = build_financing_plan(vehicle_price, user_input, annual_rate)
    leasing = lease(vehicle_price, user_input.down_payment, annual_rate)
    return financing, leasing
