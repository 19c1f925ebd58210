"""Closed-end lease pricing"""

from astral_gateway.domain.models import LeasingPlan
from astral_gateway.domain.validation import require_non_negative

LEASE_TERM_MONTHS = 36
RESIDUAL_VALUE_RATE = 0.55  # projected value after 36 months
MONEY_FACTOR_DIVISOR = 2400


def lease(price: float, down_payment: float, annual_rate: float) -> LeasingPlan:
    """
    Price a 36-month lease.

    Requirements:
    - money factor = APR / 2400
    - residual value = 55% of price
    - depreciation fee = (cap cost - residual) / term
    - finance fee = (cap cost + residual) * money factor
    - due at signing = down payment + first monthly payment

    A down payment large enough to push the cap cost under the residual
    value would make the payment negative; it is clamped to 0.

    Raises:
        ValidationError: negative or non-finite price, down payment or rate
    """
    price = require_non_negative("price", price)
    down_payment = require_non_negative("down_payment", down_payment)
    rate = require_non_negative("annual_rate", annual_rate)

    money_factor = rate / MONEY_FACTOR_DIVISOR
    residual_value = price * RESIDUAL_VALUE_RATE
    cap_cost = price - down_payment

    depreciation_fee = (cap_cost - residual_value) / LEASE_TERM_MONTHS
    finance_fee = (cap_cost + residual_value) * money_factor
    monthly_payment = max(0.0, depreciation_fee + finance_fee)

    return LeasingPlan(
        monthly_payment=monthly_payment,
        due_at_signing=down_payment + monthly_payment,
        term_months=LEASE_TERM_MONTHS,
        money_factor=money_factor,
        residual_value=residual_value,
    )
