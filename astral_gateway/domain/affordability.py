"""Affordable purchase-price range from income, credit and term"""

import math
from astral_gateway.domain.exceptions import ValidationError
from astral_gateway.domain.models import AffordabilityRange
from astral_gateway.domain.rates import rate_for
from astral_gateway.domain.validation import payment_count, require_finite, require_non_negative

PAYMENT_TO_INCOME_RATIO = 0.15  # max share of gross monthly income spent on the car
RANGE_FLOOR_RATIO = 0.7


def max_loan_amount(max_monthly: float, annual_rate: float, term_years: float) -> float:
    """Principal a level payment of `max_monthly` can repay (inverse annuity)"""
    n = payment_count(term_years)
    i = require_non_negative("annual_rate", annual_rate) / 12
    if i == 0:
        return max_monthly * n
    growth = (1 + i) ** n
    if growth == 1:
        return max_monthly * n
    return max_monthly * ((growth - 1) / (i * growth))


def estimate(income: float, credit_score: float, down_payment: float, term_years: float) -> AffordabilityRange:
    """
    Estimate the vehicle price range a buyer can justify.

    Steps:
    1. Budget 15% of gross monthly income for the payment
    2. Invert the annuity formula at the credit-score rate to get the max loan
    3. Add the down payment to get the max price
    4. The range floor is 70% of the max price

    Raises:
        ValidationError: negative or non-finite inputs, term under one month
    """
    income = require_non_negative("income", income)
    credit_score = require_finite("credit_score", credit_score)
    down_payment = require_non_negative("down_payment", down_payment)

    max_monthly = (income / 12) * PAYMENT_TO_INCOME_RATIO
    max_price = max_loan_amount(max_monthly, rate_for(credit_score), term_years) + down_payment

    if not math.isfinite(max_price):
        raise ValidationError("Affordability estimate did not produce a finite price")

    return AffordabilityRange(min=max_price * RANGE_FLOOR_RATIO, max=max_price)
