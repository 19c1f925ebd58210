"""Fixed-rate loan amortization (standard annuity formula)"""

import math
from astral_gateway.domain.exceptions import ValidationError
from astral_gateway.domain.models import Amortization
from astral_gateway.domain.validation import payment_count, require_finite, require_non_negative


def amortize(principal: float, annual_rate: float, term_years: float) -> Amortization:
    """
    Level monthly payment that fully repays `principal` over `term_years`.

    Formula (monthly compounding, i = annual_rate / 12, n = term_years * 12):
        M = P * i * (1+i)^n / ((1+i)^n - 1)

    Edge cases:
    - principal <= 0: nothing to finance, payment and cost are 0
    - annual_rate == 0: the formula divides by zero, so M = P / n

    total_cost is M * n only; the caller adds any down payment.

    Raises:
        ValidationError: non-finite inputs, negative rate, term under one month
    """
    principal = require_finite("principal", principal)
    rate = require_non_negative("annual_rate", annual_rate)
    n = payment_count(term_years)

    if principal <= 0:
        return Amortization(monthly_payment=0.0, total_cost=0.0)

    i = rate / 12
    if i == 0:
        monthly_payment = principal / n
    else:
        growth = (1 + i) ** n
        if growth == 1:
            # Rate so small that (1+i)^n rounds to 1 in floating point
            monthly_payment = principal / n
        else:
            monthly_payment = principal * (i * growth) / (growth - 1)

    if not math.isfinite(monthly_payment):
        raise ValidationError(
            f"Amortization of {principal} at {annual_rate} over {term_years}y did not produce a finite payment"
        )

    return Amortization(monthly_payment=monthly_payment, total_cost=monthly_payment * n)
