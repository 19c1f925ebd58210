"""Input guards shared by the financing calculators"""

import math
from astral_gateway.domain.exceptions import ValidationError


def require_finite(name: str, value: float) -> float:
    """Reject NaN, infinities and non-numeric values"""
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return number


def require_non_negative(name: str, value: float) -> float:
    number = require_finite(name, value)
    if number < 0:
        raise ValidationError(f"{name} must be >= 0, got {value!r}")
    return number


def payment_count(term_years: float) -> int:
    """Number of monthly payments in a term given in years; at least one"""
    years = require_finite("term_years", term_years)
    n = int(round(years * 12))
    if n < 1:
        raise ValidationError(f"term_years must cover at least one monthly payment, got {term_years!r}")
    return n
