"""Apply payments to active loans"""

import dataclasses
import math
from datetime import datetime
from astral_gateway.domain.exceptions import InvalidPaymentAmount, ValidationError
from astral_gateway.domain.models import FINANCING, LEASING, ActiveLoan
from astral_gateway.utils.date_utils import month_key
from astral_gateway.utils.money_utils import floor_to_cent, round_currency


def apply_payment(loan: ActiveLoan, amount: float, now: datetime) -> ActiveLoan:
    """
    Record a payment and return the updated loan.

    Financing:
    - amount reduces amount_left, which never goes below 0
    - rejects amounts above the remaining balance

    Leasing:
    - amount is not balance-tracked; marks now's month as paid
    - rejects a second payment in the same calendar month

    The input loan is never modified; on error nothing changes.

    Raises:
        InvalidPaymentAmount: amount <= 0, non-finite, over the balance,
            or lease already paid this month
    """
    try:
        amount = float(amount)
    except (TypeError, ValueError) as e:
        raise InvalidPaymentAmount(f"Payment amount must be a number, got {amount!r}") from e
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidPaymentAmount(f"Payment amount must be positive, got {amount!r}")

    if loan.plan_type == FINANCING:
        if amount > loan.amount_left:
            raise InvalidPaymentAmount(
                f"Payment of {amount:.2f} exceeds remaining balance of {loan.amount_left:.2f}"
            )
        return dataclasses.replace(loan, amount_left=max(0.0, round_currency(loan.amount_left - amount)))

    if loan.plan_type == LEASING:
        current_month = month_key(now)
        if loan.last_payment_month == current_month:
            raise InvalidPaymentAmount(f"Lease payment for {current_month} already recorded")
        return dataclasses.replace(loan, last_payment_month=current_month)

    raise ValidationError(f"Unknown plan type: {loan.plan_type!r}")


def is_paid_for_month(loan: ActiveLoan, now: datetime) -> bool:
    """Lease payment recorded for now's month"""
    return loan.plan_type == LEASING and loan.last_payment_month == month_key(now)


def suggested_payment(loan: ActiveLoan, now: datetime) -> float:
    """
    Amount to prefill for the next payment, floored to the cent.

    Leases: the monthly payment, or 0 once this month is paid.
    Financing: the monthly payment capped at the remaining balance (0 when paid off).
    """
    if loan.plan_type == LEASING:
        return 0.0 if is_paid_for_month(loan, now) else floor_to_cent(loan.monthly_payment)
    return floor_to_cent(max(0.0, min(loan.monthly_payment, loan.amount_left)))
