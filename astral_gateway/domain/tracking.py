"""On-track (delinquency) status for active loans"""

from datetime import datetime
from astral_gateway.domain.models import LEASING, ActiveLoan
from astral_gateway.utils.date_utils import month_key, months_between


def is_on_track(loan: ActiveLoan, now: datetime) -> bool:
    """
    Whether recorded payments keep pace with time elapsed since the start.

    Leasing: on track if this month's payment is recorded, or the lease
    started this month and its first due day has not arrived yet.

    Financing: on track if paid off, if progress can't be measured
    (no initial amount or no monthly payment), or if the payments implied
    by the balance paid down are at most one behind the payments due.
    The one-payment allowance is a full period of grace before a loan
    is flagged overdue.
    """
    start = loan.loan_start_date

    if loan.plan_type == LEASING:
        if loan.last_payment_month == month_key(now):
            return True
        return month_key(start) == month_key(now) and now.day < loan.payment_day_of_month

    if loan.amount_left <= 0:
        return True
    if not loan.initial_loan_amount or loan.monthly_payment <= 0:
        return True

    payments_due = months_between(start, now)
    if now.day >= loan.payment_day_of_month:
        payments_due += 1
    if payments_due <= 0:
        return True

    estimated_payments_made = (loan.initial_loan_amount - loan.amount_left) / loan.monthly_payment
    return estimated_payments_made >= payments_due - 1
