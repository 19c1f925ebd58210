"""Forward payment schedule generation for active loans"""

from datetime import date
from typing import Iterable, List, Optional
from astral_gateway.domain.models import ActiveLoan, PaymentEvent
from astral_gateway.utils.date_utils import add_months, as_date
from astral_gateway.utils.money_utils import round_currency


def due_date(loan: ActiveLoan, month_index: int) -> date:
    """Due date of the loan's `month_index`-th payment (0-based), clamped to month end"""
    return add_months(as_date(loan.loan_start_date), month_index, loan.payment_day_of_month)


def loan_end_date(loan: ActiveLoan) -> date:
    """One full term after the start month, on the payment day"""
    return due_date(loan, loan.loan_term_months)


def schedule(loans: Iterable[ActiveLoan], start: date, until: Optional[date] = None) -> List[PaymentEvent]:
    """
    Future payment events for one or many loans, ascending by due date.

    Requirements:
    - Payment k of a loan falls in start month + k, on payment_day_of_month
      (clamped to the month's last day when the day does not exist)
    - Only events on or after `start` (and on or before `until`, if given)
    - payments_remaining counts the payment itself: term - k
    - Recomputed from scratch on every call; loans are never modified

    An `until` earlier than `start` yields an empty schedule.
    """
    start = as_date(start)
    if until is not None:
        until = as_date(until)
        if until < start:
            return []

    events: List[PaymentEvent] = []
    for loan in loans:
        amount = round_currency(loan.monthly_payment)
        for month_index in range(loan.loan_term_months):
            payment_date = due_date(loan, month_index)
            if payment_date < start:
                continue
            if until is not None and payment_date > until:
                break
            events.append(
                PaymentEvent(
                    due_date=payment_date,
                    loan=loan,
                    amount=amount,
                    payments_remaining=loan.loan_term_months - month_index,
                )
            )

    # Stable sort keeps input loan order for payments due the same day
    return sorted(events, key=lambda e: e.due_date)
