"""Demo users for local development and persona tests"""

from datetime import datetime
from sqlalchemy.orm import Session
from astral_gateway.domain.models import FINANCING, ActiveLoan, UserInput
from astral_gateway.infrastructure.database.models import UserProfileRecord
from astral_gateway.infrastructure.database.repositories import LoanRepository, ProfileRepository


def _one_year_before(now: datetime) -> datetime:
    # Feb 29 has no counterpart in the previous year
    try:
        return now.replace(year=now.year - 1)
    except ValueError:
        return now.replace(year=now.year - 1, day=28)


def seed_demo_data(db: Session, now: datetime) -> bool:
    """
    Install the demo users once.

    - celestial: default profile, no loans
    - voyager: high income / excellent credit, a RAV4 loan started a year ago

    Returns False when the demo users already exist.
    """
    if db.get(UserProfileRecord, "celestial") is not None:
        return False

    profiles = ProfileRepository(db)
    profiles.save_user_input("celestial", UserInput())
    profiles.save_user_input("voyager", UserInput(income=120_000, credit_score=810, down_payment=20_000))

    LoanRepository(db).add_loan(
        "voyager",
        ActiveLoan(
            id="loan-1678886400000-RAV4",
            vehicle_model="RAV4",
            image_url="RAV4.jpg",
            plan_type=FINANCING,
            monthly_payment=550.75,
            total_cost=33_045,
            loan_start_date=_one_year_before(now),
            loan_term_months=60,
            payment_day_of_month=15,
            color="#3498db",
            amount_left=26_436,
            initial_loan_amount=33_045,
        ),
    )
    db.commit()
    return True
