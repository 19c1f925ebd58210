"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timezone
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from astral_gateway.api.main import create_app
from astral_gateway.api.dependencies import get_now
from astral_gateway.domain.models import FINANCING, LEASING, ActiveLoan, UserInput, Vehicle
from astral_gateway.infrastructure.database.models import Base
from astral_gateway.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Every request in the API tests sees this clock
FIXED_NOW = datetime(2024, 7, 20, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def app(db: Session):
    """FastAPI app wired to the test database and the fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    return app


@pytest.fixture
def client(app) -> TestClient:
    """Create FastAPI test client with test database"""
    return TestClient(app)


@pytest.fixture
def user_input() -> UserInput:
    """Default buyer: $75k income, 720 credit (6.5% APR), $5k down, 5 years"""
    return UserInput()


@pytest.fixture
def vehicle() -> Vehicle:
    return Vehicle(model="Camry", price=32_000, image="camry.jpg", style="Sedan", use_case="Commute", seating_capacity=5)


@pytest.fixture
def financing_loan() -> ActiveLoan:
    """$27k loan at 6.5% over 60 months, started Jan 15 2024, untouched"""
    return ActiveLoan(
        id="plan-1",
        vehicle_model="Camry",
        image_url="camry.jpg",
        plan_type=FINANCING,
        monthly_payment=528.28,
        total_cost=36_696.80,
        loan_start_date=datetime(2024, 1, 15, 9, 30),
        loan_term_months=60,
        payment_day_of_month=15,
        color="#9b59b6",
        amount_left=27_000,
        initial_loan_amount=27_000,
    )


@pytest.fixture
def leasing_loan() -> ActiveLoan:
    """36-month lease started Jan 31 2024, no payment recorded"""
    return ActiveLoan(
        id="plan-2",
        vehicle_model="Civic",
        image_url="civic.jpg",
        plan_type=LEASING,
        monthly_payment=267.51,
        total_cost=267.51 * 36,
        loan_start_date=datetime(2024, 1, 31, 18, 0),
        loan_term_months=36,
        payment_day_of_month=31,
        color="#3498db",
        amount_left=0.0,
    )
