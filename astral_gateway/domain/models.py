"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional, Union

from astral_gateway.domain.exceptions import ValidationError

FINANCING = "Financing"
LEASING = "Leasing"

PlanType = Literal["Financing", "Leasing"]


@dataclass(frozen=True)
class RateTier:
    """Minimum credit score that unlocks an annual rate"""

    min_score: int
    annual_rate: float


@dataclass(frozen=True)
class Preferences:
    """Vehicle preferences; empty lists match every vehicle"""

    styles: List[str] = field(default_factory=list)
    use_cases: List[str] = field(default_factory=list)
    description: str = ""


@dataclass(frozen=True)
class UserInput:
    """Buyer's financial coordinates and vehicle preferences"""

    income: float = 75_000
    credit_score: int = 720
    down_payment: float = 5_000
    loan_term_years: int = 5
    min_seats: int = 1
    preferences: Preferences = field(default_factory=Preferences)


@dataclass(frozen=True)
class Vehicle:
    """Catalog vehicle; only price and model matter to the financing math"""

    model: str
    price: float
    image: str = ""
    description: str = ""
    style: Optional[str] = None
    use_case: Optional[str] = None
    seating_capacity: Optional[int] = None
    special_offer: Optional[str] = None


@dataclass(frozen=True)
class Amortization:
    """Level payment for a principal; total_cost excludes any down payment"""

    monthly_payment: float
    total_cost: float


@dataclass(frozen=True)
class FinancingPlan:
    """Fixed-rate, fixed-term purchase loan"""

    loan_amount: float
    monthly_payment: float
    total_cost: float  # includes the down payment
    interest_rate: float
    loan_term_years: int
    plan_type: Literal["Financing"] = FINANCING


@dataclass(frozen=True)
class LeasingPlan:
    """Fixed-term closed-end lease"""

    monthly_payment: float
    due_at_signing: float
    term_months: int
    money_factor: float
    residual_value: float
    plan_type: Literal["Leasing"] = LEASING


# Tagged variant: branch on plan_type, never on a shared base class
VehiclePlan = Union[FinancingPlan, LeasingPlan]


@dataclass(frozen=True)
class AffordabilityRange:
    """Justifiable purchase-price band, min is always 70% of max"""

    min: float
    max: float


@dataclass(frozen=True)
class ActiveLoan:
    """Committed plan under active repayment"""

    id: str
    vehicle_model: str
    image_url: str
    plan_type: PlanType
    monthly_payment: float
    total_cost: float
    loan_start_date: datetime
    loan_term_months: int
    payment_day_of_month: int
    color: str
    amount_left: float  # financing only; 0 for leases
    initial_loan_amount: Optional[float] = None  # financing only
    last_payment_month: Optional[int] = None  # leasing only, YYYYMM


@dataclass(frozen=True)
class CommitResult:
    """Outcome of committing a plan; already_committed replaces a duplicate error"""

    loan: ActiveLoan
    already_committed: bool


@dataclass(frozen=True)
class PaymentEvent:
    """Single scheduled payment, computed on demand"""

    due_date: date
    loan: ActiveLoan
    amount: float
    payments_remaining: int


@dataclass(frozen=True)
class SavedPlan:
    """Plan a user bookmarked for a vehicle; its id becomes the loan id at commit"""

    id: str
    vehicle: Vehicle
    user_input: UserInput
    plan: VehiclePlan
    saved_at: datetime


@dataclass(frozen=True)
class Recommendation:
    """Catalog vehicle with its financing preview"""

    vehicle: Vehicle
    financing_plan: FinancingPlan
    is_top_match: bool


@dataclass(frozen=True)
class AdvisorInsights:
    """Advisor's pick of best-fitting models plus a short financial tip"""

    recommended_models: List[str]
    financial_tips: str


@dataclass(frozen=True)
class ChatMessage:
    sender: Literal["user", "ai"]
    text: str


def plan_to_dict(plan: VehiclePlan) -> Dict[str, Any]:
    """JSON-ready representation, keeps the plan_type tag"""
    return asdict(plan)


def plan_from_dict(data: Dict[str, Any]) -> VehiclePlan:
    """Rebuild a tagged plan from its JSON representation"""
    plan_type = data.get("plan_type")
    fields = {k: v for k, v in data.items() if k != "plan_type"}
    if plan_type == FINANCING:
        return FinancingPlan(**fields)
    if plan_type == LEASING:
        return LeasingPlan(**fields)
    raise ValidationError(f"Unknown plan type: {plan_type!r}")


def user_input_to_dict(user_input: UserInput) -> Dict[str, Any]:
    return asdict(user_input)


def user_input_from_dict(data: Dict[str, Any]) -> UserInput:
    prefs = data.get("preferences") or {}
    return UserInput(
        income=data["income"],
        credit_score=data["credit_score"],
        down_payment=data["down_payment"],
        loan_term_years=data["loan_term_years"],
        min_seats=data.get("min_seats", 1),
        preferences=Preferences(
            styles=list(prefs.get("styles", [])),
            use_cases=list(prefs.get("use_cases", [])),
            description=prefs.get("description", ""),
        ),
    )


def vehicle_to_dict(vehicle: Vehicle) -> Dict[str, Any]:
    return asdict(vehicle)


def vehicle_from_dict(data: Dict[str, Any]) -> Vehicle:
    return Vehicle(**data)
