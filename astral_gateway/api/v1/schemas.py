"""Pydantic schemas for API request/response validation"""

from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from astral_gateway.domain.models import (
    ActiveLoan,
    AffordabilityRange,
    ChatMessage,
    FinancingPlan,
    LeasingPlan,
    PaymentEvent,
    Preferences,
    Recommendation,
    SavedPlan,
    UserInput,
    Vehicle,
    VehiclePlan,
)


class PreferencesSchema(BaseModel):
    """Vehicle preferences; empty lists match everything"""

    styles: List[str] = Field(default_factory=list)
    use_cases: List[str] = Field(default_factory=list)
    description: str = ""


class UserInputSchema(BaseModel):
    """Buyer's financial inputs"""

    income: float = Field(75_000, ge=0, description="Gross annual income")
    credit_score: int = Field(720, ge=300, le=850)
    down_payment: float = Field(5_000, ge=0)
    loan_term_years: int = Field(5, ge=1, le=15)
    min_seats: int = Field(1, ge=1, le=8)
    preferences: PreferencesSchema = Field(default_factory=PreferencesSchema)

    def to_domain(self) -> UserInput:
        return UserInput(
            income=self.income,
            credit_score=self.credit_score,
            down_payment=self.down_payment,
            loan_term_years=self.loan_term_years,
            min_seats=self.min_seats,
            preferences=Preferences(
                styles=list(self.preferences.styles),
                use_cases=list(self.preferences.use_cases),
                description=self.preferences.description,
            ),
        )

    @classmethod
    def from_domain(cls, user_input: UserInput) -> "UserInputSchema":
        return cls(
            income=user_input.income,
            credit_score=user_input.credit_score,
            down_payment=user_input.down_payment,
            loan_term_years=user_input.loan_term_years,
            min_seats=user_input.min_seats,
            preferences=PreferencesSchema(
                styles=user_input.preferences.styles,
                use_cases=user_input.preferences.use_cases,
                description=user_input.preferences.description,
            ),
        )


class VehicleSchema(BaseModel):
    """Catalog vehicle"""

    model: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image: str = ""
    description: str = ""
    style: Optional[str] = None
    use_case: Optional[str] = None
    seating_capacity: Optional[int] = Field(None, ge=1)
    special_offer: Optional[str] = None

    def to_domain(self) -> Vehicle:
        return Vehicle(**self.model_dump())

    @classmethod
    def from_domain(cls, vehicle: Vehicle) -> "VehicleSchema":
        return cls(**vehicle.__dict__)


class FinancingPlanSchema(BaseModel):
    plan_type: Literal["Financing"] = "Financing"
    loan_amount: float
    monthly_payment: float
    total_cost: float
    interest_rate: float
    loan_term_years: int


class LeasingPlanSchema(BaseModel):
    plan_type: Literal["Leasing"] = "Leasing"
    monthly_payment: float
    due_at_signing: float
    term_months: int
    money_factor: float
    residual_value: float


PlanSchema = Annotated[Union[FinancingPlanSchema, LeasingPlanSchema], Field(discriminator="plan_type")]


def plan_schema(plan: VehiclePlan) -> Union[FinancingPlanSchema, LeasingPlanSchema]:
    if isinstance(plan, FinancingPlan):
        return FinancingPlanSchema(**plan.__dict__)
    if isinstance(plan, LeasingPlan):
        return LeasingPlanSchema(**plan.__dict__)
    raise TypeError(f"Unsupported plan: {plan!r}")


class AffordabilitySchema(BaseModel):
    min: float
    max: float

    @classmethod
    def from_domain(cls, affordability: AffordabilityRange) -> "AffordabilitySchema":
        return cls(min=affordability.min, max=affordability.max)


class AffordabilityRequest(BaseModel):
    """Request body for POST /v1/affordability"""

    user_input: UserInputSchema


class AffordabilityResponse(BaseModel):
    interest_rate: float
    affordability: AffordabilitySchema


class QuoteRequest(BaseModel):
    """Request body for POST /v1/quote"""

    vehicle: VehicleSchema
    user_input: UserInputSchema


class QuoteResponse(BaseModel):
    """Both plan variants for one vehicle"""

    interest_rate: float
    affordability: AffordabilitySchema
    financing: FinancingPlanSchema
    leasing: LeasingPlanSchema


class RecommendationRequest(BaseModel):
    """Request body for POST /v1/recommendations"""

    vehicles: List[VehicleSchema]
    user_input: UserInputSchema
    top_models: List[str] = Field(default_factory=list, description="Advisor's best matches, ranked first")


class RecommendationItem(BaseModel):
    vehicle: VehicleSchema
    financing_plan: FinancingPlanSchema
    is_top_match: bool

    @classmethod
    def from_domain(cls, recommendation: Recommendation) -> "RecommendationItem":
        return cls(
            vehicle=VehicleSchema.from_domain(recommendation.vehicle),
            financing_plan=FinancingPlanSchema(**recommendation.financing_plan.__dict__),
            is_top_match=recommendation.is_top_match,
        )


class RecommendationResponse(BaseModel):
    recommendations: List[RecommendationItem]
    advisor_candidates: List[str]


class ProfileResponse(BaseModel):
    user_id: str
    user_input: UserInputSchema


class SavePlanRequest(BaseModel):
    """Request body for POST /v1/users/{user_id}/plans"""

    vehicle: VehicleSchema
    plan_type: Literal["Financing", "Leasing"] = "Financing"
    user_input: Optional[UserInputSchema] = Field(None, description="Defaults to the stored profile")


class SavedPlanResponse(BaseModel):
    plan_id: str
    vehicle: VehicleSchema
    user_input: UserInputSchema
    plan: PlanSchema
    saved_at: datetime

    @classmethod
    def from_domain(cls, saved: SavedPlan) -> "SavedPlanResponse":
        return cls(
            plan_id=saved.id,
            vehicle=VehicleSchema.from_domain(saved.vehicle),
            user_input=UserInputSchema.from_domain(saved.user_input),
            plan=plan_schema(saved.plan),
            saved_at=saved.saved_at,
        )


class SavedPlansResponse(BaseModel):
    user_id: str
    plans: List[SavedPlanResponse]


class CommitRequest(BaseModel):
    """Request body for POST /v1/users/{user_id}/loans"""

    plan_id: str = Field(..., min_length=1)


class LoanSchema(BaseModel):
    """Active loan plus its status as of the request time"""

    id: str
    vehicle_model: str
    image_url: str
    plan_type: Literal["Financing", "Leasing"]
    monthly_payment: float
    total_cost: float
    loan_start_date: datetime
    loan_term_months: int
    payment_day_of_month: int
    color: str
    amount_left: float
    initial_loan_amount: Optional[float] = None
    last_payment_month: Optional[int] = None
    on_track: bool
    suggested_payment: float
    end_date: date

    @classmethod
    def from_domain(cls, loan: ActiveLoan, on_track: bool, suggested_payment: float, end_date: date) -> "LoanSchema":
        return cls(
            **loan.__dict__,
            on_track=on_track,
            suggested_payment=suggested_payment,
            end_date=end_date,
        )


class CommitResponse(BaseModel):
    loan: LoanSchema
    already_committed: bool


class LoansResponse(BaseModel):
    user_id: str
    loans: List[LoanSchema]


class PaymentRequest(BaseModel):
    """Request body for POST /v1/users/{user_id}/loans/{loan_id}/payments"""

    amount: float


class PaymentResponse(BaseModel):
    loan: LoanSchema


class PaymentEventSchema(BaseModel):
    """Single scheduled payment"""

    due_date: date
    loan_id: str
    vehicle_model: str
    plan_type: Literal["Financing", "Leasing"]
    color: str
    amount: float
    payments_remaining: int

    @classmethod
    def from_domain(cls, event: PaymentEvent) -> "PaymentEventSchema":
        return cls(
            due_date=event.due_date,
            loan_id=event.loan.id,
            vehicle_model=event.loan.vehicle_model,
            plan_type=event.loan.plan_type,
            color=event.loan.color,
            amount=event.amount,
            payments_remaining=event.payments_remaining,
        )


class ScheduleResponse(BaseModel):
    """Response for GET /v1/users/{user_id}/schedule"""

    user_id: str
    start: date
    until: Optional[date] = None
    events: List[PaymentEventSchema]


class SummaryResponse(BaseModel):
    summary: str


class AdviceRequest(BaseModel):
    """Request body for POST /v1/advice/financing"""

    vehicle: VehicleSchema
    user_input: UserInputSchema


class AdviceResponse(BaseModel):
    advice: str
    plan: FinancingPlanSchema


class InsightsRequest(BaseModel):
    """Request body for POST /v1/insights"""

    vehicles: List[VehicleSchema]
    user_input: UserInputSchema


class InsightsResponse(BaseModel):
    """Advisor picks and tip, with the catalog ranked so its picks come first"""

    recommended_models: List[str]
    financial_tips: str
    recommendations: List[RecommendationItem]


class ChatMessageSchema(BaseModel):
    sender: Literal["user", "ai"]
    text: str

    def to_domain(self) -> ChatMessage:
        return ChatMessage(sender=self.sender, text=self.text)


class ChatRequest(BaseModel):
    """Request body for POST /v1/users/{user_id}/chat"""

    message: str = Field(..., min_length=1)
    history: List[ChatMessageSchema] = Field(default_factory=list)
    view: Literal["navigator", "saved", "timeline", "samples"] = "navigator"
    recommended_models: List[str] = Field(default_factory=list, description="Models on screen in the navigator")


class ChatResponse(BaseModel):
    reply: str


class ConversationRequest(BaseModel):
    """Request body for POST /v1/users/{user_id}/conversations"""

    messages: List[ChatMessageSchema] = Field(..., min_length=1)


class ConversationResponse(BaseModel):
    conversation_id: int
    created_at: datetime
    messages: List[ChatMessageSchema]


class ConversationsResponse(BaseModel):
    user_id: str
    conversations: List[ConversationResponse]


class SampleCreateRequest(BaseModel):
    """Snapshot a user's profile and loans under a name"""

    name: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


class SampleOverwriteRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class SampleResponse(BaseModel):
    sample_id: str
    name: str
    created_at: datetime
    user_input: UserInputSchema
    loans: List[Dict[str, Any]]


class SamplesResponse(BaseModel):
    samples: List[SampleResponse]
