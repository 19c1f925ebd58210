"""Data access layer for profiles, saved plans, active loans, sample profiles and chat conversations"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from astral_gateway.infrastructure.database.models import (
    ActiveLoanRecord,
    ChatConversationRecord,
    SampleProfileRecord,
    SavedPlanRecord,
    UserProfileRecord,
)
from astral_gateway.domain.models import (
    ActiveLoan,
    ChatMessage,
    SavedPlan,
    UserInput,
    plan_from_dict,
    plan_to_dict,
    user_input_from_dict,
    user_input_to_dict,
    vehicle_from_dict,
    vehicle_to_dict,
)


def loan_from_record(record: ActiveLoanRecord) -> ActiveLoan:
    """Detach an ORM row into an immutable domain loan"""
    return ActiveLoan(
        id=record.id,
        vehicle_model=record.vehicle_model,
        image_url=record.image_url,
        plan_type=record.plan_type,
        monthly_payment=record.monthly_payment,
        total_cost=record.total_cost,
        loan_start_date=record.loan_start_date,
        loan_term_months=record.loan_term_months,
        payment_day_of_month=record.payment_day_of_month,
        color=record.color,
        amount_left=record.amount_left,
        initial_loan_amount=record.initial_loan_amount,
        last_payment_month=record.last_payment_month,
    )


def loan_to_dict(loan: ActiveLoan) -> Dict[str, Any]:
    """JSON-ready loan (ISO start date) for snapshots"""
    return {
        "id": loan.id,
        "vehicle_model": loan.vehicle_model,
        "image_url": loan.image_url,
        "plan_type": loan.plan_type,
        "monthly_payment": loan.monthly_payment,
        "total_cost": loan.total_cost,
        "loan_start_date": loan.loan_start_date.isoformat(),
        "loan_term_months": loan.loan_term_months,
        "payment_day_of_month": loan.payment_day_of_month,
        "color": loan.color,
        "amount_left": loan.amount_left,
        "initial_loan_amount": loan.initial_loan_amount,
        "last_payment_month": loan.last_payment_month,
    }


class ProfileRepository:
    """Repository for user input profiles"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_input(self, user_id: str) -> UserInput:
        """Stored profile, or the default profile for new users"""
        record = self.db.get(UserProfileRecord, user_id)
        if record is None:
            return UserInput()
        return user_input_from_dict(record.user_input)

    def save_user_input(self, user_id: str, user_input: UserInput) -> None:
        record = self.db.get(UserProfileRecord, user_id)
        if record is None:
            self.db.add(UserProfileRecord(user_id=user_id, user_input=user_input_to_dict(user_input)))
        else:
            record.user_input = user_input_to_dict(user_input)
        self.db.flush()


class SavedPlanRepository:
    """Repository for saved plans"""

    def __init__(self, db: Session):
        self.db = db

    def create_plan(self, user_id: str, saved: SavedPlan) -> SavedPlanRecord:
        """Persist a saved plan"""
        record = SavedPlanRecord(
            id=saved.id,
            user_id=user_id,
            vehicle=vehicle_to_dict(saved.vehicle),
            user_input=user_input_to_dict(saved.user_input),
            plan=plan_to_dict(saved.plan),
            saved_at=saved.saved_at,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_plans_by_user(self, user_id: str) -> List[SavedPlan]:
        """Saved plans, newest first"""
        records = (
            self.db.query(SavedPlanRecord)
            .filter(SavedPlanRecord.user_id == user_id)
            .order_by(SavedPlanRecord.saved_at.desc(), SavedPlanRecord.id.desc())
            .all()
        )
        return [self._to_domain(r) for r in records]

    def get_plan(self, user_id: str, plan_id: str) -> Optional[SavedPlan]:
        record = (
            self.db.query(SavedPlanRecord)
            .filter(SavedPlanRecord.user_id == user_id, SavedPlanRecord.id == plan_id)
            .first()
        )
        return self._to_domain(record) if record else None

    def delete_plan(self, user_id: str, plan_id: str) -> bool:
        deleted = (
            self.db.query(SavedPlanRecord)
            .filter(SavedPlanRecord.user_id == user_id, SavedPlanRecord.id == plan_id)
            .delete()
        )
        return deleted > 0

    def delete_all(self, user_id: str) -> int:
        return self.db.query(SavedPlanRecord).filter(SavedPlanRecord.user_id == user_id).delete()

    @staticmethod
    def _to_domain(record: SavedPlanRecord) -> SavedPlan:
        return SavedPlan(
            id=record.id,
            vehicle=vehicle_from_dict(record.vehicle),
            user_input=user_input_from_dict(record.user_input),
            plan=plan_from_dict(record.plan),
            saved_at=record.saved_at,
        )


class LoanRepository:
    """Repository for active loans, keyed by (user_id, loan id)"""

    def __init__(self, db: Session):
        self.db = db

    def get_loans(self, user_id: str) -> Dict[str, ActiveLoan]:
        """Snapshot of a user's loans indexed by id, in commit order"""
        records = (
            self.db.query(ActiveLoanRecord)
            .filter(ActiveLoanRecord.user_id == user_id)
            .order_by(ActiveLoanRecord.loan_start_date, ActiveLoanRecord.id)
            .all()
        )
        return {r.id: loan_from_record(r) for r in records}

    def add_loan(self, user_id: str, loan: ActiveLoan) -> ActiveLoanRecord:
        """Insert a newly committed loan; duplicate ids raise IntegrityError on flush"""
        record = ActiveLoanRecord(
            user_id=user_id,
            id=loan.id,
            vehicle_model=loan.vehicle_model,
            image_url=loan.image_url,
            plan_type=loan.plan_type,
            monthly_payment=loan.monthly_payment,
            total_cost=loan.total_cost,
            loan_start_date=loan.loan_start_date,
            loan_term_months=loan.loan_term_months,
            payment_day_of_month=loan.payment_day_of_month,
            color=loan.color,
            amount_left=loan.amount_left,
            initial_loan_amount=loan.initial_loan_amount,
            last_payment_month=loan.last_payment_month,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_for_update(self, user_id: str, loan_id: str) -> Optional[ActiveLoanRecord]:
        """Row-lock a loan for the rest of the transaction (no-op on SQLite)"""
        return (
            self.db.query(ActiveLoanRecord)
            .filter(ActiveLoanRecord.user_id == user_id, ActiveLoanRecord.id == loan_id)
            .with_for_update()
            .first()
        )

    def save_payment_state(self, record: ActiveLoanRecord, loan: ActiveLoan) -> None:
        """Write back the fields a payment may change; bumps the row version"""
        record.amount_left = loan.amount_left
        record.last_payment_month = loan.last_payment_month
        self.db.flush()


class SampleProfileRepository:
    """Repository for sample profile snapshots"""

    def __init__(self, db: Session):
        self.db = db

    def list_samples(self) -> List[SampleProfileRecord]:
        """All samples, newest first"""
        return self.db.query(SampleProfileRecord).order_by(SampleProfileRecord.created_at.desc()).all()

    def get_sample(self, sample_id: str) -> Optional[SampleProfileRecord]:
        return self.db.get(SampleProfileRecord, sample_id)

    def create_sample(
        self, name: str, user_input: UserInput, loans: List[ActiveLoan], now: datetime
    ) -> SampleProfileRecord:
        record = SampleProfileRecord(
            name=name,
            user_input=user_input_to_dict(user_input),
            loans=[loan_to_dict(loan) for loan in loans],
            created_at=now,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def overwrite_sample(
        self, record: SampleProfileRecord, user_input: UserInput, loans: List[ActiveLoan], now: datetime
    ) -> SampleProfileRecord:
        """Replace a sample's snapshot and refresh its timestamp"""
        record.user_input = user_input_to_dict(user_input)
        record.loans = [loan_to_dict(loan) for loan in loans]
        record.created_at = now
        self.db.flush()
        return record

    def delete_sample(self, sample_id: str) -> bool:
        deleted = self.db.query(SampleProfileRecord).filter(SampleProfileRecord.id == sample_id).delete()
        return deleted > 0


class ConversationRepository:
    """Repository for saved chatbot conversations"""

    def __init__(self, db: Session):
        self.db = db

    def save_conversation(self, user_id: str, messages: List[ChatMessage], now: datetime) -> ChatConversationRecord:
        record = ChatConversationRecord(
            user_id=user_id,
            messages=[{"sender": m.sender, "text": m.text} for m in messages],
            created_at=now,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def list_conversations(self, user_id: str) -> List[ChatConversationRecord]:
        """A user's conversations, newest first"""
        return (
            self.db.query(ChatConversationRecord)
            .filter(ChatConversationRecord.user_id == user_id)
            .order_by(ChatConversationRecord.created_at.desc(), ChatConversationRecord.id.desc())
            .all()
        )
