"""SQLAlchemy ORM models for profiles, saved plans, active loans, sample profiles and chat conversations"""

import uuid
from sqlalchemy import Column, Float, DateTime, Integer, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class UserProfileRecord(Base):
    """Buyer's financial inputs and preferences"""

    __tablename__ = "user_profile"

    user_id = Column(Text, primary_key=True)
    user_input = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class SavedPlanRecord(Base):
    """Bookmarked vehicle + plan; its id becomes the active loan id on commit"""

    __tablename__ = "saved_plan"

    user_id = Column(Text, primary_key=True)
    id = Column(Text, primary_key=True)
    vehicle = Column(JSON, nullable=False)
    user_input = Column(JSON, nullable=False)
    plan = Column(JSON, nullable=False)
    saved_at = Column(DateTime(timezone=True), nullable=False)


class ActiveLoanRecord(Base):
    """Committed plan under repayment; `version` guards against lost updates"""

    __tablename__ = "active_loan"

    user_id = Column(Text, primary_key=True)
    id = Column(Text, primary_key=True)
    vehicle_model = Column(Text, nullable=False)
    image_url = Column(Text, nullable=False, default="")
    plan_type = Column(Text, nullable=False)
    monthly_payment = Column(Float, nullable=False)
    total_cost = Column(Float, nullable=False)
    loan_start_date = Column(DateTime(timezone=True), nullable=False)
    loan_term_months = Column(Integer, nullable=False)
    payment_day_of_month = Column(Integer, nullable=False)
    color = Column(Text, nullable=False)
    amount_left = Column(Float, nullable=False, default=0.0)
    initial_loan_amount = Column(Float, nullable=True)
    last_payment_month = Column(Integer, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __mapper_args__ = {"version_id_col": version}


class SampleProfileRecord(Base):
    """Named snapshot of a user's inputs and loans for demos"""

    __tablename__ = "sample_profile"

    id = Column(Text, primary_key=True, default=lambda: f"sample-{uuid.uuid4().hex[:12]}")
    name = Column(Text, nullable=False)
    user_input = Column(JSON, nullable=False)
    loans = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


class ChatConversationRecord(Base):
    """Finished advisor chat the user chose to keep"""

    __tablename__ = "chat_conversation"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    messages = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
