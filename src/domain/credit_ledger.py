"""Credit Ledger Domain Entity

Tracks the credit state of one account. Each user has exactly one ledger.
Monthly balance and purchased extra credits are never negative; debt drawn
beyond both is accumulated in overage_used when the plan allows it.
"""

from datetime import datetime
from enum import Enum
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Integer, String
from src.domain.base import BaseModel, IdType


class LedgerStatus(str, Enum):
    """Ledger (subscription) status"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class CreditLedger(BaseModel, table=True):
    """
    Credit Ledger - Account ledger state

    Domain Rules:
    - One ledger per user (user_id is unique)
    - balance and extra_credits must be non-negative
    - overage_used only grows, and only when the plan allows overage
    - Mutated exclusively by the debit use case, together with a CreditTransaction
    """

    __tablename__ = "credit_ledgers"
    __table_args__ = (
        CheckConstraint('balance >= 0', name='balance_non_negative'),
        CheckConstraint('extra_credits >= 0', name='extra_credits_non_negative'),
        CheckConstraint('overage_used >= 0', name='overage_used_non_negative'),
    )

    id: int = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique ledger identifier (auto-increment)"
    )

    user_id: str = Field(
        index=True,
        unique=True,
        description="Account owner (unique - one ledger per user)"
    )

    plan_key: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Key of the SubscriptionPlan the account is on"
    )

    status: LedgerStatus = Field(
        default=LedgerStatus.ACTIVE,
        description="Only active ledgers can be debited"
    )

    balance: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Monthly allotment remaining"
    )

    extra_credits: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Purchased top-up credits, consumed first"
    )

    credits_used: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Cumulative credits consumed"
    )

    overage_used: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0),
        description="Cumulative debt beyond plan allotment"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Ledger creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last mutation timestamp"
    )

    @property
    def total_available(self) -> int:
        return self.balance + self.extra_credits
