"""Subscription Plan Domain Entity

Plan catalogue: monthly allotment and whether accounts may draw into overage.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Integer, Numeric, String
from src.domain.base import BaseModel, IdType


class SubscriptionPlan(BaseModel, table=True):
    """
    Subscription Plan

    Domain Rules:
    - plan_key is unique
    - allow_overage lets a debit continue past balance + extra_credits
    """

    __tablename__ = "subscription_plans"

    id: int = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    plan_key: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Stable plan identifier (e.g. 'starter', 'pro')"
    )

    plan_name: str = Field(
        sa_column=Column(String(100), nullable=False),
    )

    monthly_credits: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Monthly credit allotment"
    )

    allow_overage: bool = Field(
        default=False,
        description="Whether debits may exceed the available credits"
    )

    overage_cost_per_credit: Optional[Decimal] = Field(
        default=None,
        sa_column=Column(Numeric(10, 2), nullable=True),
    )

    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
