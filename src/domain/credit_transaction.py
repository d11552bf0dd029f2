"""Credit Transaction Domain Entity

Immutable append-only audit trail of ledger debits.
Written in the same database transaction as the ledger mutation.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, Integer, String, Text
from src.domain.base import BaseModel, IdType


class TransactionType(str, Enum):
    """Credit transaction types"""
    DEBIT = "debit"


class CreditTransaction(BaseModel, table=True):
    """
    Credit Transaction - Immutable record of one debit

    Domain Rules:
    - Transactions are immutable (append-only)
    - balance_before/balance_after snapshot balance + extra_credits
    - generation_request_id links the debit to the request it admitted
    """

    __tablename__ = "credit_transactions"
    __table_args__ = (
        Index('ix_credit_transactions_created_at', 'created_at'),
        Index('ix_credit_transactions_generation_request_id', 'generation_request_id'),
    )

    id: int = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
        description="Unique transaction identifier (auto-increment)"
    )

    user_id: str = Field(
        index=True,
        description="Account owner"
    )

    ledger_id: int = Field(
        sa_column=Column(IdType, ForeignKey("credit_ledgers.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to CreditLedger"
    )

    transaction_type: TransactionType = Field(
        default=TransactionType.DEBIT,
        description="Type of transaction"
    )

    amount: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Credits debited"
    )

    balance_before: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="balance + extra_credits before the debit"
    )

    balance_after: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="balance + extra_credits after the debit"
    )

    operation_type: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Priced operation (e.g. 'worksheet', 'presentation')"
    )

    generation_request_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(36), nullable=True),
        description="GenerationRequest admitted by this debit"
    )

    metadata_json: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="JSON context (plan key, whether overage was drawn)"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Transaction timestamp (immutable)"
    )
