"""Data Transfer Objects for Credit Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class DebitCommandDTO(BaseModel):
    """
    Command DTO for debiting credits

    Used as input to DebitCredits and CheckAndDebitCredits use cases.
    """

    user_id: str = Field(
        ...,
        description="Account owner"
    )

    operation_type: str = Field(
        ...,
        description="Billable operation (e.g. 'worksheet', 'image_generation')"
    )

    generation_request_id: Optional[str] = Field(
        default=None,
        description="Generation request the debit pays for"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "user_id": "user_42",
                "operation_type": "worksheet",
                "generation_request_id": "0b6f2c1e-5d0e-4f53-9a47-1f0b8f1d2c3a"
            }
        }


class CreditCheckDTO(BaseModel):
    """Result of an availability check (no mutation)"""

    available: bool = Field(
        ...,
        description="True if a debit of `cost` would currently succeed"
    )

    cost: int = Field(
        ...,
        description="Credits the operation costs"
    )

    balance: int = Field(
        default=0,
        description="Monthly balance remaining"
    )

    extra_credits: int = Field(
        default=0,
        description="Purchased credits remaining"
    )

    allow_overage: bool = Field(
        default=False,
        description="Whether the plan lets the account go beyond its credits"
    )

    reason: Optional[str] = Field(
        default=None,
        description="Why the operation is unavailable"
    )


class CreditTransactionResponseDTO(BaseModel):
    """
    Response DTO for a debit

    Returned by DebitCredits with balance snapshots (balance + extra credits).
    """

    transaction_id: int = Field(..., description="Transaction identifier")
    user_id: str = Field(..., description="Account owner")
    operation_type: str = Field(..., description="Billable operation")
    amount: int = Field(..., description="Credits charged")
    balance_before: int = Field(..., description="balance + extra_credits before the debit")
    balance_after: int = Field(..., description="balance + extra_credits after the debit")
    overage_amount: int = Field(default=0, description="Part of the cost charged as overage")
    generation_request_id: Optional[str] = Field(default=None, description="Linked generation request")
    created_at: datetime = Field(..., description="Transaction timestamp")


class BalanceResponseDTO(BaseModel):
    """Current credit state of an account"""

    user_id: str
    plan_key: str
    status: str
    balance: int
    extra_credits: int
    total_available: int
    credits_used: int
    overage_used: int
    allow_overage: bool
    last_updated: datetime


class CreditCostDTO(BaseModel):
    """One entry of the operation cost table"""

    operation_type: str
    operation_name: Optional[str] = None
    credit_cost: int
