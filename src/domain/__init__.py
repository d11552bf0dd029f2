from .base import BaseModel, generate_uuid
from .credit_ledger import CreditLedger, LedgerStatus
from .credit_transaction import CreditTransaction, TransactionType
from .credit_cost import CreditCost
from .subscription_plan import SubscriptionPlan
from .generation_request import GenerationRequest, GenerationStatus
from .user_generation import UserGeneration, RequestOrigin
from .generation_type import (
    ExecutionStrategy,
    OutputKind,
    GenerationTypeSpec,
    GENERATION_TYPES,
    get_generation_type,
)
from .completion import CompletionSuccess, CompletionFailure, CompletionOutcome

__all__ = [
    "BaseModel",
    "generate_uuid",
    "CreditLedger",
    "LedgerStatus",
    "CreditTransaction",
    "TransactionType",
    "CreditCost",
    "SubscriptionPlan",
    "GenerationRequest",
    "GenerationStatus",
    "UserGeneration",
    "RequestOrigin",
    "ExecutionStrategy",
    "OutputKind",
    "GenerationTypeSpec",
    "GENERATION_TYPES",
    "get_generation_type",
    "CompletionSuccess",
    "CompletionFailure",
    "CompletionOutcome",
]
