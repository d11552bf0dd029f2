from .credit_ledger_repository import CreditLedgerRepository
from .credit_transaction_repository import CreditTransactionRepository
from .credit_cost_repository import CreditCostRepository
from .subscription_plan_repository import SubscriptionPlanRepository
from .generation_request_repository import GenerationRequestRepository

__all__ = [
    "CreditLedgerRepository",
    "CreditTransactionRepository",
    "CreditCostRepository",
    "SubscriptionPlanRepository",
    "GenerationRequestRepository",
]
