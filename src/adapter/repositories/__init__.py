from .credit_ledger_repository import SqlAlchemyCreditLedgerRepository
from .credit_transaction_repository import SqlAlchemyCreditTransactionRepository
from .credit_cost_repository import SqlAlchemyCreditCostRepository
from .subscription_plan_repository import SqlAlchemySubscriptionPlanRepository
from .generation_request_repository import SqlAlchemyGenerationRequestRepository

__all__ = [
    "SqlAlchemyCreditLedgerRepository",
    "SqlAlchemyCreditTransactionRepository",
    "SqlAlchemyCreditCostRepository",
    "SqlAlchemySubscriptionPlanRepository",
    "SqlAlchemyGenerationRequestRepository",
]
