"""CheckCredits Use Case

Answers "could this account pay for this operation right now" without
mutating anything.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.credit_cost_repository import CreditCostRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.subscription_plan_repository import SubscriptionPlanRepository
from src.domain.credit_ledger import LedgerStatus
from .dtos import CreditCheckDTO

logger = logging.getLogger(__name__)

DEFAULT_OPERATION_COST = 1


async def resolve_operation_cost(
    cost_repo: CreditCostRepository,
    operation_type: str,
    default_cost: int = DEFAULT_OPERATION_COST,
) -> int:
    """Active cost of an operation, or the default cost with a warning"""
    cost = await cost_repo.get_active(operation_type)
    if cost is None:
        logger.warning(
            f"No active credit cost for operation '{operation_type}', using default {default_cost}"
        )
        return default_cost
    return cost.credit_cost


class CheckCredits:
    """
    Use Case: Check credit availability

    Business Rules:
    1. Inactive ledger -> unavailable
    2. available = balance + extra >= cost, or the plan allows overage and balance >= 0
    """

    def __init__(
        self,
        ledger_repo: CreditLedgerRepository,
        plan_repo: SubscriptionPlanRepository,
        cost_repo: CreditCostRepository,
        default_cost: int = DEFAULT_OPERATION_COST,
    ):
        self.ledger_repo = ledger_repo
        self.plan_repo = plan_repo
        self.cost_repo = cost_repo
        self.default_cost = default_cost

    async def execute(self, user_id: str, operation_type: str) -> Result[CreditCheckDTO]:
        cost = await resolve_operation_cost(self.cost_repo, operation_type, self.default_cost)

        ledger = await self.ledger_repo.get_by_user_id(user_id)
        if not ledger:
            return Return.err(
                Error(
                    code="LEDGER_NOT_FOUND",
                    message=f"No credit ledger found for user {user_id}",
                )
            )

        if ledger.status != LedgerStatus.ACTIVE:
            return Return.ok(
                CreditCheckDTO(
                    available=False,
                    cost=cost,
                    balance=ledger.balance,
                    extra_credits=ledger.extra_credits,
                    reason="Subscription is not active",
                )
            )

        plan = await self.plan_repo.get_by_key(ledger.plan_key)
        allow_overage = bool(plan and plan.allow_overage)

        available = ledger.total_available >= cost or (allow_overage and ledger.balance >= 0)

        return Return.ok(
            CreditCheckDTO(
                available=available,
                cost=cost,
                balance=ledger.balance,
                extra_credits=ledger.extra_credits,
                allow_overage=allow_overage,
                reason=None if available else (
                    f"Insufficient credits. Required: {cost}, Available: {ledger.total_available}"
                ),
            )
        )
