"""Get Balance Use Case

Retrieves an account's current credit state.
"""

from libs.result import Result, Return, Error
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.subscription_plan_repository import SubscriptionPlanRepository
from .dtos import BalanceResponseDTO


class GetBalance:
    """
    Get Balance Use Case

    Read-only operation that retrieves balance, extra credits, overage
    and plan for a given user.
    """

    def __init__(self, ledger_repo: CreditLedgerRepository, plan_repo: SubscriptionPlanRepository):
        self.ledger_repo = ledger_repo
        self.plan_repo = plan_repo

    async def execute(self, user_id: str) -> Result[BalanceResponseDTO]:
        """
        Errors:
            LEDGER_NOT_FOUND: User has no credit ledger
        """
        ledger = await self.ledger_repo.get_by_user_id(user_id)

        if not ledger:
            return Return.err(
                Error(
                    code="LEDGER_NOT_FOUND",
                    message=f"No credit ledger found for user {user_id}",
                )
            )

        plan = await self.plan_repo.get_by_key(ledger.plan_key)

        return Return.ok(
            BalanceResponseDTO(
                user_id=ledger.user_id,
                plan_key=ledger.plan_key,
                status=ledger.status.value,
                balance=ledger.balance,
                extra_credits=ledger.extra_credits,
                total_available=ledger.total_available,
                credits_used=ledger.credits_used,
                overage_used=ledger.overage_used,
                allow_overage=bool(plan and plan.allow_overage),
                last_updated=ledger.updated_at,
            )
        )
