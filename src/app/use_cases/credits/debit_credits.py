"""DebitCredits Use Case

Charges the cost of one operation to an account. The ledger row is locked
for the duration of the unit of work and written back only if it still
holds the values that were read; a lost race is retried from a fresh read.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.credit_cost_repository import CreditCostRepository
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.app.repositories.credit_transaction_repository import CreditTransactionRepository
from src.app.repositories.subscription_plan_repository import SubscriptionPlanRepository
from src.domain.credit_ledger import LedgerStatus
from src.domain.credit_transaction import CreditTransaction, TransactionType
from .check_credits import DEFAULT_OPERATION_COST, resolve_operation_cost
from .dtos import DebitCommandDTO, CreditTransactionResponseDTO

logger = logging.getLogger(__name__)

MAX_CONFLICT_RETRIES = 3


@dataclass(frozen=True)
class DebitState:
    balance: int
    extra_credits: int
    overage_used: int


@dataclass(frozen=True)
class DebitComputation:
    balance: int
    extra_credits: int
    overage_used: int
    from_extra: int
    from_balance: int
    overage: int


def apply_debit(state: DebitState, cost: int, allow_overage: bool) -> Optional[DebitComputation]:
    """
    Split a cost over extra credits, then balance, then overage

    Returns:
        The new ledger values, or None if the cost cannot be covered
    """
    from_extra = min(state.extra_credits, cost)
    remaining = cost - from_extra
    from_balance = min(state.balance, remaining)
    remaining -= from_balance

    if remaining > 0 and not allow_overage:
        return None

    return DebitComputation(
        balance=state.balance - from_balance,
        extra_credits=state.extra_credits - from_extra,
        overage_used=state.overage_used + remaining,
        from_extra=from_extra,
        from_balance=from_balance,
        overage=remaining,
    )


class DebitCredits:
    """
    Use Case: Debit credits for an operation

    Business Rules:
    1. Only active ledgers can be debited
    2. Precedence: extra credits -> monthly balance -> overage (if the plan allows it)
    3. Insufficient credits without overage: no mutation at all
    4. Ledger update and transaction row are committed together

    Flow:
    1. Get ledger with lock (SELECT FOR UPDATE)
    2. Re-read plan and cost, re-validate
    3. Guarded ledger update (retry from step 1 if the row changed)
    4. Append transaction row
    5. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        ledger_repo: CreditLedgerRepository,
        plan_repo: SubscriptionPlanRepository,
        cost_repo: CreditCostRepository,
        transaction_repo: CreditTransactionRepository,
        default_cost: int = DEFAULT_OPERATION_COST,
    ):
        self.uow = uow
        self.ledger_repo = ledger_repo
        self.plan_repo = plan_repo
        self.cost_repo = cost_repo
        self.transaction_repo = transaction_repo
        self.default_cost = default_cost

    async def execute(self, command: DebitCommandDTO) -> Result[CreditTransactionResponseDTO]:
        try:
            for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
                ledger = await self.ledger_repo.get_by_user_id(command.user_id, for_update=True)

                if not ledger:
                    await self.uow.rollback()
                    return Return.err(
                        Error(
                            code="LEDGER_NOT_FOUND",
                            message=f"No credit ledger found for user {command.user_id}",
                        )
                    )

                if ledger.status != LedgerStatus.ACTIVE:
                    # rollback expires the ledger, read it first
                    error = Error(
                        code="SUBSCRIPTION_INACTIVE",
                        message="Subscription is not active",
                        reason=f"ledger status={ledger.status.value}",
                    )
                    await self.uow.rollback()
                    return Return.err(error)

                plan = await self.plan_repo.get_by_key(ledger.plan_key)
                allow_overage = bool(plan and plan.allow_overage)
                cost = await resolve_operation_cost(
                    self.cost_repo, command.operation_type, self.default_cost
                )

                balance_before = ledger.total_available
                computation = apply_debit(
                    DebitState(ledger.balance, ledger.extra_credits, ledger.overage_used),
                    cost,
                    allow_overage,
                )
                if computation is None:
                    error = Error(
                        code="INSUFFICIENT_CREDIT",
                        message=f"Insufficient credits. Required: {cost}, Available: {balance_before}",
                        reason=f"balance={ledger.balance}, extra={ledger.extra_credits}, required={cost}",
                    )
                    await self.uow.rollback()
                    return Return.err(error)

                ledger_id = ledger.id
                updated = await self.ledger_repo.apply_debit(
                    ledger,
                    balance=computation.balance,
                    extra_credits=computation.extra_credits,
                    overage_used=computation.overage_used,
                    credits_used=ledger.credits_used + cost,
                )
                if not updated:
                    logger.warning(
                        f"Ledger of user {command.user_id} changed concurrently, "
                        f"retrying debit ({attempt}/{MAX_CONFLICT_RETRIES})"
                    )
                    await self.uow.rollback()
                    continue

                balance_after = computation.balance + computation.extra_credits
                transaction = await self.transaction_repo.create(
                    CreditTransaction(
                        user_id=command.user_id,
                        ledger_id=ledger_id,
                        transaction_type=TransactionType.DEBIT,
                        amount=cost,
                        balance_before=balance_before,
                        balance_after=balance_after,
                        operation_type=command.operation_type,
                        generation_request_id=command.generation_request_id,
                        metadata_json=json.dumps(
                            {"plan": ledger.plan_key, "overage": computation.overage > 0}
                        ),
                    )
                )

                await self.uow.commit()

                logger.info(
                    f"Debited {cost} credit(s) from user {command.user_id} for "
                    f"{command.operation_type}: {balance_before} -> {balance_after}"
                    + (f" (overage {computation.overage})" if computation.overage else "")
                )

                return Return.ok(
                    CreditTransactionResponseDTO(
                        transaction_id=transaction.id,
                        user_id=transaction.user_id,
                        operation_type=transaction.operation_type,
                        amount=transaction.amount,
                        balance_before=balance_before,
                        balance_after=balance_after,
                        overage_amount=computation.overage,
                        generation_request_id=transaction.generation_request_id,
                        created_at=transaction.created_at,
                    )
                )

            return Return.err(
                Error(
                    code="DEBIT_CONFLICT",
                    message="Ledger kept changing during the debit, try again",
                    reason=f"{MAX_CONFLICT_RETRIES} concurrent modifications",
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DEBIT_CREDITS_FAILED",
                    message="Failed to debit credits",
                    reason=str(e),
                )
            )
