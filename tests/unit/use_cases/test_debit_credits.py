"""Unit tests for DebitCredits use case

Tests cover:
- Debit precedence: extra credits, then balance, then overage
- Insufficient credits without overage leaves the ledger untouched
- Inactive / missing ledger
- Concurrent modification retry
"""

import json
import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.credits.debit_credits import (
    MAX_CONFLICT_RETRIES,
    DebitCredits,
    DebitState,
    apply_debit,
)
from src.app.use_cases.credits.dtos import DebitCommandDTO
from src.domain.credit_cost import CreditCost
from src.domain.credit_ledger import CreditLedger, LedgerStatus
from src.domain.credit_transaction import CreditTransaction, TransactionType
from src.domain.subscription_plan import SubscriptionPlan


def make_ledger(balance=10, extra_credits=0, overage_used=0, status=LedgerStatus.ACTIVE):
    return CreditLedger(
        id=1,
        user_id="user_42",
        plan_key="starter",
        status=status,
        balance=balance,
        extra_credits=extra_credits,
        credits_used=0,
        overage_used=overage_used,
        created_at=datetime.utcnow(),
        updated_at=datetime.utcnow(),
    )


def make_plan(allow_overage=False):
    return SubscriptionPlan(
        id=1,
        plan_key="starter",
        plan_name="Starter",
        monthly_credits=10,
        allow_overage=allow_overage,
    )


@pytest.fixture
def mock_ledger_repo():
    return MagicMock()


@pytest.fixture
def mock_plan_repo():
    repo = MagicMock()
    repo.get_by_key = AsyncMock(return_value=make_plan())
    return repo


@pytest.fixture
def mock_cost_repo():
    repo = MagicMock()
    repo.get_active = AsyncMock(
        return_value=CreditCost(id=1, operation_type="worksheet", credit_cost=2)
    )
    return repo


@pytest.fixture
def mock_transaction_repo():
    repo = MagicMock()

    async def create(transaction):
        transaction.id = 77
        transaction.created_at = datetime.utcnow()
        return transaction

    repo.create = AsyncMock(side_effect=create)
    return repo


@pytest.fixture
def debit_use_case(mock_uow, mock_ledger_repo, mock_plan_repo, mock_cost_repo, mock_transaction_repo):
    return DebitCredits(
        uow=mock_uow,
        ledger_repo=mock_ledger_repo,
        plan_repo=mock_plan_repo,
        cost_repo=mock_cost_repo,
        transaction_repo=mock_transaction_repo,
    )


@pytest.fixture
def command():
    return DebitCommandDTO(
        user_id="user_42",
        operation_type="worksheet",
        generation_request_id="req-1",
    )


class TestApplyDebit:
    """Pure precedence arithmetic"""

    def test_extra_credits_consumed_before_balance(self):
        computation = apply_debit(DebitState(balance=2, extra_credits=1, overage_used=0), 2, False)

        assert computation.extra_credits == 0
        assert computation.balance == 1
        assert computation.from_extra == 1
        assert computation.from_balance == 1
        assert computation.overage == 0

    def test_insufficient_without_overage_returns_none(self):
        assert apply_debit(DebitState(balance=1, extra_credits=0, overage_used=0), 2, False) is None

    def test_overage_covers_remainder(self):
        computation = apply_debit(DebitState(balance=1, extra_credits=0, overage_used=3), 4, True)

        assert computation.balance == 0
        assert computation.overage == 3
        assert computation.overage_used == 6

    def test_balance_never_negative(self):
        computation = apply_debit(DebitState(balance=0, extra_credits=0, overage_used=0), 5, True)

        assert computation.balance == 0
        assert computation.extra_credits == 0
        assert computation.overage_used == 5


@pytest.mark.asyncio
class TestDebitCreditsSuccess:

    async def test_debit_uses_extra_then_balance(
        self, debit_use_case, mock_ledger_repo, mock_transaction_repo, mock_uow, command
    ):
        """
        Given: extra_credits=1, balance=2, operation costs 2
        When: the debit runs
        Then: ledger ends at extra=0, balance=1 and one transaction row is written
        """
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(return_value=make_ledger(balance=2, extra_credits=1))
        mock_ledger_repo.apply_debit = AsyncMock(return_value=True)

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_ok()
        response = result.value
        assert response.transaction_id == 77
        assert response.amount == 2
        assert response.balance_before == 3
        assert response.balance_after == 1
        assert response.overage_amount == 0
        assert response.generation_request_id == "req-1"

        kwargs = mock_ledger_repo.apply_debit.call_args.kwargs
        assert kwargs["balance"] == 1
        assert kwargs["extra_credits"] == 0
        assert kwargs["overage_used"] == 0
        assert kwargs["credits_used"] == 2

        transaction = mock_transaction_repo.create.call_args.args[0]
        assert isinstance(transaction, CreditTransaction)
        assert transaction.transaction_type == TransactionType.DEBIT
        assert json.loads(transaction.metadata_json) == {"plan": "starter", "overage": False}
        mock_uow.commit.assert_awaited_once()

    async def test_overage_plan_charges_beyond_credits(
        self, debit_use_case, mock_ledger_repo, mock_plan_repo, command
    ):
        """
        Given: balance=1, plan allows overage, cost 2
        When: the debit runs
        Then: balance goes to 0 and 1 credit is recorded as overage
        """
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(return_value=make_ledger(balance=1))
        mock_ledger_repo.apply_debit = AsyncMock(return_value=True)
        mock_plan_repo.get_by_key = AsyncMock(return_value=make_plan(allow_overage=True))

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_ok()
        assert result.value.overage_amount == 1
        assert result.value.balance_after == 0
        kwargs = mock_ledger_repo.apply_debit.call_args.kwargs
        assert kwargs["balance"] == 0
        assert kwargs["overage_used"] == 1

    async def test_missing_cost_uses_default(
        self, debit_use_case, mock_ledger_repo, mock_cost_repo, command
    ):
        # Arrange
        mock_cost_repo.get_active = AsyncMock(return_value=None)
        mock_ledger_repo.get_by_user_id = AsyncMock(return_value=make_ledger(balance=5))
        mock_ledger_repo.apply_debit = AsyncMock(return_value=True)

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_ok()
        assert result.value.amount == 1


@pytest.mark.asyncio
class TestDebitCreditsRejected:

    async def test_insufficient_credits_without_overage(
        self, debit_use_case, mock_ledger_repo, mock_transaction_repo, mock_uow, command
    ):
        """
        Given: balance=1, no overage, cost 2
        When: the debit runs
        Then: INSUFFICIENT_CREDIT, nothing written, unit of work rolled back
        """
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(return_value=make_ledger(balance=1))
        mock_ledger_repo.apply_debit = AsyncMock()

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "INSUFFICIENT_CREDIT"
        mock_ledger_repo.apply_debit.assert_not_called()
        mock_transaction_repo.create.assert_not_called()
        mock_uow.commit.assert_not_called()
        mock_uow.rollback.assert_awaited()

    async def test_inactive_ledger(self, debit_use_case, mock_ledger_repo, command):
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(
            return_value=make_ledger(status=LedgerStatus.INACTIVE)
        )

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "SUBSCRIPTION_INACTIVE"

    async def test_missing_ledger(self, debit_use_case, mock_ledger_repo, command):
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(return_value=None)

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "LEDGER_NOT_FOUND"


@pytest.mark.asyncio
class TestDebitCreditsConcurrency:

    async def test_lost_race_is_retried_from_fresh_read(
        self, debit_use_case, mock_ledger_repo, mock_uow, command
    ):
        """
        Given: the first guarded update finds the ledger changed
        When: the debit runs
        Then: it rolls back, re-reads and succeeds on the second attempt
        """
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(
            side_effect=[make_ledger(balance=10), make_ledger(balance=8)]
        )
        mock_ledger_repo.apply_debit = AsyncMock(side_effect=[False, True])

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_ok()
        assert result.value.balance_before == 8
        assert result.value.balance_after == 6
        assert mock_ledger_repo.get_by_user_id.await_count == 2
        mock_uow.rollback.assert_awaited_once()
        mock_uow.commit.assert_awaited_once()

    async def test_gives_up_after_repeated_conflicts(self, debit_use_case, mock_ledger_repo, command):
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(side_effect=lambda *a, **kw: make_ledger(balance=10))
        mock_ledger_repo.apply_debit = AsyncMock(return_value=False)

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "DEBIT_CONFLICT"
        assert mock_ledger_repo.apply_debit.await_count == MAX_CONFLICT_RETRIES

    async def test_unexpected_error_rolls_back(self, debit_use_case, mock_ledger_repo, mock_uow, command):
        # Arrange
        mock_ledger_repo.get_by_user_id = AsyncMock(side_effect=RuntimeError("db down"))

        # Act
        result = await debit_use_case.execute(command)

        # Assert
        assert result.is_err()
        assert result.error.code == "DEBIT_CREDITS_FAILED"
        mock_uow.rollback.assert_awaited()
