"""Unit tests for CreditLedger domain entity"""

from datetime import datetime
from src.domain.credit_ledger import CreditLedger, LedgerStatus


class TestCreditLedgerCreation:
    """Test CreditLedger entity creation"""

    def test_create_credit_ledger_with_defaults(self):
        """Test a new ledger starts active and empty"""
        # Arrange & Act
        ledger = CreditLedger(user_id="user_42", plan_key="free")

        # Assert
        assert ledger.status == LedgerStatus.ACTIVE
        assert ledger.balance == 0
        assert ledger.extra_credits == 0
        assert ledger.credits_used == 0
        assert ledger.overage_used == 0
        assert isinstance(ledger.created_at, datetime)

    def test_total_available_includes_extra_credits(self):
        """Test total_available is monthly balance plus purchased credits"""
        # Arrange
        ledger = CreditLedger(user_id="user_42", plan_key="pro", balance=7, extra_credits=3)

        # Act & Assert
        assert ledger.total_available == 10

    def test_total_available_ignores_overage(self):
        """Test debt drawn beyond the allotment is not spendable"""
        # Arrange
        ledger = CreditLedger(user_id="user_42", plan_key="pro", balance=0, overage_used=12)

        # Act & Assert
        assert ledger.total_available == 0
