"""Credit Ledger Repository Interface

Defines the contract for credit ledger persistence operations.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.credit_ledger import CreditLedger


class CreditLedgerRepository(ABC):
    """
    Repository interface for CreditLedger persistence

    Reads used by the debit path lock the row (SELECT FOR UPDATE) and the
    write is guarded on the values that were read, so two debits of the same
    account can never both apply against the same starting state.
    """

    @abstractmethod
    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[CreditLedger]:
        """
        Retrieve ledger by user ID

        Args:
            user_id: Account owner
            for_update: If True, lock the row with SELECT FOR UPDATE (pessimistic lock)

        Returns:
            CreditLedger if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, ledger: CreditLedger) -> CreditLedger:
        """Create a new credit ledger"""
        pass

    @abstractmethod
    async def apply_debit(
        self,
        ledger: CreditLedger,
        balance: int,
        extra_credits: int,
        overage_used: int,
        credits_used: int,
    ) -> bool:
        """
        Write new ledger values if the row still holds the values in `ledger`

        Args:
            ledger: Ledger as read at the start of the unit of work
            balance, extra_credits, overage_used, credits_used: New values

        Returns:
            True if the row was updated, False if it changed concurrently
        """
        pass
