"""SQLAlchemy implementation of CreditLedgerRepository

Provides persistence for CreditLedger entities with pessimistic locking support
and a guarded write, so concurrent debits of one account serialize.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_ledger_repository import CreditLedgerRepository
from src.domain.credit_ledger import CreditLedger


class SqlAlchemyCreditLedgerRepository(CreditLedgerRepository):
    """
    SQLAlchemy implementation of CreditLedgerRepository

    Features:
    - Pessimistic locking via SELECT FOR UPDATE
    - Compare-and-set ledger write (detects lost races where row locks are unavailable)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_user_id(self, user_id: str, for_update: bool = False) -> Optional[CreditLedger]:
        """
        Retrieve ledger by user ID with optional row-level locking

        Args:
            user_id: Account owner
            for_update: If True, locks the row with SELECT FOR UPDATE (prevents concurrent modifications)

        Returns:
            CreditLedger if found, None otherwise
        """
        stmt = (
            select(CreditLedger)
            .where(CreditLedger.user_id == user_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, ledger: CreditLedger) -> CreditLedger:
        self.session.add(ledger)
        await self.session.flush()
        await self.session.refresh(ledger)
        return ledger

    async def apply_debit(
        self,
        ledger: CreditLedger,
        balance: int,
        extra_credits: int,
        overage_used: int,
        credits_used: int,
    ) -> bool:
        """
        Update the ledger only if it still holds the values it was read with

        Note:
            Should be called within a transaction with the ledger already locked
        """
        stmt = (
            update(CreditLedger)
            .where(CreditLedger.id == ledger.id)
            .where(CreditLedger.balance == ledger.balance)
            .where(CreditLedger.extra_credits == ledger.extra_credits)
            .where(CreditLedger.overage_used == ledger.overage_used)
            .values(
                balance=balance,
                extra_credits=extra_credits,
                overage_used=overage_used,
                credits_used=credits_used,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount == 1
