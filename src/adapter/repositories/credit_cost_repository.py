"""SQLAlchemy implementation of CreditCostRepository"""

from typing import List, Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.credit_cost_repository import CreditCostRepository
from src.domain.credit_cost import CreditCost


class SqlAlchemyCreditCostRepository(CreditCostRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_active(self, operation_type: str) -> Optional[CreditCost]:
        stmt = select(CreditCost).where(
            CreditCost.operation_type == operation_type,
            CreditCost.is_active.is_(True),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self) -> List[CreditCost]:
        stmt = (
            select(CreditCost)
            .where(CreditCost.is_active.is_(True))
            .order_by(CreditCost.credit_cost, CreditCost.operation_type)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
