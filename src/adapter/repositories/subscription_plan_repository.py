"""SQLAlchemy implementation of SubscriptionPlanRepository"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.subscription_plan_repository import SubscriptionPlanRepository
from src.domain.subscription_plan import SubscriptionPlan


class SqlAlchemySubscriptionPlanRepository(SubscriptionPlanRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_key(self, plan_key: str) -> Optional[SubscriptionPlan]:
        stmt = select(SubscriptionPlan).where(SubscriptionPlan.plan_key == plan_key)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
