"""Subscription Plan Repository Interface"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.subscription_plan import SubscriptionPlan


class SubscriptionPlanRepository(ABC):

    @abstractmethod
    async def get_by_key(self, plan_key: str) -> Optional[SubscriptionPlan]:
        pass
