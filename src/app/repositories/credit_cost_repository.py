"""Credit Cost Repository Interface"""

from abc import ABC, abstractmethod
from typing import List, Optional
from src.domain.credit_cost import CreditCost


class CreditCostRepository(ABC):

    @abstractmethod
    async def get_active(self, operation_type: str) -> Optional[CreditCost]:
        """Active price entry for an operation type, None if missing or inactive"""
        pass

    @abstractmethod
    async def list_active(self) -> List[CreditCost]:
        pass
