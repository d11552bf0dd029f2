from typing import List
from libs.result import Result, Return
from src.app.repositories.credit_cost_repository import CreditCostRepository
from .dtos import CreditCostDTO


class ListCreditCosts:
    """Active operation cost table, cheapest first"""

    def __init__(self, cost_repo: CreditCostRepository):
        self.cost_repo = cost_repo

    async def execute(self) -> Result[List[CreditCostDTO]]:
        costs = await self.cost_repo.list_active()
        return Return.ok(
            [
                CreditCostDTO(
                    operation_type=cost.operation_type,
                    operation_name=cost.operation_name,
                    credit_cost=cost.credit_cost,
                )
                for cost in costs
            ]
        )
