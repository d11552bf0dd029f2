"""Credit API Routes

Read-only views of the calling user's credit ledger.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Header, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories import (
    SqlAlchemyCreditCostRepository,
    SqlAlchemyCreditLedgerRepository,
    SqlAlchemySubscriptionPlanRepository,
)
from src.api.error import ClientError
from src.api.routes.generations import resolve_user_id
from src.app.use_cases.credits import (
    BalanceResponseDTO,
    CheckCredits,
    CreditCheckDTO,
    CreditCostDTO,
    GetBalance,
    ListCreditCosts,
)
from src.depends import get_session

router = APIRouter(prefix="/credits", tags=["Credits"])


@router.get(
    "/balance",
    response_model=BalanceResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "User has no credit ledger",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "LEDGER_NOT_FOUND",
                            "message": "No credit ledger found for user user_42"
                        }
                    }
                }
            }
        }
    }
)
async def get_balance(
    x_user_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
):
    """
    Current credit state of the calling user.

    **Example response:**
    ```json
    {
      "user_id": "user_42",
      "plan_key": "starter",
      "status": "active",
      "balance": 8,
      "extra_credits": 0,
      "total_available": 8,
      "credits_used": 2,
      "overage_used": 0,
      "allow_overage": false,
      "last_updated": "2024-01-01T00:00:00Z"
    }
    ```
    """
    use_case = GetBalance(
        SqlAlchemyCreditLedgerRepository(session),
        SqlAlchemySubscriptionPlanRepository(session),
    )
    result = await use_case.execute(resolve_user_id(x_user_id))

    if result.is_err():
        if result.error.code == "LEDGER_NOT_FOUND":
            raise ClientError(result.error, status_code=status.HTTP_404_NOT_FOUND)
        raise ClientError(result.error)

    return result.value


@router.get(
    "/costs",
    response_model=List[CreditCostDTO],
    status_code=status.HTTP_200_OK,
)
async def list_costs(session: AsyncSession = Depends(get_session)):
    """Active cost of every billable operation, cheapest first."""
    result = await ListCreditCosts(SqlAlchemyCreditCostRepository(session)).execute()
    return result.value


@router.get(
    "/check/{operation_type}",
    response_model=CreditCheckDTO,
    status_code=status.HTTP_200_OK,
)
async def check_credits(
    operation_type: str,
    x_user_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
):
    """Whether the calling user could pay for `operation_type` right now. Nothing is charged."""
    use_case = CheckCredits(
        SqlAlchemyCreditLedgerRepository(session),
        SqlAlchemySubscriptionPlanRepository(session),
        SqlAlchemyCreditCostRepository(session),
        default_cost=ApplicationConfig.DEFAULT_OPERATION_COST,
    )
    result = await use_case.execute(resolve_user_id(x_user_id), operation_type)

    if result.is_err():
        if result.error.code == "LEDGER_NOT_FOUND":
            raise ClientError(result.error, status_code=status.HTTP_404_NOT_FOUND)
        raise ClientError(result.error)

    return result.value
