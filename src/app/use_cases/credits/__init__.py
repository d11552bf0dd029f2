from .check_credits import CheckCredits, resolve_operation_cost
from .debit_credits import DebitCredits, DebitState, DebitComputation, apply_debit
from .check_and_debit import CheckAndDebitCredits
from .get_balance import GetBalance
from .list_credit_costs import ListCreditCosts
from .dtos import (
    DebitCommandDTO,
    CreditCheckDTO,
    CreditTransactionResponseDTO,
    BalanceResponseDTO,
    CreditCostDTO,
)

__all__ = [
    "CheckCredits",
    "resolve_operation_cost",
    "DebitCredits",
    "DebitState",
    "DebitComputation",
    "apply_debit",
    "CheckAndDebitCredits",
    "GetBalance",
    "ListCreditCosts",
    "DebitCommandDTO",
    "CreditCheckDTO",
    "CreditTransactionResponseDTO",
    "BalanceResponseDTO",
    "CreditCostDTO",
]
