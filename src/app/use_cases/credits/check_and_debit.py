"""CheckAndDebitCredits Use Case

Admission gate in front of every generation: the debit itself re-validates
under the row lock, so the check is only the fast rejection path.
"""

from libs.result import Result, Return, Error
from .check_credits import CheckCredits
from .debit_credits import DebitCredits
from .dtos import DebitCommandDTO, CreditTransactionResponseDTO

ADMISSION_DENIED_REASONS = {"INSUFFICIENT_CREDIT", "SUBSCRIPTION_INACTIVE", "LEDGER_NOT_FOUND"}


class CheckAndDebitCredits:
    """
    Use Case: Admit an operation by charging for it

    Any refusal to pay is reported as ADMISSION_DENIED with the precise cause
    (INSUFFICIENT_CREDIT, SUBSCRIPTION_INACTIVE, LEDGER_NOT_FOUND) as reason.
    """

    def __init__(self, check_credits: CheckCredits, debit_credits: DebitCredits):
        self.check_credits = check_credits
        self.debit_credits = debit_credits

    async def execute(self, command: DebitCommandDTO) -> Result[CreditTransactionResponseDTO]:
        check = await self.check_credits.execute(command.user_id, command.operation_type)
        if check.is_err():
            return self._denied(check.error)

        if not check.value.available:
            return Return.err(
                Error(
                    code="ADMISSION_DENIED",
                    message=check.value.reason or "Insufficient credits",
                    reason="INSUFFICIENT_CREDIT",
                )
            )

        debit = await self.debit_credits.execute(command)
        if debit.is_err():
            return self._denied(debit.error)
        return debit

    @staticmethod
    def _denied(error: Error) -> Result:
        if error.code in ADMISSION_DENIED_REASONS:
            return Return.err(Error(code="ADMISSION_DENIED", message=error.message, reason=error.code))
        return Return.err(error)
