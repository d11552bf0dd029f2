"""CreateGeneration Use Case

Admission + creation + dispatch of one generation request.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.credits.check_and_debit import CheckAndDebitCredits
from src.app.use_cases.credits.dtos import DebitCommandDTO
from src.domain.base import generate_uuid
from src.domain.generation_request import GenerationRequest, GenerationStatus
from src.domain.generation_type import get_generation_type
from src.domain.user_generation import RequestOrigin, UserGeneration
from .dispatcher import GenerationDispatcher
from .dtos import CreateGenerationCommandDTO, GenerationCreatedDTO

logger = logging.getLogger(__name__)


class CreateGeneration:
    """
    Use Case: Create a generation request

    Business Rules:
    1. Unknown types are rejected before anything is charged
    2. Credits are debited before the request exists; a denied debit creates nothing
    3. The debit transaction is linked to the request id
    4. Request and projection are created together, pending
    5. Dispatch-time failures are recorded on the request, not returned as errors

    Flow:
    1. Resolve type, allocate request id
    2. Check and debit credits
    3. Create pending request + projection, commit
    4. Dispatch (direct requests are terminal when this returns)
    5. Return the current state
    """

    def __init__(
        self,
        uow: UnitOfWork,
        check_and_debit: CheckAndDebitCredits,
        generation_repo: GenerationRequestRepository,
        dispatcher: GenerationDispatcher,
    ):
        self.uow = uow
        self.check_and_debit = check_and_debit
        self.generation_repo = generation_repo
        self.dispatcher = dispatcher

    async def execute(self, command: CreateGenerationCommandDTO) -> Result[GenerationCreatedDTO]:
        gen_type = get_generation_type(command.type)
        if gen_type is None:
            return Return.err(
                Error(
                    code="UNSUPPORTED_GENERATION_TYPE",
                    message=f"Unsupported generation type: {command.type}",
                )
            )

        request_id = generate_uuid()

        debit = await self.check_and_debit.execute(
            DebitCommandDTO(
                user_id=command.user_id,
                operation_type=gen_type.operation_type,
                generation_request_id=request_id,
            )
        )
        if debit.is_err():
            logger.info(
                f"Generation {command.type} for user {command.user_id} denied: {debit.error.reason or debit.error.code}"
            )
            return debit

        model = command.model or gen_type.default_model
        chat_id = command.chat_id if command.origin == RequestOrigin.TELEGRAM else None

        try:
            request, _ = await self.generation_repo.create(
                GenerationRequest(
                    id=request_id,
                    user_id=command.user_id,
                    type=command.type,
                    status=GenerationStatus.PENDING,
                    params=command.params,
                    model=model,
                ),
                UserGeneration(
                    generation_request_id=request_id,
                    user_id=command.user_id,
                    generation_type=command.type,
                    status=GenerationStatus.PENDING,
                    input_params=command.params,
                    model=model,
                    origin=command.origin,
                    chat_id=chat_id,
                ),
            )
            await self.uow.commit()
        except Exception as e:
            await self.uow.rollback()
            logger.error(
                f"Generation {request_id} could not be stored after debit "
                f"transaction {debit.value.transaction_id}: {e}"
            )
            return Return.err(
                Error(
                    code="CREATE_GENERATION_FAILED",
                    message="Failed to create generation request",
                    reason=str(e),
                )
            )

        logger.info(f"Generation {request_id} ({command.type}) created for user {command.user_id}")

        dispatched = await self.dispatcher.dispatch(request)
        if dispatched.is_err():
            logger.error(f"Dispatch of {request_id} returned {dispatched.error.code}: {dispatched.error.message}")

        current = await self.generation_repo.get_by_id(request_id)
        return Return.ok(
            GenerationCreatedDTO(
                success=True,
                request_id=request_id,
                status=current.status,
                result=current.result if current.status == GenerationStatus.COMPLETED else None,
                error=current.error,
            )
        )
