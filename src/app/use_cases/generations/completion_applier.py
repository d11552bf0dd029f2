"""Completion Applier

The single place where a Generation Request becomes terminal. Direct
returns, inbound callbacks and polling checks all end here, possibly
concurrently and more than once for the same request.
"""

import logging
from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.app.services.task_queue import DELIVERY_QUEUE, TaskOptions, TaskQueue
from src.app.services.unit_of_work import UnitOfWork
from src.domain.completion import CompletionOutcome, CompletionSuccess
from src.domain.generation_request import GenerationStatus
from .dtos import ApplyResultDTO

logger = logging.getLogger(__name__)


class CompletionApplier:
    """
    Use Case: Apply a completion outcome

    Business Rules:
    1. pending -> completed/failed happens once (conditional UPDATE on status)
    2. A caller that loses the race gets applied=False, not an error
    3. Canonical record and projection change in the same commit
    4. Success on a delivery-capable request schedules one delivery task
    5. Never touches credits
    """

    def __init__(
        self,
        uow: UnitOfWork,
        generation_repo: GenerationRequestRepository,
        task_queue: TaskQueue,
        delivery_max_attempts: int = 3,
        delivery_backoff_seconds: float = 2,
    ):
        self.uow = uow
        self.generation_repo = generation_repo
        self.task_queue = task_queue
        self.delivery_options = TaskOptions(
            max_attempts=delivery_max_attempts,
            backoff_seconds=delivery_backoff_seconds,
        )

    async def apply(self, request_id: str, outcome: CompletionOutcome) -> Result[ApplyResultDTO]:
        succeeded = isinstance(outcome, CompletionSuccess)
        target = GenerationStatus.COMPLETED if succeeded else GenerationStatus.FAILED

        try:
            if succeeded:
                applied = await self.generation_repo.mark_terminal(
                    request_id, target, result=outcome.result
                )
            else:
                applied = await self.generation_repo.mark_terminal(
                    request_id, target, error=outcome.error
                )

            if not applied:
                await self.uow.rollback()
                current = await self.generation_repo.get_by_id(request_id)
                if current is None:
                    return Return.err(
                        Error(
                            code="GENERATION_NOT_FOUND",
                            message=f"Generation request {request_id} not found",
                        )
                    )
                logger.warning(
                    f"Generation {request_id} already {current.status.value}, "
                    f"ignoring {target.value} outcome"
                )
                return Return.ok(ApplyResultDTO(applied=False, status=current.status))

            await self.uow.commit()

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="APPLY_COMPLETION_FAILED",
                    message=f"Failed to apply completion to {request_id}",
                    reason=str(e),
                )
            )

        if succeeded:
            logger.info(f"Generation {request_id} completed")
            await self._schedule_delivery(request_id)
        else:
            logger.info(f"Generation {request_id} failed [{outcome.code}]: {outcome.error}")

        return Return.ok(ApplyResultDTO(applied=True, status=target))

    async def _schedule_delivery(self, request_id: str) -> None:
        projection = await self.generation_repo.get_projection(request_id)
        if projection is None or not projection.supports_delivery:
            return

        try:
            await self.task_queue.enqueue(
                DELIVERY_QUEUE,
                {"generation_request_id": request_id},
                self.delivery_options,
            )
        except Exception as e:
            # The result stays available through the status query
            logger.error(f"Could not schedule delivery of {request_id}: {e}")
