import logging
from typing import Any, Dict
from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class UpdateGenerationProgress:
    """
    Use Case: Store a partial result of a long-running generation

    Only pending requests accept progress; the projection is written in the
    same commit. Returns False when the request is no longer pending.
    """

    def __init__(self, uow: UnitOfWork, generation_repo: GenerationRequestRepository):
        self.uow = uow
        self.generation_repo = generation_repo

    async def execute(self, request_id: str, partial_result: Dict[str, Any]) -> Result[bool]:
        try:
            written = await self.generation_repo.update_progress(request_id, partial_result)
            if not written:
                await self.uow.rollback()
                return Return.ok(False)
            await self.uow.commit()
            logger.debug(f"Progress stored for generation {request_id}")
            return Return.ok(True)
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_PROGRESS_FAILED",
                    message=f"Failed to store progress of {request_id}",
                    reason=str(e),
                )
            )
