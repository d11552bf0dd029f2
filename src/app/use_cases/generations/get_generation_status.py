from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from .dtos import GenerationStatusDTO


class GetGenerationStatus:
    """
    Get Generation Status Use Case

    A request owned by someone else is reported exactly like a missing one.
    """

    def __init__(self, generation_repo: GenerationRequestRepository):
        self.generation_repo = generation_repo

    async def execute(self, request_id: str, user_id: str) -> Result[GenerationStatusDTO]:
        request = await self.generation_repo.get_by_id(request_id)

        if request is None or request.user_id != user_id:
            return Return.err(
                Error(
                    code="GENERATION_NOT_FOUND",
                    message=f"Generation request {request_id} not found",
                )
            )

        return Return.ok(
            GenerationStatusDTO(
                request_id=request.id,
                type=request.type,
                status=request.status,
                result=request.result,
                error=request.error,
                model=request.model,
                created_at=request.created_at,
                updated_at=request.updated_at,
            )
        )
