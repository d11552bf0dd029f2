from libs.result import Result, Return
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from .dtos import GenerationHistoryDTO, GenerationHistoryItemDTO

MAX_PAGE_SIZE = 100


class ListGenerations:
    """Generation history of a user, newest first"""

    def __init__(self, generation_repo: GenerationRequestRepository):
        self.generation_repo = generation_repo

    async def execute(self, user_id: str, limit: int = 20, offset: int = 0) -> Result[GenerationHistoryDTO]:
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        items, total = await self.generation_repo.list_by_user(user_id, limit=limit, offset=offset)

        return Return.ok(
            GenerationHistoryDTO(
                items=[
                    GenerationHistoryItemDTO(
                        request_id=item.generation_request_id,
                        type=item.generation_type,
                        status=item.status,
                        result=item.output_data,
                        error=item.error_message,
                        model=item.model,
                        origin=item.origin,
                        delivered=item.delivered,
                        created_at=item.created_at,
                        updated_at=item.updated_at,
                    )
                    for item in items
                ],
                total=total,
                limit=limit,
                offset=offset,
            )
        )
