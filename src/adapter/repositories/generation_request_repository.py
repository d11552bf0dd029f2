"""SQLAlchemy implementation of GenerationRequestRepository

The canonical GenerationRequest row and its UserGeneration projection are
always written by the same statement batch on the same session, so a
commit persists both or neither.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.domain.generation_request import GenerationRequest, GenerationStatus
from src.domain.user_generation import UserGeneration


class SqlAlchemyGenerationRequestRepository(GenerationRequestRepository):
    """
    SQLAlchemy implementation of GenerationRequestRepository

    Features:
    - Terminal transition as a conditional UPDATE (status = 'pending')
    - Delivery flag as a conditional UPDATE (delivered = false)
    - Projection mirrored in the same transaction
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self, request: GenerationRequest, projection: UserGeneration
    ) -> Tuple[GenerationRequest, UserGeneration]:
        projection.generation_request_id = request.id
        self.session.add(request)
        await self.session.flush()
        self.session.add(projection)
        await self.session.flush()
        await self.session.refresh(request)
        await self.session.refresh(projection)
        return request, projection

    async def get_by_id(self, request_id: str) -> Optional[GenerationRequest]:
        stmt = (
            select(GenerationRequest)
            .where(GenerationRequest.id == request_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_projection(self, request_id: str) -> Optional[UserGeneration]:
        stmt = (
            select(UserGeneration)
            .where(UserGeneration.generation_request_id == request_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_terminal(
        self,
        request_id: str,
        status: GenerationStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> bool:
        """
        Flip pending -> status on the canonical record, then mirror it

        A failure keeps whatever partial result was written while pending.
        """
        now = datetime.utcnow()
        canonical_values: Dict[str, Any] = {"status": status, "updated_at": now}
        projection_values: Dict[str, Any] = {"status": status, "updated_at": now}
        if result is not None:
            canonical_values["result"] = result
            projection_values["output_data"] = result
        if error is not None:
            canonical_values["error"] = error
            projection_values["error_message"] = error

        stmt = (
            update(GenerationRequest)
            .where(GenerationRequest.id == request_id)
            .where(GenerationRequest.status == GenerationStatus.PENDING)
            .values(**canonical_values)
            .execution_options(synchronize_session=False)
        )
        outcome = await self.session.execute(stmt)
        if outcome.rowcount != 1:
            return False

        await self.session.execute(
            update(UserGeneration)
            .where(UserGeneration.generation_request_id == request_id)
            .values(**projection_values)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return True

    async def update_progress(self, request_id: str, partial_result: Dict[str, Any]) -> bool:
        now = datetime.utcnow()
        outcome = await self.session.execute(
            update(GenerationRequest)
            .where(GenerationRequest.id == request_id)
            .where(GenerationRequest.status == GenerationStatus.PENDING)
            .values(result=partial_result, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if outcome.rowcount != 1:
            return False

        await self.session.execute(
            update(UserGeneration)
            .where(UserGeneration.generation_request_id == request_id)
            .values(output_data=partial_result, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return True

    async def mark_delivered(self, request_id: str) -> bool:
        now = datetime.utcnow()
        outcome = await self.session.execute(
            update(UserGeneration)
            .where(UserGeneration.generation_request_id == request_id)
            .where(UserGeneration.delivered.is_(False))
            .values(delivered=True, delivered_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return outcome.rowcount == 1

    async def clear_delivered(self, request_id: str) -> bool:
        outcome = await self.session.execute(
            update(UserGeneration)
            .where(UserGeneration.generation_request_id == request_id)
            .where(UserGeneration.delivered.is_(True))
            .values(delivered=False, delivered_at=None, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        return outcome.rowcount == 1

    async def list_by_user(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[UserGeneration], int]:
        stmt = (
            select(UserGeneration)
            .where(UserGeneration.user_id == user_id)
            .order_by(UserGeneration.created_at.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        items = list(result.scalars().all())

        count_stmt = (
            select(func.count())
            .select_from(UserGeneration)
            .where(UserGeneration.user_id == user_id)
        )
        total = (await self.session.execute(count_stmt)).scalar_one()
        return items, total

    async def list_pending_older_than(
        self, types: List[str], older_than: datetime, limit: int = 100
    ) -> List[GenerationRequest]:
        stmt = (
            select(GenerationRequest)
            .where(GenerationRequest.status == GenerationStatus.PENDING)
            .where(GenerationRequest.type.in_(types))
            .where(GenerationRequest.created_at < older_than)
            .order_by(GenerationRequest.created_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
