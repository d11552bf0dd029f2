"""Generation Request Repository Interface

Persistence for the canonical GenerationRequest and its UserGeneration
projection. Every method that mutates one of them mutates both.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from src.domain.generation_request import GenerationRequest, GenerationStatus
from src.domain.user_generation import UserGeneration


class GenerationRequestRepository(ABC):

    @abstractmethod
    async def create(
        self, request: GenerationRequest, projection: UserGeneration
    ) -> Tuple[GenerationRequest, UserGeneration]:
        """
        Persist the canonical record and its projection in one flush

        Returns:
            The persisted (request, projection) pair
        """
        pass

    @abstractmethod
    async def get_by_id(self, request_id: str) -> Optional[GenerationRequest]:
        pass

    @abstractmethod
    async def get_projection(self, request_id: str) -> Optional[UserGeneration]:
        pass

    @abstractmethod
    async def mark_terminal(
        self,
        request_id: str,
        status: GenerationStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> bool:
        """
        Compare-and-set pending -> status on both records

        Returns:
            True if this call performed the transition, False if the request
            was not pending (already terminal or missing)
        """
        pass

    @abstractmethod
    async def update_progress(self, request_id: str, partial_result: Dict[str, Any]) -> bool:
        """
        Write a partial result while the request is still pending

        Returns:
            True if written, False if the request is no longer pending
        """
        pass

    @abstractmethod
    async def mark_delivered(self, request_id: str) -> bool:
        """
        Compare-and-set delivered false -> true on the projection

        Returns:
            True if this call flipped the flag (the caller now owns the send)
        """
        pass

    @abstractmethod
    async def clear_delivered(self, request_id: str) -> bool:
        """Release a delivery claim after the send failed, so a retry can claim it again"""
        pass

    @abstractmethod
    async def list_by_user(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[UserGeneration], int]:
        """Page of projections for a user (newest first) and the total count"""
        pass

    @abstractmethod
    async def list_pending_older_than(
        self, types: List[str], older_than: datetime, limit: int = 100
    ) -> List[GenerationRequest]:
        """Pending requests of the given types created before `older_than`"""
        pass
