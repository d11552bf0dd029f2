"""ExpireStaleRelays Use Case

Relay-dispatched requests wait for a callback with no bound of their own,
and a polling request whose check task was lost (queue restart, worker
killed after claiming) is never checked again. This fails both kinds once
they have been pending longer than their timeout.
"""

import logging
from datetime import datetime, timedelta
from typing import List
from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.domain.completion import CompletionFailure
from src.domain.generation_type import ExecutionStrategy, GENERATION_TYPES
from .completion_applier import CompletionApplier
from .dtos import ExpireResultDTO

logger = logging.getLogger(__name__)

RELAY_TYPES = [name for name, gen_type in GENERATION_TYPES.items() if gen_type.strategy == ExecutionStrategy.RELAY]
POLLING_TYPES = [
    name for name, gen_type in GENERATION_TYPES.items() if gen_type.strategy == ExecutionStrategy.POLLING
]


class ExpireStaleRelays:
    """
    Use Case: Fail pending requests that nothing will ever complete

    Business Rules:
    1. Relay types pending longer than timeout_hours -> CALLBACK_TIMEOUT
    2. Polling types pending longer than poll_timeout_seconds -> POLL_TIMEOUT
    3. Goes through the Completion Applier, so a callback or a late status
       check racing the watchdog still wins or loses cleanly
    4. A timeout <= 0 disables that sweep
    """

    def __init__(
        self,
        generation_repo: GenerationRequestRepository,
        applier: CompletionApplier,
        timeout_hours: float = 6,
        batch_size: int = 100,
        poll_timeout_seconds: float = 0,
    ):
        self.generation_repo = generation_repo
        self.applier = applier
        self.timeout_hours = timeout_hours
        self.batch_size = batch_size
        self.poll_timeout_seconds = poll_timeout_seconds

    async def execute(self, now: datetime = None) -> Result[ExpireResultDTO]:
        now = now or datetime.utcnow()
        sweeps = []
        if self.timeout_hours > 0:
            sweeps.append(
                (
                    RELAY_TYPES,
                    now - timedelta(hours=self.timeout_hours),
                    CompletionFailure(
                        error=f"No callback received within {self.timeout_hours} hours",
                        code="CALLBACK_TIMEOUT",
                    ),
                )
            )
        if self.poll_timeout_seconds > 0:
            sweeps.append(
                (
                    POLLING_TYPES,
                    now - timedelta(seconds=self.poll_timeout_seconds),
                    CompletionFailure(
                        error=f"Generation timed out after {int(self.poll_timeout_seconds)} seconds of polling",
                        code="POLL_TIMEOUT",
                    ),
                )
            )

        checked = 0
        expired = 0
        for types, cutoff, failure in sweeps:
            try:
                stale = await self.generation_repo.list_pending_older_than(
                    types, cutoff, limit=self.batch_size
                )
            except Exception as e:
                return Return.err(
                    Error(
                        code="EXPIRE_RELAYS_FAILED",
                        message="Failed to list stale requests",
                        reason=str(e),
                    )
                )

            checked += len(stale)
            expired += await self._expire(stale, failure)

        if expired:
            logger.warning(f"Expired {expired} stale request(s)")
        return Return.ok(ExpireResultDTO(checked=checked, expired=expired))

    async def _expire(self, stale: List, failure: CompletionFailure) -> int:
        expired = 0
        for request in stale:
            result = await self.applier.apply(request.id, failure)
            if result.is_err():
                logger.error(f"Could not expire {request.id}: {result.error.message}")
            elif result.value.applied:
                expired += 1
        return expired
