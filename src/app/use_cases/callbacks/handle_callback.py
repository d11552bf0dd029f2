"""HandleCallback Use Case

Routes an inbound pipeline callback to the Completion Applier.
"""

import logging
from typing import Any
from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.app.use_cases.generations.completion_applier import CompletionApplier
from src.domain.completion import CompletionSuccess
from .dtos import CallbackResponseDTO
from .parse_callback import InvalidCallbackError, callback_kind, parse_callback_payload

logger = logging.getLogger(__name__)


class HandleCallback:
    """
    Use Case: Handle a completion callback

    Business Rules:
    1. A callback never creates a request: unknown or missing id -> CALLBACK_MISMATCH
    2. Callback for an already terminal request -> success, no mutation
    3. Otherwise the parsed outcome goes through the Completion Applier
    """

    def __init__(self, generation_repo: GenerationRequestRepository, applier: CompletionApplier):
        self.generation_repo = generation_repo
        self.applier = applier

    async def execute(self, body: Any, route_kind: str) -> Result[CallbackResponseDTO]:
        kind = callback_kind(route_kind)
        if kind is None:
            return Return.err(
                Error(
                    code="INVALID_CALLBACK",
                    message=f"Unknown callback kind: {route_kind}",
                )
            )

        try:
            parsed = parse_callback_payload(body, kind, route_kind)
        except InvalidCallbackError as e:
            logger.warning(f"Rejected {route_kind} callback: {e}")
            return Return.err(Error(code="INVALID_CALLBACK", message=str(e)))

        if not parsed.request_id:
            logger.warning(f"Rejected {route_kind} callback without generationRequestId")
            return Return.err(
                Error(code="CALLBACK_MISMATCH", message="Missing generationRequestId")
            )

        request = await self.generation_repo.get_by_id(parsed.request_id)
        if request is None:
            logger.warning(f"Rejected {route_kind} callback for unknown request {parsed.request_id}")
            return Return.err(
                Error(
                    code="CALLBACK_MISMATCH",
                    message="Generation request not found",
                    reason=parsed.request_id,
                )
            )

        if request.status.is_terminal:
            logger.info(
                f"Callback for {request.id} ignored, request already {request.status.value}"
            )
            return Return.ok(
                CallbackResponseDTO(
                    success=True,
                    message=f"Generation already {request.status.value}",
                )
            )

        applied = await self.applier.apply(request.id, parsed.outcome)
        if applied.is_err():
            return applied

        if isinstance(parsed.outcome, CompletionSuccess):
            return Return.ok(CallbackResponseDTO(success=True, message="Callback processed successfully"))
        return Return.ok(CallbackResponseDTO(success=False, error=parsed.outcome.error))
