"""Webhook Relay

Hands a request to an external automation pipeline which reports back
through the callback routes. Dispatch only enqueues; the POST itself runs
in the `webhook-relay` queue so the admission call never waits on it.
"""

import logging
from typing import Any, Dict, Optional
from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.app.services.providers import ProviderError, WebhookRelayClient
from src.app.services.task_queue import WEBHOOK_RELAY_QUEUE, TaskQueue
from src.domain.completion import CompletionFailure
from src.domain.generation_request import GenerationRequest
from src.domain.generation_type import GenerationTypeSpec, get_generation_type
from .completion_applier import CompletionApplier
from .sanitize import sanitize_error
from .dtos import ApplyResultDTO

logger = logging.getLogger(__name__)


def callback_url(callback_base_url: str, generation_type: str) -> str:
    return f"{callback_base_url.rstrip('/')}/webhooks/{generation_type}-callback"


class WebhookRelay:
    """
    Use Case: Relay a generation to the automation backend

    Business Rules:
    1. The relay call is fire-and-forget; a 2xx leaves the request pending
    2. Network failure or non-2xx fails the request with DISPATCH_ERROR,
       since no callback will ever arrive for a job that was never received
    3. No timeout here; stale relays are handled by ExpireStaleRelays
    """

    def __init__(
        self,
        generation_repo: GenerationRequestRepository,
        task_queue: TaskQueue,
        relay_client: WebhookRelayClient,
        applier: CompletionApplier,
        relay_base_url: str,
        callback_base_url: str,
    ):
        self.generation_repo = generation_repo
        self.task_queue = task_queue
        self.relay_client = relay_client
        self.applier = applier
        self.relay_base_url = relay_base_url.rstrip("/")
        self.callback_base_url = callback_base_url

    async def dispatch(self, request: GenerationRequest) -> Result[Optional[ApplyResultDTO]]:
        try:
            await self.task_queue.enqueue(WEBHOOK_RELAY_QUEUE, {"generation_request_id": request.id})
        except Exception as e:
            logger.error(f"Could not enqueue relay of {request.id}: {e}")
            return await self._fail(request.id, f"Failed to schedule relay: {e}")

        logger.info(f"Generation {request.id} ({request.type}) queued for webhook relay")
        return Return.ok(None)

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        return {
            **request.params,
            "generationRequestId": request.id,
            "userId": request.user_id,
            "type": request.type,
            "model": request.model,
            "callbackUrl": callback_url(self.callback_base_url, request.type),
        }

    def relay_url(self, gen_type: GenerationTypeSpec) -> str:
        return f"{self.relay_base_url}/{gen_type.relay_path or gen_type.name}"

    async def send(self, request_id: str) -> Result[Optional[ApplyResultDTO]]:
        """Perform the relay POST (runs in the webhook-relay queue)"""
        request = await self.generation_repo.get_by_id(request_id)
        if request is None:
            return Return.err(
                Error(
                    code="GENERATION_NOT_FOUND",
                    message=f"Generation request {request_id} not found",
                )
            )
        if request.status.is_terminal:
            logger.info(f"Generation {request_id} already {request.status.value}, relay skipped")
            return Return.ok(None)

        gen_type = get_generation_type(request.type)
        if gen_type is None:
            return await self._fail(request_id, f"No relay route for type {request.type}")

        url = self.relay_url(gen_type)
        try:
            status_code = await self.relay_client.post(url, self.build_payload(request))
        except ProviderError as e:
            logger.error(f"Webhook relay of {request_id} failed: {e}")
            return await self._fail(request_id, sanitize_error(str(e)))

        if not 200 <= status_code < 300:
            logger.error(f"Webhook relay of {request_id} rejected with status {status_code}")
            return await self._fail(request_id, f"Relay endpoint answered {status_code}")

        logger.info(f"Generation {request_id} relayed to {url}, awaiting callback")
        return Return.ok(None)

    async def _fail(self, request_id: str, message: str) -> Result[Optional[ApplyResultDTO]]:
        return await self.applier.apply(
            request_id, CompletionFailure(error=message, code="DISPATCH_ERROR")
        )
