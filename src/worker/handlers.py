"""Task handlers

One handler per queue. Every task opens its own session so a task never
shares a unit of work with the request (or task) that enqueued it.
"""

import logging
from typing import Any, Callable, Dict
from src.app.services.delivery_channel import DeliveryChannel
from src.app.services.providers import JobProvider, WebhookRelayClient
from src.app.services.task_queue import (
    DELIVERY_QUEUE,
    GAMMA_POLLING_QUEUE,
    LONG_FORM_POLLING_QUEUE,
    WEBHOOK_RELAY_QUEUE,
    TaskQueue,
)
from src.depends import build_deliver_result, build_polling_monitor, build_webhook_relay

logger = logging.getLogger(__name__)


class GenerationTaskHandlers:
    """
    Queue consumers for asynchronous generation work

    - webhook-relay: POST the request to the automation pipeline
    - gamma-polling / long-form-polling: one external job status check
    - delivery: push a completed result to the user's chat

    Delivery lets DeliveryFailure propagate so the queue retries it; the other
    handlers record their failures on the request and return normally.
    """

    def __init__(
        self,
        session_factory: Callable,
        task_queue: TaskQueue,
        job_providers: Dict[str, JobProvider],
        relay_client: WebhookRelayClient,
        delivery_channel: DeliveryChannel,
    ):
        self.session_factory = session_factory
        self.task_queue = task_queue
        self.job_providers = job_providers
        self.relay_client = relay_client
        self.delivery_channel = delivery_channel

    async def relay(self, payload: Dict[str, Any]) -> None:
        async with self.session_factory() as session:
            relay = build_webhook_relay(session, self.task_queue, self.relay_client)
            result = await relay.send(payload["generation_request_id"])
            if result.is_err():
                logger.error(f"Relay task failed: {result.error.code} {result.error.message}")

    async def poll(self, payload: Dict[str, Any]) -> None:
        async with self.session_factory() as session:
            monitor = build_polling_monitor(session, self.task_queue, self.job_providers)
            result = await monitor.check(payload)
            if result.is_err():
                logger.error(f"Polling task failed: {result.error.code} {result.error.message}")

    async def deliver(self, payload: Dict[str, Any]) -> None:
        async with self.session_factory() as session:
            use_case = build_deliver_result(session, self.delivery_channel)
            result = await use_case.execute(payload["generation_request_id"])
            if result.is_ok() and not result.value.delivered:
                logger.info(
                    f"Delivery of {payload['generation_request_id']} skipped: {result.value.reason}"
                )

    def register(self, task_queue: TaskQueue = None) -> None:
        queue = task_queue or self.task_queue
        queue.register(WEBHOOK_RELAY_QUEUE, self.relay)
        queue.register(GAMMA_POLLING_QUEUE, self.poll)
        queue.register(LONG_FORM_POLLING_QUEUE, self.poll)
        queue.register(DELIVERY_QUEUE, self.deliver)
