"""Task Queue Interface

Asynchronous work (webhook relays, polling checks, deliveries) is handed to
named queues and consumed by worker processes. A delayed task is how the
system "waits": nothing sleeps inside a worker between polling checks.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict
from pydantic import BaseModel, Field

# Queue names
WEBHOOK_RELAY_QUEUE = "webhook-relay"
GAMMA_POLLING_QUEUE = "gamma-polling"
LONG_FORM_POLLING_QUEUE = "long-form-polling"
DELIVERY_QUEUE = "delivery"

TaskHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class TaskOptions(BaseModel):
    """
    Scheduling and retry policy of one task

    A failing handler is re-run up to max_attempts times in total, waiting
    backoff_seconds * 2 ** (attempt - 1) between runs.
    """

    delay_seconds: float = Field(default=0, ge=0)
    max_attempts: int = Field(default=1, ge=1)
    backoff_seconds: float = Field(default=0, ge=0)


class TaskQueue(ABC):

    @abstractmethod
    async def enqueue(
        self,
        queue_name: str,
        payload: Dict[str, Any],
        options: TaskOptions = None,
    ) -> str:
        """
        Schedule a task

        Args:
            queue_name: Target queue
            payload: JSON-serializable task data
            options: Delay and retry policy (defaults: run now, one attempt)

        Returns:
            Task identifier
        """
        pass

    @abstractmethod
    def register(self, queue_name: str, handler: TaskHandler) -> None:
        """Attach the handler that consumes a queue"""
        pass

    @abstractmethod
    async def run(self) -> None:
        """Consume registered queues until close() is called"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Stop consuming and release resources"""
        pass


def retry_delay(options: TaskOptions, attempt: int) -> float:
    """Delay before re-running a task that failed on `attempt` (1-based)"""
    return options.backoff_seconds * (2 ** (attempt - 1))
