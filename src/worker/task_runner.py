"""Task Queue Worker

Consumes the webhook-relay, polling and delivery queues. Needed when the API
runs with QUEUE_BACKEND=redis; with the in-memory backend the API process
runs its own tasks.
"""

import asyncio
import logging
from typing import Dict, Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.services.delivery_channel import DeliveryChannel
from src.app.services.providers import JobProvider, WebhookRelayClient
from src.app.services.task_queue import TaskQueue
from src.depends import create_task_queue, get_delivery_channel, get_job_providers, get_relay_client
from .handlers import GenerationTaskHandlers

logger = logging.getLogger(__name__)


class TaskWorker:
    """
    Background worker for queued generation tasks

    Features:
    - One session per task (see GenerationTaskHandlers)
    - Per-queue concurrency from QUEUE_CONCURRENCY
    - Runs until shutdown() is called or the process is interrupted

    Usage:
        worker = TaskWorker()
        await worker.run()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        task_queue: Optional[TaskQueue] = None,
        job_providers: Optional[Dict[str, JobProvider]] = None,
        relay_client: Optional[WebhookRelayClient] = None,
        delivery_channel: Optional[DeliveryChannel] = None,
    ):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )

        self.task_queue = task_queue or create_task_queue(ApplicationConfig)
        self.handlers = GenerationTaskHandlers(
            session_factory=self.async_session_factory,
            task_queue=self.task_queue,
            job_providers=job_providers if job_providers is not None else get_job_providers(),
            relay_client=relay_client or get_relay_client(),
            delivery_channel=delivery_channel or get_delivery_channel(),
        )
        self.handlers.register()

        logger.info("TaskWorker initialized")

    async def run(self):
        logger.info(f"TaskWorker consuming with backend '{ApplicationConfig.QUEUE_BACKEND}'")
        await self.task_queue.run()

    async def shutdown(self):
        """Cleanup resources"""
        await self.task_queue.close()
        await self.engine.dispose()
        logger.info("TaskWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m src.worker.task_runner
    """
    import argparse

    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Generation Task Worker")
    parser.parse_args()

    if ApplicationConfig.QUEUE_BACKEND != "redis":
        logger.warning("QUEUE_BACKEND is not 'redis': tasks enqueued by the API never reach this worker")

    worker = TaskWorker()

    try:
        await worker.run()
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
