"""Relay Watchdog Background Worker

Webhook relays are fire-and-forget: if the pipeline never calls back, the
request would stay pending forever. The same happens to a polling request
whose queued status check was lost. This worker fails relay requests older
than RELAY_CALLBACK_TIMEOUT_HOURS with CALLBACK_TIMEOUT, and polling requests
older than POLL_INTERVAL_SECONDS * POLL_MAX_ATTEMPTS + POLL_STALE_MARGIN_SECONDS
with POLL_TIMEOUT.
"""

import asyncio
import logging
from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.app.services.task_queue import TaskQueue
from src.app.use_cases.generations import ExpireResultDTO
from src.depends import build_expire_stale_relays, create_task_queue

logger = logging.getLogger(__name__)


class RelayWatchdogWorker:
    """
    Background worker expiring relay and polling requests nothing will complete

    Usage:
        # Run once
        worker = RelayWatchdogWorker()
        result = await worker.run_once()

        # Run continuously
        await worker.run_forever(interval_seconds=600)
    """

    def __init__(self, db_uri: Optional[str] = None, task_queue: Optional[TaskQueue] = None):
        self.db_uri = db_uri or ApplicationConfig.DB_URI

        self.engine = create_async_engine(self.db_uri, echo=False, future=True)
        self.async_session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
        # Only used to enqueue deliveries; expired requests are failures, so it stays idle
        self.task_queue = task_queue or create_task_queue(ApplicationConfig)

        logger.info("RelayWatchdogWorker initialized")

    async def run_once(self) -> ExpireResultDTO:
        async with self.async_session_factory() as session:
            use_case = build_expire_stale_relays(session, self.task_queue)
            result = await use_case.execute()

            if result.is_err():
                logger.error(f"Relay watchdog failed: {result.error.message}")
                raise RuntimeError(f"Relay watchdog failed: {result.error.message}")

            response = result.value
            if response.expired:
                logger.warning(
                    f"Relay watchdog expired {response.expired} of {response.checked} stale request(s)"
                )
            return response

    async def run_forever(self, interval_seconds: int = 600):
        logger.info(f"Starting relay watchdog with {interval_seconds}s interval")

        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Relay watchdog cycle failed: {e}")

            await asyncio.sleep(interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        await self.task_queue.close()
        await self.engine.dispose()
        logger.info("RelayWatchdogWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        # Run once
        python -m src.worker.relay_watchdog --once

        # Run continuously (default: RELAY_WATCHDOG_INTERVAL_SECONDS)
        python -m src.worker.relay_watchdog --interval 300
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Relay Watchdog Worker")
    parser.add_argument(
        "--once", action="store_true", help="Run once and exit"
    )
    parser.add_argument(
        "--interval", type=int, default=ApplicationConfig.RELAY_WATCHDOG_INTERVAL_SECONDS,
        help="Interval between runs in seconds"
    )
    args = parser.parse_args()

    worker = RelayWatchdogWorker()

    try:
        if args.once:
            result = await worker.run_once()
            print("Relay watchdog complete:")
            print(f"  Stale requests checked: {result.checked}")
            print(f"  Expired: {result.expired}")
        else:
            await worker.run_forever(interval_seconds=args.interval)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
