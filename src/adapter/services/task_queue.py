"""Task Queue Implementations

- InMemoryTaskQueue: asyncio-only, runs handlers inside the current process
  (development, tests, single-process deployments)
- RedisTaskQueue: one sorted set per queue scored by run-at time, consumed by
  `python -m src.worker.task_runner`
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional, Set
from uuid import uuid4
import redis.asyncio as aioredis
from src.app.services.task_queue import TaskHandler, TaskOptions, TaskQueue, retry_delay

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4


class _Envelope:
    """Task as it travels through a queue"""

    __slots__ = ("id", "queue_name", "payload", "options", "attempt")

    def __init__(
        self,
        id: str,
        queue_name: str,
        payload: Dict[str, Any],
        options: TaskOptions,
        attempt: int = 1,
    ):
        self.id = id
        self.queue_name = queue_name
        self.payload = payload
        self.options = options
        self.attempt = attempt

    def to_json(self) -> str:
        return json.dumps(
            {
                "id": self.id,
                "queue": self.queue_name,
                "payload": self.payload,
                "options": self.options.model_dump(),
                "attempt": self.attempt,
            }
        )

    @classmethod
    def from_json(cls, raw) -> "_Envelope":
        data = json.loads(raw)
        return cls(
            id=data["id"],
            queue_name=data["queue"],
            payload=data["payload"],
            options=TaskOptions(**data["options"]),
            attempt=data["attempt"],
        )


class _HandlerRunner:
    """Shared handler dispatch with per-queue concurrency limits"""

    def __init__(self, concurrency: Optional[Dict[str, int]] = None):
        self.concurrency = dict(concurrency or {})
        self.handlers: Dict[str, TaskHandler] = {}
        self.semaphores: Dict[str, asyncio.Semaphore] = {}

    def register(self, queue_name: str, handler: TaskHandler) -> None:
        self.handlers[queue_name] = handler
        logger.info(f"Registered handler for queue '{queue_name}'")

    def semaphore(self, queue_name: str) -> asyncio.Semaphore:
        if queue_name not in self.semaphores:
            limit = self.concurrency.get(queue_name, DEFAULT_CONCURRENCY)
            self.semaphores[queue_name] = asyncio.Semaphore(limit)
        return self.semaphores[queue_name]

    async def run(self, envelope: _Envelope) -> bool:
        """
        Run one attempt of a task

        Returns:
            True if the handler succeeded, False if it raised
        """
        handler = self.handlers.get(envelope.queue_name)
        if handler is None:
            raise LookupError(f"No handler registered for queue '{envelope.queue_name}'")

        async with self.semaphore(envelope.queue_name):
            try:
                await handler(envelope.payload)
                return True
            except Exception as e:
                if envelope.attempt < envelope.options.max_attempts:
                    logger.warning(
                        f"Task {envelope.id} on '{envelope.queue_name}' failed "
                        f"(attempt {envelope.attempt}/{envelope.options.max_attempts}): {e}"
                    )
                else:
                    logger.error(
                        f"Task {envelope.id} on '{envelope.queue_name}' exhausted "
                        f"{envelope.options.max_attempts} attempt(s): {e}"
                    )
                return False


class InMemoryTaskQueue(TaskQueue):
    """
    asyncio task queue

    Features:
    - Delayed tasks via loop.call_later
    - Per-queue concurrency (asyncio.Semaphore)
    - Retry with exponential backoff per TaskOptions
    - join() waits until every scheduled task (including retries) has finished

    Tasks live only in memory: a process restart loses them.
    """

    def __init__(self, concurrency: Optional[Dict[str, int]] = None):
        self._runner = _HandlerRunner(concurrency)
        self._tasks: Set[asyncio.Task] = set()
        self._timers: Set[asyncio.TimerHandle] = set()
        self._stopped = asyncio.Event()

    def register(self, queue_name: str, handler: TaskHandler) -> None:
        self._runner.register(queue_name, handler)

    async def enqueue(
        self,
        queue_name: str,
        payload: Dict[str, Any],
        options: TaskOptions = None,
    ) -> str:
        options = options or TaskOptions()
        envelope = _Envelope(str(uuid4()), queue_name, payload, options)
        self._schedule(envelope, options.delay_seconds)
        logger.debug(f"Enqueued task {envelope.id} on '{queue_name}' (delay={options.delay_seconds}s)")
        return envelope.id

    def _schedule(self, envelope: _Envelope, delay: float) -> None:
        loop = asyncio.get_running_loop()
        if delay <= 0:
            self._spawn(envelope)
            return

        timer = None

        def fire():
            self._timers.discard(timer)
            self._spawn(envelope)

        timer = loop.call_later(delay, fire)
        self._timers.add(timer)

    def _spawn(self, envelope: _Envelope) -> None:
        task = asyncio.ensure_future(self._execute(envelope))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _execute(self, envelope: _Envelope) -> None:
        succeeded = await self._runner.run(envelope)
        if not succeeded and envelope.attempt < envelope.options.max_attempts:
            delay = retry_delay(envelope.options, envelope.attempt)
            envelope.attempt += 1
            self._schedule(envelope, delay)

    async def join(self, poll_interval: float = 0.01) -> None:
        """Wait until no task is running or scheduled"""
        while self._tasks or self._timers:
            if self._tasks:
                await asyncio.gather(*list(self._tasks))
            else:
                await asyncio.sleep(poll_interval)

    async def run(self) -> None:
        # Tasks run as soon as they are due; this only blocks until close()
        await self._stopped.wait()

    async def close(self) -> None:
        for timer in list(self._timers):
            timer.cancel()
        self._timers.clear()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._stopped.set()


class RedisTaskQueue(TaskQueue):
    """
    Redis-backed task queue

    Each queue is a sorted set `<prefix>:<queue>` whose members are serialized
    envelopes scored by the epoch second they become due. A consumer claims a
    due member with ZREM; only the consumer whose ZREM removed it runs it,
    so several worker processes can share the queues.
    """

    def __init__(
        self,
        redis_url: str,
        concurrency: Optional[Dict[str, int]] = None,
        key_prefix: str = "tasks",
        poll_interval: float = 0.5,
        client=None,
    ):
        self.redis = client or aioredis.from_url(redis_url, decode_responses=True)
        self.key_prefix = key_prefix
        self.poll_interval = poll_interval
        self._runner = _HandlerRunner(concurrency)
        self._tasks: Set[asyncio.Task] = set()
        self._running = False
        self._in_flight: Dict[str, int] = {}

    def _key(self, queue_name: str) -> str:
        return f"{self.key_prefix}:{queue_name}"

    def register(self, queue_name: str, handler: TaskHandler) -> None:
        self._runner.register(queue_name, handler)

    async def enqueue(
        self,
        queue_name: str,
        payload: Dict[str, Any],
        options: TaskOptions = None,
    ) -> str:
        options = options or TaskOptions()
        envelope = _Envelope(str(uuid4()), queue_name, payload, options)
        await self._push(envelope, options.delay_seconds)
        return envelope.id

    async def _push(self, envelope: _Envelope, delay: float) -> None:
        run_at = time.time() + delay
        await self.redis.zadd(self._key(envelope.queue_name), {envelope.to_json(): run_at})

    async def claim_due(self, queue_name: str, limit: int) -> list:
        """Atomically take up to `limit` due envelopes off a queue"""
        key = self._key(queue_name)
        members = await self.redis.zrangebyscore(key, 0, time.time(), start=0, num=limit)
        claimed = []
        for member in members:
            # ZREM returns 1 only for the consumer that removed the member
            if await self.redis.zrem(key, member) == 1:
                claimed.append(_Envelope.from_json(member))
        return claimed

    async def _execute(self, envelope: _Envelope) -> None:
        succeeded = await self._runner.run(envelope)
        if not succeeded and envelope.attempt < envelope.options.max_attempts:
            delay = retry_delay(envelope.options, envelope.attempt)
            envelope.attempt += 1
            await self._push(envelope, delay)

    def _free_slots(self, queue_name: str) -> int:
        limit = self._runner.concurrency.get(queue_name, DEFAULT_CONCURRENCY)
        return limit - self._in_flight.get(queue_name, 0)

    def _release(self, queue_name: str):
        def done(task: asyncio.Task) -> None:
            self._tasks.discard(task)
            self._in_flight[queue_name] -= 1

        return done

    async def run(self) -> None:
        self._running = True
        logger.info(f"Consuming queues: {', '.join(self._runner.handlers)}")
        while self._running:
            for queue_name in list(self._runner.handlers):
                slots = self._free_slots(queue_name)
                if slots <= 0:
                    continue
                for envelope in await self.claim_due(queue_name, slots):
                    self._in_flight[queue_name] = self._in_flight.get(queue_name, 0) + 1
                    task = asyncio.ensure_future(self._execute(envelope))
                    self._tasks.add(task)
                    task.add_done_callback(self._release(queue_name))
            await asyncio.sleep(self.poll_interval)

    async def close(self) -> None:
        self._running = False
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.redis.aclose()
