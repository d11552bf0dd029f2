"""Polling Monitor

Drives external job APIs that have no callback. Each status check is a
delayed task; a check either applies a terminal outcome or schedules the
next one, so at most one check per job is ever outstanding.

Job payload:
    {
        "generation_request_id": str,
        "external_job_id": str,
        "provider": str,             # key in job_providers
        "attempt": int,              # 1-based poll attempt
        "max_attempts": int,
        "transient_failures": int,   # consecutive transient errors on this attempt
    }
"""

import logging
from typing import Any, Dict, Optional
from libs.result import Result, Return, Error
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.app.services.providers import (
    JobProvider,
    ProviderTransientError,
)
from src.app.services.task_queue import TaskOptions, TaskQueue
from src.domain.completion import CompletionFailure, CompletionSuccess
from src.domain.generation_request import GenerationRequest
from src.domain.generation_type import get_generation_type
from .completion_applier import CompletionApplier
from .dtos import ApplyResultDTO
from .sanitize import sanitize_error
from .update_progress import UpdateGenerationProgress

logger = logging.getLogger(__name__)


class PollingMonitor:
    """
    Use Case: Submit and poll long-running external jobs

    Business Rules:
    1. Submission failure -> DISPATCH_ERROR
    2. Remote success/failure -> applied, polling stops
    3. In progress (or unrecognized status) -> next check after poll_interval,
       until max_attempts checks were made -> POLL_TIMEOUT
    4. Transient check errors back off (base * 2**n) up to transient_retries
       times before consuming one poll attempt
    5. Non-transient check errors -> PROVIDER_ERROR immediately
    6. Checks for a request that is already terminal stop without rescheduling
    """

    def __init__(
        self,
        generation_repo: GenerationRequestRepository,
        task_queue: TaskQueue,
        job_providers: Dict[str, JobProvider],
        applier: CompletionApplier,
        progress: UpdateGenerationProgress,
        poll_interval_seconds: float = 5,
        max_attempts: int = 120,
        transient_retries: int = 5,
        transient_base_delay_seconds: float = 2,
    ):
        self.generation_repo = generation_repo
        self.task_queue = task_queue
        self.job_providers = job_providers
        self.applier = applier
        self.progress = progress
        self.poll_interval_seconds = poll_interval_seconds
        self.max_attempts = max_attempts
        self.transient_retries = transient_retries
        self.transient_base_delay_seconds = transient_base_delay_seconds

    async def start(self, request: GenerationRequest) -> Result[Optional[ApplyResultDTO]]:
        gen_type = get_generation_type(request.type)
        provider = self.job_providers.get(gen_type.job_provider) if gen_type else None
        if provider is None:
            return await self._fail(
                request.id, f"No job provider for type {request.type}", "DISPATCH_ERROR"
            )

        try:
            job = await provider.submit(request.params)
        except Exception as e:
            error = sanitize_error(str(e) or type(e).__name__)
            logger.error(f"Job submission for {request.id} failed: {error}")
            return await self._fail(request.id, error, "DISPATCH_ERROR")

        await self.progress.execute(
            request.id, {"externalJobId": job.id, "provider": gen_type.job_provider, "status": job.status}
        )

        payload = {
            "generation_request_id": request.id,
            "external_job_id": job.id,
            "provider": gen_type.job_provider,
            "attempt": 1,
            "max_attempts": self.max_attempts,
            "transient_failures": 0,
        }
        await self._schedule(gen_type.polling_queue, payload, self.poll_interval_seconds)
        logger.info(
            f"Generation {request.id} submitted to {gen_type.job_provider} as job {job.id}, "
            f"polling every {self.poll_interval_seconds}s"
        )
        return Return.ok(None)

    async def check(self, job: Dict[str, Any]) -> Result[Optional[ApplyResultDTO]]:
        """Run one status check (runs in the polling queue)"""
        request_id = job["generation_request_id"]
        request = await self.generation_repo.get_by_id(request_id)
        if request is None:
            logger.warning(f"Polling for unknown generation {request_id}, stopping")
            return Return.err(
                Error(
                    code="GENERATION_NOT_FOUND",
                    message=f"Generation request {request_id} not found",
                )
            )
        if request.status.is_terminal:
            logger.info(f"Generation {request_id} already {request.status.value}, polling stopped")
            return Return.ok(None)

        gen_type = get_generation_type(request.type)
        provider = self.job_providers.get(job["provider"])
        if provider is None or gen_type is None:
            return await self._fail(request_id, f"No job provider '{job['provider']}'", "PROVIDER_ERROR")

        try:
            remote = await provider.get_status(job["external_job_id"])
        except ProviderTransientError as e:
            failures = job.get("transient_failures", 0)
            if failures < self.transient_retries:
                delay = self.transient_base_delay_seconds * (2 ** failures)
                logger.warning(
                    f"Transient error polling {request_id} ({failures + 1}/{self.transient_retries}), "
                    f"retrying in {delay}s: {e}"
                )
                await self._schedule(
                    gen_type.polling_queue, {**job, "transient_failures": failures + 1}, delay
                )
                return Return.ok(None)
            logger.warning(f"Transient retries exhausted polling {request_id}, counting as one attempt")
            return await self._next_attempt(gen_type.polling_queue, job)
        except Exception as e:
            error = sanitize_error(str(e) or type(e).__name__)
            logger.error(f"Polling {request_id} failed: {error}")
            return await self._fail(request_id, error, "PROVIDER_ERROR")

        state = provider.classify(remote.status)

        if state == "succeeded":
            if not remote.output:
                return await self._fail(request_id, "Job completed without output", "PROVIDER_ERROR")
            return await self.applier.apply(request_id, CompletionSuccess(result=remote.output))

        if state == "failed":
            error = sanitize_error(remote.error or f"External job {remote.status}")
            return await self._fail(request_id, error, "PROVIDER_ERROR")

        if state == "unknown":
            logger.warning(
                f"Unrecognized status '{remote.status}' for job {job['external_job_id']}, rescheduling"
            )

        if remote.partial:
            await self.progress.execute(request_id, remote.partial)

        return await self._next_attempt(gen_type.polling_queue, job)

    async def _next_attempt(self, queue_name: str, job: Dict[str, Any]) -> Result[Optional[ApplyResultDTO]]:
        attempt = job["attempt"]
        max_attempts = job.get("max_attempts", self.max_attempts)
        if attempt >= max_attempts:
            logger.error(
                f"Generation {job['generation_request_id']} timed out after {attempt} status checks"
            )
            return await self._fail(
                job["generation_request_id"],
                f"Generation timed out after {attempt} status checks",
                "POLL_TIMEOUT",
            )

        await self._schedule(
            queue_name,
            {**job, "attempt": attempt + 1, "transient_failures": 0},
            self.poll_interval_seconds,
        )
        return Return.ok(None)

    async def _schedule(self, queue_name: str, payload: Dict[str, Any], delay: float) -> None:
        await self.task_queue.enqueue(queue_name, payload, TaskOptions(delay_seconds=delay))

    async def _fail(self, request_id: str, message: str, code: str) -> Result[Optional[ApplyResultDTO]]:
        return await self.applier.apply(request_id, CompletionFailure(error=message, code=code))
