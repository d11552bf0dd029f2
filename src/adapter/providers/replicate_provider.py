"""Replicate long-form job provider

Runs a language model prediction for long-form content (lesson preparation).
Predictions stream output tokens while `processing`, which are reported as
partial output.
"""

import logging
from typing import Any, Dict, Optional
import httpx
from src.adapter.providers.http import json_body, raise_for_provider_status
from src.app.services.providers import (
    ExternalJob,
    JobProvider,
    ProviderRequestError,
    ProviderTransientError,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "starting": "in_progress",
    "processing": "in_progress",
    "succeeded": "succeeded",
    "failed": "failed",
    "canceled": "failed",
}


def build_prompt(params: Dict[str, Any]) -> str:
    prompt = params.get("prompt") or params.get("inputText") or params.get("topic")
    if not prompt:
        raise ProviderRequestError("prompt, inputText or topic is required")

    details = [
        f"{label}: {params[key]}"
        for key, label in (("subject", "Subject"), ("grade", "Grade"), ("duration", "Duration"))
        if params.get(key)
    ]
    return "\n".join([prompt, *details])


def join_output(output: Any) -> str:
    if output is None:
        return ""
    if isinstance(output, list):
        return "".join(str(chunk) for chunk in output)
    return str(output)


class ReplicateJobProvider(JobProvider):

    def __init__(
        self,
        api_token: Optional[str],
        base_url: str,
        model: str,
        timeout: float = 30.0,
        max_tokens: int = 8192,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.transport = transport

    async def _call(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.api_token:
            raise ProviderRequestError("Replicate API token is not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers={"Authorization": f"Bearer {self.api_token}"},
                    **kwargs,
                )
        except httpx.TransportError as e:
            raise ProviderTransientError(f"Replicate unreachable: {e}")

    def _to_job(self, data: Dict[str, Any]) -> ExternalJob:
        status = data.get("status") or "starting"
        text = join_output(data.get("output"))
        output = {"content": text} if status == "succeeded" else {}
        partial = {"content": text, "partial": True} if status == "processing" and text else None
        error = data.get("error")
        return ExternalJob(
            id=data["id"],
            status=status,
            output=output,
            partial=partial,
            error=str(error) if error else None,
        )

    async def submit(self, params: Dict[str, Any]) -> ExternalJob:
        response = await self._call(
            "POST",
            f"/models/{self.model}/predictions",
            json={"input": {"prompt": build_prompt(params), "max_tokens": self.max_tokens}},
        )
        raise_for_provider_status(response, "Replicate")
        data = json_body(response, "Replicate")
        if not data.get("id"):
            raise ProviderRequestError("Replicate did not return a prediction id")
        logger.info(f"Replicate prediction started: {data['id']}")
        return self._to_job(data)

    async def get_status(self, job_id: str) -> ExternalJob:
        response = await self._call("GET", f"/predictions/{job_id}")
        raise_for_provider_status(response, "Replicate")
        data = json_body(response, "Replicate")
        data.setdefault("id", job_id)
        return self._to_job(data)

    def classify(self, status: str) -> str:
        return STATUS_MAP.get(status, "unknown")
