"""Gamma presentation job provider

POST /generations starts a presentation; GET /generations/{id} reports
pending/processing/completed/failed plus the gammaUrl/pdfUrl/pptxUrl links.
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
    "pending": "in_progress",
    "processing": "in_progress",
    "completed": "succeeded",
    "failed": "failed",
}
LINK_FIELDS = ("gammaUrl", "pdfUrl", "pptxUrl")


def build_generation_request(params: Dict[str, Any]) -> Dict[str, Any]:
    input_text = params.get("inputText")
    if not input_text:
        raise ProviderRequestError("inputText is required for presentation generation")

    request = {
        "inputText": input_text,
        "textMode": params.get("textMode", "generate"),
        "format": "presentation",
        "numCards": params.get("numCards", 10),
        "cardSplit": params.get("cardSplit", "auto"),
        "textOptions": {"language": params.get("language", "ru")},
    }
    for optional in ("additionalInstructions", "themeId", "exportAs"):
        if params.get(optional):
            request[optional] = params[optional]
    return request


class GammaJobProvider(JobProvider):

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _call(self, method: str, path: str, **kwargs) -> httpx.Response:
        if not self.api_key:
            raise ProviderRequestError("Gamma API key is not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                return await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers={"X-API-KEY": self.api_key, "Content-Type": "application/json"},
                    **kwargs,
                )
        except httpx.TransportError as e:
            raise ProviderTransientError(f"Gamma unreachable: {e}")

    @staticmethod
    def _links(data: Dict[str, Any]) -> Dict[str, Any]:
        return {field: data[field] for field in LINK_FIELDS if data.get(field)}

    async def submit(self, params: Dict[str, Any]) -> ExternalJob:
        response = await self._call("POST", "/generations", json=build_generation_request(params))
        raise_for_provider_status(response, "Gamma")
        data = json_body(response, "Gamma")

        job_id = data.get("id") or data.get("generationId")
        if not job_id:
            raise ProviderRequestError("Gamma did not return a generation id")
        logger.info(f"Gamma generation started: {job_id}")
        return ExternalJob(id=job_id, status=data.get("status") or "pending", output=self._links(data))

    async def get_status(self, job_id: str) -> ExternalJob:
        response = await self._call("GET", f"/generations/{job_id}")
        if response.status_code in (400, 404):
            # Generation is gone on Gamma's side
            return ExternalJob(id=job_id, status="failed", error=f"Gamma generation {job_id} not found")

        raise_for_provider_status(response, "Gamma")
        data = json_body(response, "Gamma")
        return ExternalJob(
            id=job_id,
            status=data.get("status") or "pending",
            output=self._links(data),
            error=data.get("error") if isinstance(data.get("error"), str) else None,
        )

    def classify(self, status: str) -> str:
        return STATUS_MAP.get(status, "unknown")
