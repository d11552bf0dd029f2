"""HTTP client for the no-code automation backend (n8n)"""

import logging
from typing import Any, Dict
import httpx
from src.app.services.providers import ProviderTransientError, WebhookRelayClient

logger = logging.getLogger(__name__)


class HttpWebhookRelayClient(WebhookRelayClient):
    """
    POSTs relay payloads as JSON

    The automation backend acknowledges immediately and calls back later,
    so the status code is the only thing read from the response.
    """

    def __init__(self, timeout: float = 10.0, transport: httpx.AsyncBaseTransport = None):
        self.timeout = timeout
        self.transport = transport

    async def post(self, url: str, payload: Dict[str, Any]) -> int:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TransportError as e:
            raise ProviderTransientError(f"Webhook relay to {url} failed: {e}")

        logger.info(f"Webhook relay to {url} answered {response.status_code}")
        return response.status_code
