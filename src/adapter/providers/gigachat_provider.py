"""GigaChat completion provider

Chat completions and text-to-image through the GigaChat REST API. The OAuth
access token is cached per provider instance and refreshed before it
expires; a 401 forces one refresh and one retry of the call.
"""

import base64
import json
import logging
import re
from typing import Any, Dict, List, Optional
from uuid import uuid4
import httpx
from src.adapter.providers.http import json_body, raise_for_provider_status
from src.adapter.providers.token_cache import TokenCache
from src.app.services.providers import (
    CompletionProvider,
    ProviderRequestError,
    ProviderTransientError,
)

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
DEFAULT_TOKEN_TTL_SECONDS = 600


def extract_file_id(response: Dict[str, Any]) -> Optional[str]:
    """
    Find the id of a generated image in a chat completion

    GigaChat reports it as text2image function_call arguments, at the
    response root, or inside the message content (<img src="..."/> or JSON).
    """
    choices = response.get("choices") or []
    message = (choices[0] or {}).get("message", {}) if choices else {}

    function_call = message.get("function_call") or {}
    if function_call.get("name") == "text2image":
        arguments = function_call.get("arguments")
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments)
            except ValueError:
                arguments = {}
        if isinstance(arguments, dict) and arguments.get("file_id"):
            return arguments["file_id"]

    if response.get("file_id"):
        return response["file_id"]

    content = message.get("content")
    if isinstance(content, str) and content:
        match = UUID_PATTERN.search(content)
        if match:
            return match.group(0)
        try:
            parsed = json.loads(content)
        except ValueError:
            return None
        if isinstance(parsed, dict):
            return parsed.get("file_id")
    return None


class GigaChatCompletionProvider(CompletionProvider):
    """
    CompletionProvider backed by GigaChat

    Usage:
        provider = GigaChatCompletionProvider(auth_token=..., oauth_url=..., api_url=...)
        text = await provider.complete_text("GigaChat-2-Max", [{"role": "user", "content": "..."}])
    """

    def __init__(
        self,
        auth_token: Optional[str],
        oauth_url: str,
        api_url: str,
        scope: str = "GIGACHAT_API_PERS",
        timeout: float = 120.0,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.auth_token = auth_token
        self.oauth_url = oauth_url
        self.api_url = api_url.rstrip("/")
        self.scope = scope
        self.timeout = timeout
        self.verify = verify
        self.transport = transport
        self.token_cache = TokenCache(self._fetch_token)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, verify=self.verify, transport=self.transport)

    async def _fetch_token(self):
        if not self.auth_token:
            raise ProviderRequestError("GigaChat credentials are not configured")

        try:
            async with self._client() as client:
                response = await client.post(
                    self.oauth_url,
                    data={"scope": self.scope},
                    headers={
                        "Authorization": f"Basic {self.auth_token}",
                        "RqUID": str(uuid4()),
                        "Accept": "application/json",
                    },
                )
        except httpx.TransportError as e:
            raise ProviderTransientError(f"GigaChat OAuth unreachable: {e}")

        raise_for_provider_status(response, "GigaChat OAuth")
        data = json_body(response, "GigaChat OAuth")
        token = data.get("access_token")
        if not token:
            raise ProviderRequestError("GigaChat OAuth returned no access token")
        expires_in = float(data.get("expires_in") or DEFAULT_TOKEN_TTL_SECONDS)
        return token, expires_in

    async def _send(self, method: str, path: str, token: str, **kwargs) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}", **kwargs.pop("headers", {})}
        try:
            async with self._client() as client:
                return await client.request(method, f"{self.api_url}{path}", headers=headers, **kwargs)
        except httpx.TransportError as e:
            raise ProviderTransientError(f"GigaChat unreachable: {e}")

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        token = await self.token_cache.ensure_valid()
        response = await self._send(method, path, token, headers=dict(headers), **kwargs)

        if response.status_code == 401:
            logger.warning("GigaChat rejected the access token, refreshing and retrying")
            token = await self.token_cache.ensure_valid(force=True, rejected=token)
            response = await self._send(method, path, token, headers=dict(headers), **kwargs)

        raise_for_provider_status(response, "GigaChat")
        return response

    async def complete_text(self, model: str, messages: List[Dict[str, str]]) -> str:
        response = await self._request(
            "POST", "/chat/completions", json={"model": model, "messages": messages}
        )
        data = json_body(response, "GigaChat")
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ProviderRequestError("GigaChat returned no completion choices")
        if not isinstance(content, str) or not content.strip():
            raise ProviderRequestError("GigaChat returned empty content")
        return content

    async def generate_image(self, model: str, prompt: str) -> str:
        # text2image is a built-in function the model calls on its own
        response = await self._request(
            "POST",
            "/chat/completions",
            json={
                "model": model,
                "messages": [{"role": "user", "content": f"Нарисуй изображение: {prompt}"}],
                "function_call": "auto",
            },
        )
        file_id = extract_file_id(json_body(response, "GigaChat"))
        if not file_id:
            raise ProviderRequestError("GigaChat did not return a generated image")

        image = await self._request(
            "GET", f"/files/{file_id}/content", headers={"Accept": "image/jpeg"}
        )
        if not image.content:
            raise ProviderRequestError("GigaChat returned an empty image")
        encoded = base64.b64encode(image.content).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"
