"""Delivery Channel Implementations

- TelegramDeliveryChannel: Telegram Bot API over httpx
- LoggingDeliveryChannel: logs instead of sending (development, no bot token)
"""

import base64
import binascii
import logging
from typing import Any, Dict, Optional
import httpx
from src.app.services.delivery_channel import DeliveryChannel, DeliveryChannelError

logger = logging.getLogger(__name__)


class LoggingDeliveryChannel(DeliveryChannel):
    """Delivery channel that only logs what would be sent"""

    async def send_text(self, chat_id: str, text: str) -> None:
        logger.info(f"[DELIVERY] chat={chat_id} text={text[:80]!r}")

    async def send_media(self, chat_id: str, url: str, caption: Optional[str] = None) -> None:
        logger.info(f"[DELIVERY] chat={chat_id} photo={url[:80]} caption={caption!r}")

    async def send_document(self, chat_id: str, url: str, caption: Optional[str] = None) -> None:
        logger.info(f"[DELIVERY] chat={chat_id} document={url} caption={caption!r}")


class TelegramDeliveryChannel(DeliveryChannel):
    """
    Delivery via the Telegram Bot API

    Any transport error, non-2xx status or `"ok": false` body raises
    DeliveryChannelError so the delivery task is retried.
    """

    def __init__(
        self,
        bot_token: str,
        api_base_url: str = "https://api.telegram.org",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.bot_token = bot_token
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _call(self, method: str, payload: Dict[str, Any], files: Optional[Dict[str, Any]] = None) -> None:
        url = f"{self.api_base_url}/bot{self.bot_token}/{method}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                if files:
                    response = await client.post(url, data=payload, files=files)
                else:
                    response = await client.post(url, json=payload)
        except (httpx.TransportError, httpx.InvalidURL) as e:
            raise DeliveryChannelError(f"Telegram {method} failed: {e}")

        if not response.is_success:
            raise DeliveryChannelError(f"Telegram {method} responded {response.status_code}")
        try:
            body = response.json()
        except ValueError:
            raise DeliveryChannelError(f"Telegram {method} returned a non-JSON body")
        if not isinstance(body, dict) or not body.get("ok", False):
            description = body.get("description") if isinstance(body, dict) else body
            raise DeliveryChannelError(f"Telegram {method} rejected: {description}")

    async def send_text(self, chat_id: str, text: str) -> None:
        await self._call("sendMessage", {"chat_id": chat_id, "text": text})

    async def send_media(self, chat_id: str, url: str, caption: Optional[str] = None) -> None:
        payload = {"chat_id": chat_id}
        if caption:
            payload["caption"] = caption
        if url.startswith("data:"):
            # Inline images are uploaded as multipart
            header, _, encoded = url.partition(",")
            mime_type = header[len("data:"):].split(";")[0] or "image/jpeg"
            try:
                content = base64.b64decode(encoded, validate=True)
            except binascii.Error as e:
                raise DeliveryChannelError(f"Malformed inline image: {e}")
            files = {"photo": ("image", content, mime_type)}
            await self._call("sendPhoto", payload, files=files)
            return
        payload["photo"] = url
        await self._call("sendPhoto", payload)

    async def send_document(self, chat_id: str, url: str, caption: Optional[str] = None) -> None:
        payload = {"chat_id": chat_id, "document": url}
        if caption:
            payload["caption"] = caption
        await self._call("sendDocument", payload)
