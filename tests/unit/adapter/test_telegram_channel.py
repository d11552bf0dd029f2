"""Unit tests for TelegramDeliveryChannel"""

import base64
import json
import httpx
import pytest

from src.adapter.providers import TelegramDeliveryChannel
from src.app.services.delivery_channel import DeliveryChannelError


def channel(handler):
    return TelegramDeliveryChannel(
        "bot-token", api_base_url="https://tg.test", transport=httpx.MockTransport(handler)
    )


@pytest.mark.asyncio
class TestTelegramDeliveryChannel:

    async def test_send_text(self):
        # Arrange
        seen = []

        def handler(request: httpx.Request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True, "result": {}})

        # Act
        await channel(handler).send_text("555", "Worksheet body")

        # Assert
        assert seen[0].url.path == "/botbot-token/sendMessage"
        assert json.loads(seen[0].content) == {"chat_id": "555", "text": "Worksheet body"}

    async def test_send_document_with_caption(self):
        # Arrange
        seen = []

        def handler(request: httpx.Request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True})

        # Act
        await channel(handler).send_document("555", "https://gamma.app/x.pdf", caption="Slides")

        # Assert
        assert seen[0] == {"chat_id": "555", "document": "https://gamma.app/x.pdf", "caption": "Slides"}

    async def test_inline_image_is_uploaded_as_multipart(self):
        # Arrange
        seen = []

        def handler(request: httpx.Request):
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        data_url = "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()

        # Act
        await channel(handler).send_media("555", data_url)

        # Assert
        request = seen[0]
        assert request.url.path.endswith("/sendPhoto")
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b"png-bytes" in request.content

    async def test_ok_false_raises(self):
        def handler(request: httpx.Request):
            return httpx.Response(200, json={"ok": False, "description": "chat not found"})

        with pytest.raises(DeliveryChannelError, match="chat not found"):
            await channel(handler).send_text("555", "hi")

    async def test_error_status_raises(self):
        with pytest.raises(DeliveryChannelError):
            await channel(lambda r: httpx.Response(403, json={"ok": False})).send_text("555", "hi")

    async def test_non_json_body_raises(self):
        with pytest.raises(DeliveryChannelError):
            await channel(lambda r: httpx.Response(200, text="<html>")).send_text("555", "hi")

    async def test_network_error_raises(self):
        def handler(request: httpx.Request):
            raise httpx.ConnectError("no route", request=request)

        with pytest.raises(DeliveryChannelError):
            await channel(handler).send_text("555", "hi")

    async def test_malformed_inline_image_raises_channel_error(self):
        def handler(request: httpx.Request):
            return httpx.Response(200, json={"ok": True})

        with pytest.raises(DeliveryChannelError, match="Malformed inline image"):
            await channel(handler).send_media("555", "data:image/png;base64,not*base64!")

    async def test_invalid_url_raises_channel_error(self):
        bad_channel = TelegramDeliveryChannel("bot\ntoken", api_base_url="https://tg.test")

        with pytest.raises(DeliveryChannelError):
            await bad_channel.send_text("555", "hi")
