"""Unit tests for provider HTTP clients, using httpx.MockTransport"""

import base64
import json
import httpx
import pytest

from src.adapter.providers import (
    GammaJobProvider,
    GigaChatCompletionProvider,
    HttpWebhookRelayClient,
    ReplicateJobProvider,
)
from src.adapter.providers.gigachat_provider import extract_file_id
from src.app.services.providers import ProviderRequestError, ProviderTransientError


def gigachat(handler):
    return GigaChatCompletionProvider(
        auth_token="basic-credentials",
        oauth_url="https://oauth.test/api/v2/oauth",
        api_url="https://giga.test/api/v1",
        transport=httpx.MockTransport(handler),
    )


def oauth_response(token="access-1"):
    return httpx.Response(200, json={"access_token": token, "expires_at": 0, "expires_in": 1800})


@pytest.mark.asyncio
class TestGigaChatCompletionProvider:

    async def test_complete_text(self):
        # Arrange
        seen = []

        def handler(request: httpx.Request):
            seen.append(request)
            if request.url.host == "oauth.test":
                return oauth_response()
            return httpx.Response(200, json={"choices": [{"message": {"content": "Hello"}}]})

        provider = gigachat(handler)

        # Act
        content = await provider.complete_text("GigaChat-2-Max", [{"role": "user", "content": "Hi"}])

        # Assert
        assert content == "Hello"
        oauth, completion = seen
        assert oauth.headers["Authorization"] == "Basic basic-credentials"
        assert "RqUID" in oauth.headers
        assert b"scope=GIGACHAT_API_PERS" in oauth.content
        assert completion.headers["Authorization"] == "Bearer access-1"
        assert json.loads(completion.content)["model"] == "GigaChat-2-Max"

    async def test_401_refreshes_token_once_and_retries(self):
        # Arrange
        tokens = iter(["stale", "fresh"])
        calls = {"oauth": 0}

        def handler(request: httpx.Request):
            if request.url.host == "oauth.test":
                calls["oauth"] += 1
                return oauth_response(next(tokens))
            if request.headers["Authorization"] == "Bearer stale":
                return httpx.Response(401, json={"message": "token expired"})
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        provider = gigachat(handler)

        # Act
        content = await provider.complete_text("GigaChat-2-Max", [])

        # Assert
        assert content == "ok"
        assert calls["oauth"] == 2

    async def test_rate_limit_is_transient(self):
        def handler(request: httpx.Request):
            if request.url.host == "oauth.test":
                return oauth_response()
            return httpx.Response(429, text="Too Many Requests")

        with pytest.raises(ProviderTransientError):
            await gigachat(handler).complete_text("GigaChat-2-Max", [])

    async def test_empty_choices_is_request_error(self):
        def handler(request: httpx.Request):
            if request.url.host == "oauth.test":
                return oauth_response()
            return httpx.Response(200, json={"choices": []})

        with pytest.raises(ProviderRequestError):
            await gigachat(handler).complete_text("GigaChat-2-Max", [])

    async def test_generate_image_downloads_file(self):
        # Arrange
        file_id = "0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0"

        def handler(request: httpx.Request):
            if request.url.host == "oauth.test":
                return oauth_response()
            if request.url.path.endswith("/chat/completions"):
                return httpx.Response(
                    200,
                    json={"choices": [{"message": {"content": f'<img src="{file_id}" fuse="true"/>'}}]},
                )
            assert request.url.path == f"/api/v1/files/{file_id}/content"
            return httpx.Response(200, content=b"\xff\xd8jpeg")

        # Act
        url = await gigachat(handler).generate_image("GigaChat-2-Max", "a fox")

        # Assert
        assert url == "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8jpeg").decode()

    async def test_missing_credentials(self):
        provider = GigaChatCompletionProvider(
            auth_token=None, oauth_url="https://oauth.test", api_url="https://giga.test"
        )

        with pytest.raises(ProviderRequestError):
            await provider.complete_text("GigaChat-2-Max", [])


class TestExtractFileId:

    def test_function_call_arguments(self):
        response = {
            "choices": [
                {"message": {"function_call": {"name": "text2image", "arguments": '{"file_id": "abc"}'}}}
            ]
        }

        assert extract_file_id(response) == "abc"

    def test_root_file_id(self):
        assert extract_file_id({"file_id": "root-id", "choices": []}) == "root-id"

    def test_nothing_found(self):
        assert extract_file_id({"choices": [{"message": {"content": "I cannot draw that"}}]}) is None


@pytest.mark.asyncio
class TestGammaJobProvider:

    async def test_submit_and_completed_status(self):
        # Arrange
        def handler(request: httpx.Request):
            assert request.headers["X-API-KEY"] == "gamma-key"
            if request.method == "POST":
                body = json.loads(request.content)
                assert body["inputText"] == "Photosynthesis"
                return httpx.Response(200, json={"generationId": "gen-1"})
            return httpx.Response(
                200,
                json={"status": "completed", "gammaUrl": "https://gamma.app/docs/1", "pdfUrl": "https://x/1.pdf"},
            )

        provider = GammaJobProvider("gamma-key", "https://gamma.test/v1.0", transport=httpx.MockTransport(handler))

        # Act
        job = await provider.submit({"inputText": "Photosynthesis"})
        status = await provider.get_status(job.id)

        # Assert
        assert job.id == "gen-1"
        assert provider.classify(status.status) == "succeeded"
        assert status.output == {"gammaUrl": "https://gamma.app/docs/1", "pdfUrl": "https://x/1.pdf"}

    async def test_missing_generation_is_failed_job(self):
        provider = GammaJobProvider(
            "gamma-key", "https://gamma.test", transport=httpx.MockTransport(lambda r: httpx.Response(404))
        )

        status = await provider.get_status("gen-404")

        assert provider.classify(status.status) == "failed"

    async def test_server_error_is_transient(self):
        provider = GammaJobProvider(
            "gamma-key", "https://gamma.test", transport=httpx.MockTransport(lambda r: httpx.Response(502))
        )

        with pytest.raises(ProviderTransientError):
            await provider.get_status("gen-1")

    async def test_input_text_required(self):
        provider = GammaJobProvider("gamma-key", "https://gamma.test")

        with pytest.raises(ProviderRequestError):
            await provider.submit({})


@pytest.mark.asyncio
class TestReplicateJobProvider:

    async def test_processing_reports_partial_output(self):
        # Arrange
        def handler(request: httpx.Request):
            assert request.headers["Authorization"] == "Bearer r8-token"
            return httpx.Response(200, json={"id": "pred-1", "status": "processing", "output": ["Intro", "..."]})

        provider = ReplicateJobProvider(
            "r8-token", "https://replicate.test/v1", "anthropic/claude", transport=httpx.MockTransport(handler)
        )

        # Act
        job = await provider.get_status("pred-1")

        # Assert
        assert provider.classify(job.status) == "in_progress"
        assert job.partial == {"content": "Intro...", "partial": True}
        assert job.output == {}

    async def test_succeeded_joins_output(self):
        provider = ReplicateJobProvider(
            "r8-token",
            "https://replicate.test/v1",
            "anthropic/claude",
            transport=httpx.MockTransport(
                lambda r: httpx.Response(200, json={"id": "pred-1", "status": "succeeded", "output": ["A", "B"]})
            ),
        )

        job = await provider.get_status("pred-1")

        assert job.output == {"content": "AB"}

    async def test_submit_posts_model_prediction(self):
        # Arrange
        seen = []

        def handler(request: httpx.Request):
            seen.append(request)
            return httpx.Response(201, json={"id": "pred-1", "status": "starting"})

        provider = ReplicateJobProvider(
            "r8-token", "https://replicate.test/v1", "anthropic/claude", transport=httpx.MockTransport(handler)
        )

        # Act
        job = await provider.submit({"topic": "Fractions", "grade": "5"})

        # Assert
        assert job.id == "pred-1"
        assert seen[0].url.path == "/v1/models/anthropic/claude/predictions"
        assert json.loads(seen[0].content)["input"]["prompt"] == "Fractions\nGrade: 5"


class TestStatusClassification:

    @pytest.mark.parametrize(
        "status, expected",
        [
            ("pending", "in_progress"),
            ("processing", "in_progress"),
            ("completed", "succeeded"),
            ("failed", "failed"),
            ("queued_v2", "unknown"),
        ],
    )
    def test_gamma(self, status, expected):
        assert GammaJobProvider("k", "https://gamma.test").classify(status) == expected

    @pytest.mark.parametrize(
        "status, expected",
        [("starting", "in_progress"), ("succeeded", "succeeded"), ("canceled", "failed"), ("weird", "unknown")],
    )
    def test_replicate(self, status, expected):
        assert ReplicateJobProvider("t", "https://r.test", "m").classify(status) == expected


@pytest.mark.asyncio
class TestHttpWebhookRelayClient:

    async def test_returns_status_code(self):
        client = HttpWebhookRelayClient(transport=httpx.MockTransport(lambda r: httpx.Response(202)))

        assert await client.post("https://n8n.test/webhook/x", {"a": 1}) == 202

    async def test_network_error_is_transient(self):
        def handler(request: httpx.Request):
            raise httpx.ConnectError("connection refused", request=request)

        client = HttpWebhookRelayClient(transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderTransientError):
            await client.post("https://n8n.test/webhook/x", {})
