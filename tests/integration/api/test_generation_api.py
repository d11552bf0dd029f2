"""Integration tests for Generation and Credit API endpoints"""

import pytest
from httpx import AsyncClient
from sqlmodel import select

from config import ApplicationConfig
from src.app.services.providers import ProviderTransientError
from src.domain.credit_transaction import CreditTransaction
from src.domain.generation_request import GenerationRequest

PREFIX = ApplicationConfig.API_PREFIX


def as_user(user_id):
    return {"X-User-Id": user_id}


class TestGenerationAPIIntegration:
    """Integration test suite for Generation API endpoints"""

    @pytest.mark.asyncio
    async def test_direct_generation_end_to_end(self, client: AsyncClient, db_session, seed):
        """
        Given: a user with 10 credits and a worksheet costing 2
        When: a worksheet is generated
        Then: the response is completed, the balance drops to 8 and the
              debit transaction is linked to the request
        """
        # Arrange
        await seed("user_e2e", balance=10)

        # Act
        response = await client.post(
            f"{PREFIX}/generate/worksheet",
            json={"params": {"topic": "Fractions", "level": "5"}},
            headers=as_user("user_e2e"),
        )

        # Assert
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["status"] == "completed"
        assert data["result"]["content"] == "Generated worksheet"
        request_id = data["requestId"]

        balance = await client.get(f"{PREFIX}/credits/balance", headers=as_user("user_e2e"))
        assert balance.json()["balance"] == 8
        assert balance.json()["credits_used"] == 2

        transaction = (
            await db_session.exec(select(CreditTransaction).where(CreditTransaction.user_id == "user_e2e"))
        ).one()
        assert transaction.generation_request_id == request_id
        assert transaction.amount == 2

        status = await client.get(f"{PREFIX}/generate/{request_id}", headers=as_user("user_e2e"))
        assert status.status_code == 200
        assert status.json()["status"] == "completed"
        assert status.json()["result"]["content"] == "Generated worksheet"

    @pytest.mark.asyncio
    async def test_type_in_body(self, client: AsyncClient, seed):
        # Arrange
        await seed("user_body", balance=10)

        # Act
        response = await client.post(
            f"{PREFIX}/generate",
            json={"type": "image", "params": {"description": "a fox in a forest"}},
            headers=as_user("user_body"),
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["result"]["imageUrl"] == "https://img.example/1.png"

    @pytest.mark.asyncio
    async def test_insufficient_credits_returns_402(self, client: AsyncClient, db_session, seed):
        """
        Given: a user with 1 credit
        When: a worksheet costing 2 is requested
        Then: 402 ADMISSION_DENIED and no request is created
        """
        # Arrange
        await seed("user_poor", balance=1)

        # Act
        response = await client.post(
            f"{PREFIX}/generate/worksheet", json={"params": {}}, headers=as_user("user_poor")
        )

        # Assert
        assert response.status_code == 402
        assert response.json()["error"]["code"] == "ADMISSION_DENIED"
        requests = (
            await db_session.exec(select(GenerationRequest).where(GenerationRequest.user_id == "user_poor"))
        ).all()
        assert requests == []

    @pytest.mark.asyncio
    async def test_unknown_type_is_rejected_without_charge(self, client: AsyncClient, seed):
        # Arrange
        await seed("user_unknown", balance=10)

        # Act
        response = await client.post(
            f"{PREFIX}/generate/horoscope", json={"params": {}}, headers=as_user("user_unknown")
        )

        # Assert
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "UNSUPPORTED_GENERATION_TYPE"
        balance = await client.get(f"{PREFIX}/credits/balance", headers=as_user("user_unknown"))
        assert balance.json()["balance"] == 10

    @pytest.mark.asyncio
    async def test_missing_user_returns_401(self, client: AsyncClient):
        response = await client.post(f"{PREFIX}/generate/worksheet", json={"params": {}})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_status_is_hidden_from_other_users(self, client: AsyncClient, seed):
        # Arrange
        await seed("user_owner", balance=10)
        created = await client.post(
            f"{PREFIX}/generate/worksheet", json={"params": {}}, headers=as_user("user_owner")
        )
        request_id = created.json()["requestId"]

        # Act
        response = await client.get(f"{PREFIX}/generate/{request_id}", headers=as_user("user_intruder"))

        # Assert
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "GENERATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_provider_failure_is_recorded_and_not_refunded(
        self, client: AsyncClient, seed, completion_provider
    ):
        """
        Given: the completion provider is down
        When: a worksheet is generated
        Then: the request fails with the provider error and the debit stands
        """
        # Arrange
        await seed("user_fail", balance=10)
        completion_provider.error = ProviderTransientError("GigaChat responded 503: upstream unavailable")

        # Act
        response = await client.post(
            f"{PREFIX}/generate/worksheet", json={"params": {}}, headers=as_user("user_fail")
        )

        # Assert
        data = response.json()
        assert response.status_code == 200
        assert data["status"] == "failed"
        assert "503" in data["error"]
        assert "result" not in data
        balance = await client.get(f"{PREFIX}/credits/balance", headers=as_user("user_fail"))
        assert balance.json()["balance"] == 8

    @pytest.mark.asyncio
    async def test_relay_generation_is_pending_and_queued(
        self, client: AsyncClient, seed, recording_queue, relay_client
    ):
        # Arrange
        await seed("user_relay", balance=10)

        # Act
        response = await client.post(
            f"{PREFIX}/generate/transcription",
            json={"params": {"videoUrl": "https://video.example/lesson.mp4"}},
            headers=as_user("user_relay"),
        )

        # Assert
        assert response.status_code == 200
        assert response.json()["status"] == "pending"
        queue_name, payload = recording_queue.enqueue.call_args.args[:2]
        assert queue_name == "webhook-relay"
        assert payload["generation_request_id"] == response.json()["requestId"]
        relay_client.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_history_newest_first(self, client: AsyncClient, seed):
        # Arrange
        await seed("user_history", balance=10)
        first = await client.post(f"{PREFIX}/generate/worksheet", json={"params": {}}, headers=as_user("user_history"))
        second = await client.post(f"{PREFIX}/generate/worksheet", json={"params": {}}, headers=as_user("user_history"))

        # Act
        response = await client.get(f"{PREFIX}/generate/history?limit=10", headers=as_user("user_history"))

        # Assert
        data = response.json()
        assert response.status_code == 200
        assert data["total"] == 2
        assert [item["requestId"] for item in data["items"]] == [
            second.json()["requestId"],
            first.json()["requestId"],
        ]


class TestCreditAPIIntegration:

    @pytest.mark.asyncio
    async def test_balance_without_ledger_returns_404(self, client: AsyncClient, seed):
        response = await client.get(f"{PREFIX}/credits/balance", headers=as_user("user_nobody"))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LEDGER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_costs_cheapest_first(self, client: AsyncClient, seed):
        response = await client.get(f"{PREFIX}/credits/costs")

        costs = [entry["credit_cost"] for entry in response.json()]
        assert response.status_code == 200
        assert costs == sorted(costs)
        assert {"operation_type": "worksheet", "operation_name": "worksheet", "credit_cost": 2} in response.json()

    @pytest.mark.asyncio
    async def test_check_does_not_charge(self, client: AsyncClient, seed):
        # Arrange
        await seed("user_check", balance=3)

        # Act
        response = await client.get(f"{PREFIX}/credits/check/worksheet", headers=as_user("user_check"))

        # Assert
        data = response.json()
        assert data["available"] is True
        assert data["cost"] == 2
        balance = await client.get(f"{PREFIX}/credits/balance", headers=as_user("user_check"))
        assert balance.json()["balance"] == 3
