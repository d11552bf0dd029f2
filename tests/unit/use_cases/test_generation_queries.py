"""Unit tests for GetGenerationStatus, ListGenerations and ExpireStaleRelays"""

import pytest
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

from libs.result import Return
from src.app.use_cases.generations import ExpireStaleRelays, GetGenerationStatus, ListGenerations
from src.app.use_cases.generations.dtos import ApplyResultDTO
from src.app.use_cases.generations.expire_stale_relays import POLLING_TYPES, RELAY_TYPES
from src.domain.generation_request import GenerationRequest, GenerationStatus
from src.domain.user_generation import UserGeneration


def make_request(id="req-1", user_id="user_42", type="worksheet", status=GenerationStatus.PENDING):
    return GenerationRequest(
        id=id,
        user_id=user_id,
        type=type,
        status=status,
        params={},
        model="m",
        created_at=datetime(2024, 1, 1),
        updated_at=datetime(2024, 1, 1),
    )


@pytest.fixture
def mock_generation_repo():
    return MagicMock()


@pytest.mark.asyncio
class TestGetGenerationStatus:

    async def test_owner_sees_status(self, mock_generation_repo):
        # Arrange
        mock_generation_repo.get_by_id = AsyncMock(return_value=make_request())

        # Act
        result = await GetGenerationStatus(mock_generation_repo).execute("req-1", "user_42")

        # Assert
        assert result.is_ok()
        assert result.value.status == GenerationStatus.PENDING

    async def test_other_user_gets_not_found(self, mock_generation_repo):
        # Arrange
        mock_generation_repo.get_by_id = AsyncMock(return_value=make_request())

        # Act
        result = await GetGenerationStatus(mock_generation_repo).execute("req-1", "intruder")

        # Assert
        assert result.is_err()
        assert result.error.code == "GENERATION_NOT_FOUND"


@pytest.mark.asyncio
class TestListGenerations:

    async def test_page_size_is_capped(self, mock_generation_repo):
        # Arrange
        item = UserGeneration(
            generation_request_id="req-1",
            user_id="user_42",
            generation_type="quiz",
            status=GenerationStatus.COMPLETED,
            output_data={"content": "Q1"},
            model="m",
            created_at=datetime(2024, 1, 1),
            updated_at=datetime(2024, 1, 1),
        )
        mock_generation_repo.list_by_user = AsyncMock(return_value=([item], 1))

        # Act
        result = await ListGenerations(mock_generation_repo).execute("user_42", limit=1000, offset=-3)

        # Assert
        mock_generation_repo.list_by_user.assert_awaited_once_with("user_42", limit=100, offset=0)
        assert result.value.total == 1
        assert result.value.items[0].result == {"content": "Q1"}


@pytest.mark.asyncio
class TestExpireStaleRelays:

    async def test_stale_relays_fail_with_callback_timeout(self, mock_generation_repo):
        # Arrange
        mock_generation_repo.list_pending_older_than = AsyncMock(
            return_value=[make_request("a", type="transcription"), make_request("b", type="transcription")]
        )
        applier = MagicMock()
        applier.apply = AsyncMock(
            side_effect=[
                Return.ok(ApplyResultDTO(applied=True, status=GenerationStatus.FAILED)),
                Return.ok(ApplyResultDTO(applied=False, status=GenerationStatus.COMPLETED)),
            ]
        )
        use_case = ExpireStaleRelays(mock_generation_repo, applier, timeout_hours=6)

        # Act
        result = await use_case.execute(now=datetime(2024, 1, 2, 12, 0))

        # Assert
        assert result.value.checked == 2
        assert result.value.expired == 1
        types, cutoff = mock_generation_repo.list_pending_older_than.call_args.args
        assert types == RELAY_TYPES
        assert cutoff == datetime(2024, 1, 2, 6, 0)
        assert applier.apply.call_args_list[0].args[1].code == "CALLBACK_TIMEOUT"

    async def test_disabled_when_timeout_is_zero(self, mock_generation_repo):
        # Arrange
        mock_generation_repo.list_pending_older_than = AsyncMock()

        # Act
        result = await ExpireStaleRelays(mock_generation_repo, MagicMock(), timeout_hours=0).execute()

        # Assert
        assert result.value.expired == 0
        mock_generation_repo.list_pending_older_than.assert_not_called()

    async def test_lost_polling_requests_fail_with_poll_timeout(self, mock_generation_repo):
        """
        Given: a presentation still pending long after its last status check was due
        When: the watchdog runs with a polling timeout
        Then: the request is failed with POLL_TIMEOUT through the applier
        """
        # Arrange
        mock_generation_repo.list_pending_older_than = AsyncMock(
            return_value=[make_request("p", type="presentation")]
        )
        applier = MagicMock()
        applier.apply = AsyncMock(
            return_value=Return.ok(ApplyResultDTO(applied=True, status=GenerationStatus.FAILED))
        )
        use_case = ExpireStaleRelays(
            mock_generation_repo, applier, timeout_hours=0, poll_timeout_seconds=1200
        )

        # Act
        result = await use_case.execute(now=datetime(2024, 1, 2, 12, 0))

        # Assert
        assert result.value.checked == 1
        assert result.value.expired == 1
        types, cutoff = mock_generation_repo.list_pending_older_than.call_args.args
        assert types == POLLING_TYPES
        assert "presentation" in types
        assert "lesson-preparation" in types
        assert cutoff == datetime(2024, 1, 2, 11, 40)
        request_id, failure = applier.apply.call_args.args
        assert request_id == "p"
        assert failure.code == "POLL_TIMEOUT"

    async def test_both_sweeps_run_when_enabled(self, mock_generation_repo):
        # Arrange
        mock_generation_repo.list_pending_older_than = AsyncMock(return_value=[])

        # Act
        result = await ExpireStaleRelays(
            mock_generation_repo, MagicMock(), timeout_hours=6, poll_timeout_seconds=1200
        ).execute()

        # Assert
        assert result.value.checked == 0
        swept = [call.args[0] for call in mock_generation_repo.list_pending_older_than.call_args_list]
        assert swept == [RELAY_TYPES, POLLING_TYPES]
