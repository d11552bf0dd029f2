import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def mock_task_queue():
    """Mock task queue"""
    queue = MagicMock()
    queue.enqueue = AsyncMock(return_value="task-1")
    return queue
