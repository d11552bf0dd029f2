import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.providers import CompletionProvider
from src.depends import (
    get_completion_provider,
    get_job_providers,
    get_relay_client,
    get_session,
    get_task_queue,
)
from src.domain.credit_cost import CreditCost
from src.domain.credit_ledger import CreditLedger
from src.domain.subscription_plan import SubscriptionPlan


class FakeCompletionProvider(CompletionProvider):
    """Answers every prompt with fixed content, or raises `error` when set"""

    def __init__(self, content="Generated worksheet", image_url="https://img.example/1.png"):
        self.content = content
        self.image_url = image_url
        self.error = None
        self.calls = []

    async def complete_text(self, model, messages):
        self.calls.append((model, messages))
        if self.error:
            raise self.error
        return self.content

    async def generate_image(self, model, prompt):
        self.calls.append((model, prompt))
        if self.error:
            raise self.error
        return self.image_url


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Create a throwaway SQLite database with all tables"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False, future=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def locking_session_factory(engine):
    """
    Sessions on the same database that take the SQLite write lock when their
    transaction begins, so SELECT ... FOR UPDATE serializes like a row lock
    """
    locking_engine = create_async_engine(engine.url, echo=False, future=True)

    @event.listens_for(locking_engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(locking_engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    yield sessionmaker(locking_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await locking_engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a new database session for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(db_session):
    """Insert a plan, the cost table and a helper to open ledgers"""
    db_session.add(SubscriptionPlan(plan_key="starter", plan_name="Starter", monthly_credits=10))
    db_session.add(
        SubscriptionPlan(plan_key="pro", plan_name="Pro", monthly_credits=100, allow_overage=True)
    )
    for operation_type, cost in (
        ("worksheet", 2),
        ("image_generation", 3),
        ("transcription", 5),
        ("presentation", 4),
    ):
        db_session.add(CreditCost(operation_type=operation_type, operation_name=operation_type, credit_cost=cost))
    await db_session.commit()

    async def open_ledger(user_id, balance=10, extra_credits=0, plan_key="starter"):
        ledger = CreditLedger(
            user_id=user_id, plan_key=plan_key, balance=balance, extra_credits=extra_credits
        )
        db_session.add(ledger)
        await db_session.commit()
        return ledger

    return open_ledger


@pytest.fixture
def completion_provider():
    return FakeCompletionProvider()


@pytest.fixture
def recording_queue():
    """Task queue that only records what was enqueued"""
    queue = MagicMock()
    queue.enqueue = AsyncMock(return_value="task-1")
    queue.close = AsyncMock()
    return queue


@pytest.fixture
def relay_client():
    client = MagicMock()
    client.post = AsyncMock(return_value=200)
    return client


@pytest_asyncio.fixture
async def client(db_session, completion_provider, recording_queue, relay_client):
    """Create test client with database session and provider overrides"""
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    # Override the session dependency to use test session
    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_task_queue] = lambda: recording_queue
    app.dependency_overrides[get_completion_provider] = lambda: completion_provider
    app.dependency_overrides[get_job_providers] = lambda: {"gamma": MagicMock(), "replicate": MagicMock()}
    app.dependency_overrides[get_relay_client] = lambda: relay_client

    # Use ASGITransport for httpx AsyncClient
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
