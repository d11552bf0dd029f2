from functools import lru_cache
from typing import Dict
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.providers import (
    GammaJobProvider,
    GigaChatCompletionProvider,
    HttpWebhookRelayClient,
    LoggingDeliveryChannel,
    ReplicateJobProvider,
    TelegramDeliveryChannel,
)
from src.adapter.repositories import (
    SqlAlchemyCreditCostRepository,
    SqlAlchemyCreditLedgerRepository,
    SqlAlchemyCreditTransactionRepository,
    SqlAlchemyGenerationRequestRepository,
    SqlAlchemySubscriptionPlanRepository,
)
from src.adapter.services.task_queue import InMemoryTaskQueue, RedisTaskQueue
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services import CompletionProvider, DeliveryChannel, JobProvider, TaskQueue, WebhookRelayClient
from src.app.use_cases.callbacks import HandleCallback
from src.app.use_cases.credits import CheckAndDebitCredits, CheckCredits, DebitCredits
from src.app.use_cases.delivery import DeliverResult
from src.app.use_cases.generations import (
    CompletionApplier,
    CreateGeneration,
    DirectExecutor,
    ExpireStaleRelays,
    GenerationDispatcher,
    PollingMonitor,
    UpdateGenerationProgress,
    WebhookRelay,
)

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


# ---------------------------------------------------------------------------
# External services (one instance per process)
# ---------------------------------------------------------------------------

@lru_cache()
def get_completion_provider() -> CompletionProvider:
    return GigaChatCompletionProvider(
        auth_token=ApplicationConfig.GIGACHAT_AUTH_TOKEN,
        oauth_url=ApplicationConfig.GIGACHAT_OAUTH_URL,
        api_url=ApplicationConfig.GIGACHAT_API_URL,
        scope=ApplicationConfig.GIGACHAT_SCOPE,
        timeout=ApplicationConfig.PROVIDER_TIMEOUT_SECONDS,
        verify=ApplicationConfig.GIGACHAT_VERIFY_SSL,
    )


@lru_cache()
def get_job_providers() -> Dict[str, JobProvider]:
    return {
        "gamma": GammaJobProvider(
            api_key=ApplicationConfig.GAMMA_API_KEY,
            base_url=ApplicationConfig.GAMMA_API_BASE_URL,
        ),
        "replicate": ReplicateJobProvider(
            api_token=ApplicationConfig.REPLICATE_API_TOKEN,
            base_url=ApplicationConfig.REPLICATE_API_BASE_URL,
            model=ApplicationConfig.REPLICATE_LONG_FORM_MODEL,
        ),
    }


@lru_cache()
def get_relay_client() -> WebhookRelayClient:
    return HttpWebhookRelayClient(timeout=ApplicationConfig.WEBHOOK_RELAY_TIMEOUT_SECONDS)


@lru_cache()
def get_delivery_channel() -> DeliveryChannel:
    if ApplicationConfig.TELEGRAM_BOT_TOKEN:
        return TelegramDeliveryChannel(
            bot_token=ApplicationConfig.TELEGRAM_BOT_TOKEN,
            api_base_url=ApplicationConfig.TELEGRAM_API_BASE_URL,
        )
    return LoggingDeliveryChannel()


def provider_secrets():
    return (
        ApplicationConfig.GIGACHAT_AUTH_TOKEN,
        ApplicationConfig.GAMMA_API_KEY,
        ApplicationConfig.REPLICATE_API_TOKEN,
        ApplicationConfig.TELEGRAM_BOT_TOKEN,
        ApplicationConfig.WEBHOOK_SECRET,
    )


def create_task_queue(config=ApplicationConfig) -> TaskQueue:
    if config.QUEUE_BACKEND == "redis":
        return RedisTaskQueue(config.REDIS_URL, concurrency=config.QUEUE_CONCURRENCY)
    return InMemoryTaskQueue(concurrency=config.QUEUE_CONCURRENCY)


def get_task_queue(request: Request) -> TaskQueue:
    return request.app.state.task_queue


# ---------------------------------------------------------------------------
# Use case assembly, shared by routes and queue handlers
# ---------------------------------------------------------------------------

def build_completion_applier(session: AsyncSession, task_queue: TaskQueue) -> CompletionApplier:
    return CompletionApplier(
        uow=SqlAlchemyUnitOfWork(session),
        generation_repo=SqlAlchemyGenerationRequestRepository(session),
        task_queue=task_queue,
        delivery_max_attempts=ApplicationConfig.DELIVERY_MAX_ATTEMPTS,
        delivery_backoff_seconds=ApplicationConfig.DELIVERY_BACKOFF_SECONDS,
    )


def build_check_and_debit(session: AsyncSession) -> CheckAndDebitCredits:
    ledger_repo = SqlAlchemyCreditLedgerRepository(session)
    plan_repo = SqlAlchemySubscriptionPlanRepository(session)
    cost_repo = SqlAlchemyCreditCostRepository(session)
    default_cost = ApplicationConfig.DEFAULT_OPERATION_COST
    return CheckAndDebitCredits(
        check_credits=CheckCredits(ledger_repo, plan_repo, cost_repo, default_cost=default_cost),
        debit_credits=DebitCredits(
            uow=SqlAlchemyUnitOfWork(session),
            ledger_repo=ledger_repo,
            plan_repo=plan_repo,
            cost_repo=cost_repo,
            transaction_repo=SqlAlchemyCreditTransactionRepository(session),
            default_cost=default_cost,
        ),
    )


def build_webhook_relay(
    session: AsyncSession, task_queue: TaskQueue, relay_client: WebhookRelayClient
) -> WebhookRelay:
    return WebhookRelay(
        generation_repo=SqlAlchemyGenerationRequestRepository(session),
        task_queue=task_queue,
        relay_client=relay_client,
        applier=build_completion_applier(session, task_queue),
        relay_base_url=ApplicationConfig.N8N_WEBHOOK_URL,
        callback_base_url=f"{ApplicationConfig.API_URL.rstrip('/')}{ApplicationConfig.API_PREFIX}",
    )


def build_polling_monitor(
    session: AsyncSession, task_queue: TaskQueue, job_providers: Dict[str, JobProvider]
) -> PollingMonitor:
    generation_repo = SqlAlchemyGenerationRequestRepository(session)
    return PollingMonitor(
        generation_repo=generation_repo,
        task_queue=task_queue,
        job_providers=job_providers,
        applier=build_completion_applier(session, task_queue),
        progress=UpdateGenerationProgress(SqlAlchemyUnitOfWork(session), generation_repo),
        poll_interval_seconds=ApplicationConfig.POLL_INTERVAL_SECONDS,
        max_attempts=ApplicationConfig.POLL_MAX_ATTEMPTS,
        transient_retries=ApplicationConfig.POLL_TRANSIENT_RETRIES,
        transient_base_delay_seconds=ApplicationConfig.POLL_TRANSIENT_BASE_DELAY_SECONDS,
    )


def build_create_generation(
    session: AsyncSession,
    task_queue: TaskQueue,
    completion_provider: CompletionProvider,
    job_providers: Dict[str, JobProvider],
    relay_client: WebhookRelayClient,
) -> CreateGeneration:
    applier = build_completion_applier(session, task_queue)
    dispatcher = GenerationDispatcher(
        direct_executor=DirectExecutor(completion_provider, applier, secrets=provider_secrets()),
        webhook_relay=build_webhook_relay(session, task_queue, relay_client),
        polling_monitor=build_polling_monitor(session, task_queue, job_providers),
        applier=applier,
    )
    return CreateGeneration(
        uow=SqlAlchemyUnitOfWork(session),
        check_and_debit=build_check_and_debit(session),
        generation_repo=SqlAlchemyGenerationRequestRepository(session),
        dispatcher=dispatcher,
    )


def build_handle_callback(session: AsyncSession, task_queue: TaskQueue) -> HandleCallback:
    return HandleCallback(
        generation_repo=SqlAlchemyGenerationRequestRepository(session),
        applier=build_completion_applier(session, task_queue),
    )


def build_deliver_result(session: AsyncSession, channel: DeliveryChannel) -> DeliverResult:
    return DeliverResult(
        uow=SqlAlchemyUnitOfWork(session),
        generation_repo=SqlAlchemyGenerationRequestRepository(session),
        channel=channel,
        text_limit=ApplicationConfig.DELIVERY_TEXT_LIMIT,
        app_result_url=ApplicationConfig.APP_RESULT_URL,
    )


def build_expire_stale_relays(session: AsyncSession, task_queue: TaskQueue) -> ExpireStaleRelays:
    return ExpireStaleRelays(
        generation_repo=SqlAlchemyGenerationRequestRepository(session),
        applier=build_completion_applier(session, task_queue),
        timeout_hours=ApplicationConfig.RELAY_CALLBACK_TIMEOUT_HOURS,
        poll_timeout_seconds=(
            ApplicationConfig.POLL_INTERVAL_SECONDS * ApplicationConfig.POLL_MAX_ATTEMPTS
            + ApplicationConfig.POLL_STALE_MARGIN_SECONDS
        ),
    )


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

async def get_create_generation(
    session: AsyncSession = Depends(get_session),
    task_queue: TaskQueue = Depends(get_task_queue),
    completion_provider: CompletionProvider = Depends(get_completion_provider),
    job_providers: Dict[str, JobProvider] = Depends(get_job_providers),
    relay_client: WebhookRelayClient = Depends(get_relay_client),
) -> CreateGeneration:
    return build_create_generation(session, task_queue, completion_provider, job_providers, relay_client)


async def get_handle_callback(
    session: AsyncSession = Depends(get_session),
    task_queue: TaskQueue = Depends(get_task_queue),
) -> HandleCallback:
    return build_handle_callback(session, task_queue)
