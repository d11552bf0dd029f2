import logging
from contextlib import asynccontextmanager
import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.error import ClientError
from src.api.middleware import LoggingMiddleware
from src.api.routes import credits, generations, webhooks
from src.depends import (
    AsyncSessionLocal,
    create_task_queue,
    get_delivery_channel,
    get_job_providers,
    get_relay_client,
)
from src.worker.handlers import GenerationTaskHandlers

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(config) -> FastAPI:
    configure_logging(config.LOG_LEVEL)

    if config.ENABLE_SENTRY and config.DSN_SENTRY:
        sentry_sdk.init(dsn=config.DSN_SENTRY, environment=config.SENTRY_ENVIRONMENT)
        logger.info("Sentry error tracking initialized")

    task_queue = create_task_queue(config)
    if config.QUEUE_BACKEND != "redis":
        # Without a separate worker process, queued work runs inside the API process
        GenerationTaskHandlers(
            session_factory=AsyncSessionLocal,
            task_queue=task_queue,
            job_providers=get_job_providers(),
            relay_client=get_relay_client(),
            delivery_channel=get_delivery_channel(),
        ).register()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.task_queue.close()

    app = FastAPI(
        title="Generation Orchestration Service",
        description="Credit-metered generation requests dispatched to AI providers and automation pipelines",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.task_queue = task_queue

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if config.ENABLE_LOGGING_MIDDLEWARE:
        app.add_middleware(LoggingMiddleware)

    @app.exception_handler(ClientError)
    async def client_error_handler(request: Request, exc: ClientError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    app.include_router(generations.router, prefix=config.API_PREFIX)
    app.include_router(webhooks.router, prefix=config.API_PREFIX)
    app.include_router(credits.router, prefix=config.API_PREFIX)

    @app.get("/health")
    async def health():
        return {"status": "ok", "queue_backend": config.QUEUE_BACKEND}

    return app
