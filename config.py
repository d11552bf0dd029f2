import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./generations.db")
    REDIS_URL = data.get("REDIS_URL", "redis://localhost:6379/0")
    API_PREFIX = data.get("API_PREFIX", "")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENVIRONMENT = data.get("ENVIRONMENT", "development")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Task queue
    QUEUE_BACKEND = data.get("QUEUE_BACKEND", "memory")  # memory | redis
    QUEUE_CONCURRENCY = data.get(
        "QUEUE_CONCURRENCY",
        {
            "webhook-relay": 8,
            "gamma-polling": 4,
            "long-form-polling": 1,  # sub-steps of one long-form job must not interleave
            "delivery": 4,
        },
    )

    # Credit ledger
    DEFAULT_OPERATION_COST = data.get("DEFAULT_OPERATION_COST", 1)
    DEFAULT_PLAN_KEY = data.get("DEFAULT_PLAN_KEY", "starter")

    # Webhook relay and inbound callbacks
    API_URL = data.get("API_URL", "http://localhost:8000")
    N8N_WEBHOOK_URL = data.get("N8N_WEBHOOK_URL", "http://localhost:5678/webhook")
    WEBHOOK_RELAY_TIMEOUT_SECONDS = data.get("WEBHOOK_RELAY_TIMEOUT_SECONDS", 10.0)
    WEBHOOK_SECRET = data.get("WEBHOOK_SECRET", None)
    WEBHOOK_ALLOWED_IPS = data.get("WEBHOOK_ALLOWED_IPS", "")
    # Only enable behind a reverse proxy that overwrites X-Forwarded-For
    WEBHOOK_TRUST_PROXY_HEADERS = data.get("WEBHOOK_TRUST_PROXY_HEADERS", False)
    RELAY_CALLBACK_TIMEOUT_HOURS = data.get("RELAY_CALLBACK_TIMEOUT_HOURS", 6)  # 0 disables the watchdog
    RELAY_WATCHDOG_INTERVAL_SECONDS = data.get("RELAY_WATCHDOG_INTERVAL_SECONDS", 600)

    # Polling monitor
    POLL_INTERVAL_SECONDS = data.get("POLL_INTERVAL_SECONDS", 5)
    POLL_MAX_ATTEMPTS = data.get("POLL_MAX_ATTEMPTS", 120)  # 120 * 5s = 10 minutes
    POLL_TRANSIENT_RETRIES = data.get("POLL_TRANSIENT_RETRIES", 5)
    POLL_TRANSIENT_BASE_DELAY_SECONDS = data.get("POLL_TRANSIENT_BASE_DELAY_SECONDS", 2)
    # Pending polling requests older than interval * attempts + margin are failed by the watchdog
    POLL_STALE_MARGIN_SECONDS = data.get("POLL_STALE_MARGIN_SECONDS", 600)

    # Delivery worker
    DELIVERY_MAX_ATTEMPTS = data.get("DELIVERY_MAX_ATTEMPTS", 3)
    DELIVERY_BACKOFF_SECONDS = data.get("DELIVERY_BACKOFF_SECONDS", 2)
    DELIVERY_TEXT_LIMIT = data.get("DELIVERY_TEXT_LIMIT", 4000)
    APP_RESULT_URL = data.get("APP_RESULT_URL", "")
    TELEGRAM_BOT_TOKEN = data.get("TELEGRAM_BOT_TOKEN", None)
    TELEGRAM_API_BASE_URL = data.get("TELEGRAM_API_BASE_URL", "https://api.telegram.org")

    # Providers
    PROVIDER_TIMEOUT_SECONDS = data.get("PROVIDER_TIMEOUT_SECONDS", 120.0)
    GIGACHAT_AUTH_TOKEN = data.get("GIGACHAT_AUTH_TOKEN", None)
    GIGACHAT_OAUTH_URL = data.get("GIGACHAT_OAUTH_URL", "https://ngw.devices.sberbank.ru:9443/api/v2/oauth")
    GIGACHAT_API_URL = data.get("GIGACHAT_API_URL", "https://gigachat.devices.sberbank.ru/api/v1")
    GIGACHAT_SCOPE = data.get("GIGACHAT_SCOPE", "GIGACHAT_API_PERS")
    GIGACHAT_TEXT_MODEL = data.get("GIGACHAT_TEXT_MODEL", "GigaChat-2-Max")
    GIGACHAT_IMAGE_MODEL = data.get("GIGACHAT_IMAGE_MODEL", "GigaChat-2-Max")
    GIGACHAT_VERIFY_SSL = bool(data.get("GIGACHAT_VERIFY_SSL", 1))
    GAMMA_API_KEY = data.get("GAMMA_API_KEY", None)
    GAMMA_API_BASE_URL = data.get("GAMMA_API_BASE_URL", "https://public-api.gamma.app/v1.0")
    REPLICATE_API_TOKEN = data.get("REPLICATE_API_TOKEN", None)
    REPLICATE_API_BASE_URL = data.get("REPLICATE_API_BASE_URL", "https://api.replicate.com/v1")
    REPLICATE_LONG_FORM_MODEL = data.get("REPLICATE_LONG_FORM_MODEL", "anthropic/claude-3.5-sonnet")
