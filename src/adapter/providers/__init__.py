from .token_cache import TokenCache
from .gigachat_provider import GigaChatCompletionProvider
from .gamma_provider import GammaJobProvider
from .replicate_provider import ReplicateJobProvider
from .webhook_relay_client import HttpWebhookRelayClient
from .telegram_channel import TelegramDeliveryChannel, LoggingDeliveryChannel

__all__ = [
    "TokenCache",
    "GigaChatCompletionProvider",
    "GammaJobProvider",
    "ReplicateJobProvider",
    "HttpWebhookRelayClient",
    "TelegramDeliveryChannel",
    "LoggingDeliveryChannel",
]
