from .unit_of_work import UnitOfWork
from .task_queue import TaskQueue, TaskOptions
from .delivery_channel import DeliveryChannel, DeliveryChannelError
from .providers import (
    CompletionProvider,
    JobProvider,
    WebhookRelayClient,
    ExternalJob,
    ProviderError,
    ProviderTransientError,
    ProviderRequestError,
)

__all__ = [
    "UnitOfWork",
    "TaskQueue",
    "TaskOptions",
    "DeliveryChannel",
    "DeliveryChannelError",
    "CompletionProvider",
    "JobProvider",
    "WebhookRelayClient",
    "ExternalJob",
    "ProviderError",
    "ProviderTransientError",
    "ProviderRequestError",
]
