from .completion_applier import CompletionApplier
from .create_generation import CreateGeneration
from .direct_executor import DirectExecutor
from .dispatcher import GenerationDispatcher, resolve_strategy
from .expire_stale_relays import ExpireStaleRelays
from .get_generation_status import GetGenerationStatus
from .list_generations import ListGenerations
from .polling_monitor import PollingMonitor
from .prompt_builder import PromptBuilder
from .sanitize import sanitize_error
from .update_progress import UpdateGenerationProgress
from .webhook_relay import WebhookRelay
from .dtos import (
    CreateGenerationCommandDTO,
    GenerationCreatedDTO,
    GenerationStatusDTO,
    GenerationHistoryDTO,
    GenerationHistoryItemDTO,
    ApplyResultDTO,
    ExpireResultDTO,
)

__all__ = [
    "CompletionApplier",
    "CreateGeneration",
    "DirectExecutor",
    "GenerationDispatcher",
    "resolve_strategy",
    "ExpireStaleRelays",
    "GetGenerationStatus",
    "ListGenerations",
    "PollingMonitor",
    "PromptBuilder",
    "sanitize_error",
    "UpdateGenerationProgress",
    "WebhookRelay",
    "CreateGenerationCommandDTO",
    "GenerationCreatedDTO",
    "GenerationStatusDTO",
    "GenerationHistoryDTO",
    "GenerationHistoryItemDTO",
    "ApplyResultDTO",
    "ExpireResultDTO",
]
