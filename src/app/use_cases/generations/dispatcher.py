"""Generation Dispatcher

Routes a freshly created request to the component that will produce it.
"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.domain.completion import CompletionFailure
from src.domain.generation_request import GenerationRequest
from src.domain.generation_type import ExecutionStrategy, get_generation_type
from .completion_applier import CompletionApplier
from .direct_executor import DirectExecutor
from .polling_monitor import PollingMonitor
from .sanitize import sanitize_error
from .webhook_relay import WebhookRelay

logger = logging.getLogger(__name__)


def resolve_strategy(generation_type: str) -> Optional[ExecutionStrategy]:
    """Execution strategy of a generation type, None if the type is unknown"""
    gen_type = get_generation_type(generation_type)
    return gen_type.strategy if gen_type else None


class GenerationDispatcher:

    def __init__(
        self,
        direct_executor: DirectExecutor,
        webhook_relay: WebhookRelay,
        polling_monitor: PollingMonitor,
        applier: CompletionApplier,
    ):
        self.direct_executor = direct_executor
        self.webhook_relay = webhook_relay
        self.polling_monitor = polling_monitor
        self.applier = applier

    async def dispatch(self, request: GenerationRequest) -> Result:
        strategy = resolve_strategy(request.type)
        if strategy is None:
            return Return.err(
                Error(
                    code="UNSUPPORTED_GENERATION_TYPE",
                    message=f"Unsupported generation type: {request.type}",
                )
            )

        logger.info(f"Dispatching generation {request.id} ({request.type}) via {strategy.value}")
        try:
            if strategy == ExecutionStrategy.DIRECT:
                return await self.direct_executor.execute(request)
            if strategy == ExecutionStrategy.RELAY:
                return await self.webhook_relay.dispatch(request)
            return await self.polling_monitor.start(request)
        except Exception as e:
            error = sanitize_error(str(e) or type(e).__name__)
            logger.error(f"Dispatch of {request.id} failed: {error}")
            return await self.applier.apply(
                request.id, CompletionFailure(error=error, code="DISPATCH_ERROR")
            )
