from .deliver_result import (
    DeliverResult,
    DeliveryFailure,
    DeliveryResultDTO,
    RenderedMessage,
    render_result,
)

__all__ = [
    "DeliverResult",
    "DeliveryFailure",
    "DeliveryResultDTO",
    "RenderedMessage",
    "render_result",
]
