from .handle_callback import HandleCallback
from .parse_callback import InvalidCallbackError, callback_kind, parse_callback_payload
from .dtos import ParsedCallback, CallbackResponseDTO

__all__ = [
    "HandleCallback",
    "InvalidCallbackError",
    "callback_kind",
    "parse_callback_payload",
    "ParsedCallback",
    "CallbackResponseDTO",
]
