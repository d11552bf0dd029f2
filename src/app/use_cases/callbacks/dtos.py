from typing import Optional
from pydantic import BaseModel
from src.domain.completion import CompletionOutcome


class ParsedCallback(BaseModel):
    """Callback body reduced to correlation id + outcome"""

    request_id: Optional[str] = None
    outcome: CompletionOutcome


class CallbackResponseDTO(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
