"""Data Transfer Objects for Generation Use Cases"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from src.domain.generation_request import GenerationStatus
from src.domain.user_generation import RequestOrigin


class CreateGenerationCommandDTO(BaseModel):
    """
    Command DTO for creating a generation

    Used as input to CreateGeneration use case.
    """

    user_id: str = Field(
        ...,
        description="Authenticated owner of the request"
    )

    type: str = Field(
        ...,
        description="Generation type (e.g. 'worksheet', 'image', 'presentation')"
    )

    params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Type-specific input parameters"
    )

    model: Optional[str] = Field(
        default=None,
        description="Model override (defaults per generation type)"
    )

    origin: RequestOrigin = Field(
        default=RequestOrigin.WEB,
        description="Channel the request came from"
    )

    chat_id: Optional[str] = Field(
        default=None,
        description="Chat to deliver the result to (telegram origin only)"
    )


class GenerationCreatedDTO(BaseModel):
    """Outcome of admission + dispatch"""

    success: bool = True
    request_id: str
    status: GenerationStatus
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class GenerationStatusDTO(BaseModel):
    request_id: str
    type: str
    status: GenerationStatus
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    model: str
    created_at: datetime
    updated_at: datetime


class GenerationHistoryItemDTO(BaseModel):
    request_id: str
    type: str
    status: GenerationStatus
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    model: str
    origin: RequestOrigin
    delivered: bool
    created_at: datetime
    updated_at: datetime


class GenerationHistoryDTO(BaseModel):
    items: List[GenerationHistoryItemDTO]
    total: int
    limit: int
    offset: int


class ApplyResultDTO(BaseModel):
    """
    Completion Applier outcome

    applied=False means another channel completed the request first.
    """

    applied: bool
    status: GenerationStatus


class ExpireResultDTO(BaseModel):
    checked: int
    expired: int
