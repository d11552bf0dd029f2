"""Request and response schemas for the Generation API

Pydantic models for validating incoming HTTP requests and shaping the
camelCase responses the web and bot clients read.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from src.domain.generation_request import GenerationStatus
from src.domain.user_generation import RequestOrigin


class GenerationRequestSchema(BaseModel):
    """
    Request schema for starting a generation

    Used for POST /generate (type in the body) and POST /generate/{type}.
    """

    user_id: Optional[str] = Field(
        default=None,
        description="Owner, used only when the X-User-Id header is absent"
    )

    type: Optional[str] = Field(
        default=None,
        description="Generation type (required for POST /generate)"
    )

    params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Type-specific input parameters"
    )

    model: Optional[str] = Field(
        default=None,
        description="Model override"
    )

    origin: RequestOrigin = Field(
        default=RequestOrigin.WEB,
        description="Channel the request came from"
    )

    chat_id: Optional[str] = Field(
        default=None,
        description="Chat to deliver the result to (telegram origin)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "type": "worksheet",
                "params": {"subject": "math", "topic": "fractions", "level": "5"},
                "origin": "web"
            }
        }


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GenerationResponseSchema(_CamelModel):
    success: bool = True
    request_id: str = Field(..., alias="requestId")
    status: GenerationStatus
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")


class GenerationHistoryItemSchema(_CamelModel):
    request_id: str = Field(..., alias="requestId")
    type: str
    status: GenerationStatus
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    model: str
    origin: RequestOrigin
    delivered: bool
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class GenerationHistoryResponseSchema(_CamelModel):
    success: bool = True
    items: List[GenerationHistoryItemSchema]
    total: int
    limit: int
    offset: int


class WebhookResponseSchema(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
