"""User Generation Domain Entity

Read-model projection of GenerationRequest kept for history readers and
secondary delivery. It is never written on its own: every status, result
or error change of the canonical record is mirrored here in the same
transaction.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import ForeignKey, JSON, String, Text
from src.domain.base import BaseModel, IdType
from src.domain.generation_request import GenerationStatus


class RequestOrigin(str, Enum):
    """Where the request came from"""
    WEB = "web"
    TELEGRAM = "telegram"


class UserGeneration(BaseModel, table=True):
    """
    User Generation - compatibility and delivery projection

    Domain Rules:
    - Exactly one per GenerationRequest (generation_request_id is unique)
    - status/output_data/error_message always equal the canonical record
    - delivered flips false -> true at most once
    """

    __tablename__ = "user_generations"
    __table_args__ = (
        Index('ix_user_generations_user_created', 'user_id', 'created_at'),
    )

    id: int = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    generation_request_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("generation_requests.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
    )

    user_id: str = Field(index=True)

    generation_type: str = Field(sa_column=Column(String(50), nullable=False))

    status: GenerationStatus = Field(default=GenerationStatus.PENDING)

    input_params: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    output_data: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    error_message: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    model: str = Field(sa_column=Column(String(100), nullable=False))

    origin: RequestOrigin = Field(
        default=RequestOrigin.WEB,
        description="Channel the request came from"
    )

    chat_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="Secondary delivery target (Telegram chat)"
    )

    delivered: bool = Field(default=False)

    delivered_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=datetime.utcnow)

    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def supports_delivery(self) -> bool:
        return self.origin == RequestOrigin.TELEGRAM and bool(self.chat_id)
