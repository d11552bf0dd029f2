"""Generation Request Domain Entity

Canonical lifecycle record of one "produce content" request.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import JSON, String, Text
from src.domain.base import BaseModel, generate_uuid


class GenerationStatus(str, Enum):
    """Lifecycle status"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not GenerationStatus.PENDING


class GenerationRequest(BaseModel, table=True):
    """
    Generation Request - canonical record

    Domain Rules:
    - Created pending, only after the credit debit succeeded
    - Moves to completed/failed exactly once (compare-and-set on status)
    - Never leaves a terminal status
    - result may be written while pending by the progress path
    - Every write is mirrored into UserGeneration in the same transaction
    """

    __tablename__ = "generation_requests"
    __table_args__ = (
        Index('ix_generation_requests_user_created', 'user_id', 'created_at'),
        Index('ix_generation_requests_status', 'status'),
    )

    id: str = Field(
        default_factory=generate_uuid,
        sa_column=Column(String(36), primary_key=True),
        description="Request identifier, echoed back by callbacks"
    )

    user_id: str = Field(
        index=True,
        description="Owner of the request"
    )

    type: str = Field(
        sa_column=Column(String(50), nullable=False),
        description="Generation type (e.g. 'worksheet', 'presentation')"
    )

    status: GenerationStatus = Field(
        default=GenerationStatus.PENDING,
        description="pending, completed or failed"
    )

    params: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
        description="Input parameters"
    )

    result: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
        description="Output payload (partial while pending)"
    )

    error: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
        description="Sanitized failure detail"
    )

    model: str = Field(
        sa_column=Column(String(100), nullable=False),
        description="Model or backend that produces the content"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
