"""Credit Cost Domain Entity

Price list: credits charged per operation type.
"""

from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import Integer, String
from src.domain.base import BaseModel, IdType


class CreditCost(BaseModel, table=True):
    __tablename__ = "credit_costs"

    id: int = Field(
        default=None,
        sa_column=Column(IdType, primary_key=True, autoincrement=True),
    )

    operation_type: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Operation key (e.g. 'worksheet')"
    )

    operation_name: Optional[str] = Field(
        default=None,
        sa_column=Column(String(100), nullable=True),
    )

    credit_cost: int = Field(
        sa_column=Column(Integer, nullable=False),
        description="Credits charged per operation"
    )

    is_active: bool = Field(default=True)
