"""Shared base for persisted domain entities"""

from uuid import uuid4
from sqlalchemy import BigInteger, Integer
from sqlmodel import SQLModel

# SQLite only auto-increments INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer(), "sqlite")


class BaseModel(SQLModel):
    pass


def generate_uuid() -> str:
    return str(uuid4())
