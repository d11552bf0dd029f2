"""Completion outcomes

The two values a completion channel (direct return, callback, polling check)
can hand to the Completion Applier.
"""

from typing import Any, Dict, Literal, Union
from pydantic import BaseModel, Field


class CompletionSuccess(BaseModel):
    kind: Literal["success"] = "success"
    result: Dict[str, Any] = Field(default_factory=dict)


class CompletionFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    error: str
    code: str = "PROVIDER_ERROR"


CompletionOutcome = Union[CompletionSuccess, CompletionFailure]
