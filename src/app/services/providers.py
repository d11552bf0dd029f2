"""External provider interfaces

- CompletionProvider: synchronous chat/image completion APIs (Direct Executor)
- JobProvider: job-submission APIs with a separate status endpoint (Polling Monitor)
- WebhookRelayClient: no-code automation endpoints that call back later (Webhook Relay)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ProviderError(Exception):
    """Provider call failed"""


class ProviderTransientError(ProviderError):
    """Network failure, 5xx or rate limit: worth retrying"""


class ProviderRequestError(ProviderError):
    """Rejected request (4xx other than 429) or malformed payload: retrying will not help"""


class ExternalJob(BaseModel):
    """Job handle and state as reported by a job API"""

    id: str
    status: str
    output: Dict[str, Any] = Field(default_factory=dict)
    partial: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class CompletionProvider(ABC):

    @abstractmethod
    async def complete_text(self, model: str, messages: List[Dict[str, str]]) -> str:
        """Return the generated text"""
        pass

    @abstractmethod
    async def generate_image(self, model: str, prompt: str) -> str:
        """Return a URL (or data URL) of the generated image"""
        pass


class JobProvider(ABC):

    @abstractmethod
    async def submit(self, params: Dict[str, Any]) -> ExternalJob:
        """Start an external job"""
        pass

    @abstractmethod
    async def get_status(self, job_id: str) -> ExternalJob:
        """Fetch the job's current state"""
        pass

    @abstractmethod
    def classify(self, status: str) -> str:
        """Map a provider status to 'succeeded', 'failed', 'in_progress' or 'unknown'"""
        pass


class WebhookRelayClient(ABC):

    @abstractmethod
    async def post(self, url: str, payload: Dict[str, Any]) -> int:
        """
        POST the payload

        Returns:
            HTTP status code

        Raises:
            ProviderTransientError: on network failure
        """
        pass
