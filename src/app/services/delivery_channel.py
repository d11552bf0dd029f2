"""Delivery Channel Interface

Secondary channel that finished results are pushed to (e.g. a chat bot).
Failures are raised as DeliveryChannelError, never swallowed.
"""

from abc import ABC, abstractmethod
from typing import Optional


class DeliveryChannelError(Exception):
    """A send to the secondary channel failed"""


class DeliveryChannel(ABC):

    @abstractmethod
    async def send_text(self, chat_id: str, text: str) -> None:
        pass

    @abstractmethod
    async def send_media(self, chat_id: str, url: str, caption: Optional[str] = None) -> None:
        pass

    @abstractmethod
    async def send_document(self, chat_id: str, url: str, caption: Optional[str] = None) -> None:
        pass
