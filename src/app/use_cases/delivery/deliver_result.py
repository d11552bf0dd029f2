"""DeliverResult Use Case

Pushes a completed result to the secondary channel the request came from.
Runs in the `delivery` queue with a retry policy; a send failure is raised
so the queue retries it.
"""

import json
import logging
from typing import Any, Dict, Optional
from pydantic import BaseModel
from libs.result import Result, Return
from src.app.repositories.generation_request_repository import GenerationRequestRepository
from src.app.services.delivery_channel import DeliveryChannel
from src.app.services.unit_of_work import UnitOfWork
from src.domain.generation_request import GenerationStatus
from src.domain.generation_type import OutputKind, get_generation_type
from src.domain.user_generation import UserGeneration

logger = logging.getLogger(__name__)

TRUNCATION_SUFFIX = "\n\n… see full result in app"


class DeliveryFailure(Exception):
    """Send to the delivery channel failed; the task should be retried"""


class DeliveryResultDTO(BaseModel):
    delivered: bool
    reason: Optional[str] = None


class RenderedMessage(BaseModel):
    """What to send: kind is 'text', 'media' or 'document'"""

    kind: str
    body: str
    caption: Optional[str] = None


def render_result(
    projection: UserGeneration,
    text_limit: int = 4000,
    app_result_url: str = "",
) -> RenderedMessage:
    """Pick the message shape for a result"""
    result: Dict[str, Any] = projection.output_data or {}
    gen_type = get_generation_type(projection.generation_type)
    output_kind = gen_type.output_kind if gen_type else OutputKind.TEXT
    caption = f"Your {projection.generation_type} is ready"

    image_url = result.get("imageUrl")
    if image_url and output_kind == OutputKind.IMAGE:
        return RenderedMessage(kind="media", body=image_url, caption=caption)

    document_url = result.get("pdfUrl") or result.get("pptxUrl")
    if document_url:
        return RenderedMessage(kind="document", body=document_url, caption=caption)

    if image_url:
        return RenderedMessage(kind="media", body=image_url, caption=caption)

    content = next(
        (result[field] for field in ("content", "transcription", "result", "gammaUrl") if result.get(field)),
        None,
    )
    if content is None:
        content = result
    text = content if isinstance(content, str) else json.dumps(content, ensure_ascii=False, indent=2)

    if len(text) > text_limit:
        suffix = TRUNCATION_SUFFIX
        if app_result_url:
            suffix += f": {app_result_url.rstrip('/')}/{projection.generation_request_id}"
        text = text[: max(0, text_limit - len(suffix))] + suffix

    return RenderedMessage(kind="text", body=text)


class DeliverResult:
    """
    Use Case: Deliver a completed result

    Business Rules:
    1. No-op unless the request is completed, came from a delivery-capable
       origin and was not delivered yet
    2. The delivered flag is claimed (false -> true) before sending, so two
       workers never both send; any failed send releases the claim
    3. Send failure raises DeliveryFailure for the queue's retry policy
    """

    def __init__(
        self,
        uow: UnitOfWork,
        generation_repo: GenerationRequestRepository,
        channel: DeliveryChannel,
        text_limit: int = 4000,
        app_result_url: str = "",
    ):
        self.uow = uow
        self.generation_repo = generation_repo
        self.channel = channel
        self.text_limit = text_limit
        self.app_result_url = app_result_url

    async def execute(self, request_id: str) -> Result[DeliveryResultDTO]:
        projection = await self.generation_repo.get_projection(request_id)

        if projection is None:
            logger.warning(f"Delivery requested for unknown generation {request_id}")
            return Return.ok(DeliveryResultDTO(delivered=False, reason="not_found"))
        if not projection.supports_delivery:
            return Return.ok(DeliveryResultDTO(delivered=False, reason="no_delivery_channel"))
        if projection.status != GenerationStatus.COMPLETED:
            return Return.ok(DeliveryResultDTO(delivered=False, reason="not_completed"))
        if projection.delivered:
            return Return.ok(DeliveryResultDTO(delivered=False, reason="already_delivered"))

        message = render_result(projection, self.text_limit, self.app_result_url)
        chat_id = projection.chat_id

        claimed = await self.generation_repo.mark_delivered(request_id)
        if not claimed:
            await self.uow.rollback()
            return Return.ok(DeliveryResultDTO(delivered=False, reason="already_delivered"))
        await self.uow.commit()

        try:
            if message.kind == "media":
                await self.channel.send_media(chat_id, message.body, message.caption)
            elif message.kind == "document":
                await self.channel.send_document(chat_id, message.body, message.caption)
            else:
                await self.channel.send_text(chat_id, message.body)
        except Exception as e:
            # nothing was confirmed sent, release the claim for the retry
            await self.generation_repo.clear_delivered(request_id)
            await self.uow.commit()
            raise DeliveryFailure(f"Delivery of {request_id} to chat {chat_id} failed: {e}") from e

        logger.info(f"Generation {request_id} delivered to chat {chat_id} as {message.kind}")
        return Return.ok(DeliveryResultDTO(delivered=True))
