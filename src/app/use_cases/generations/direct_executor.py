"""Direct Executor

Runs synchronous generations (text and image) inside the admission call and
hands the outcome straight to the Completion Applier.
"""

import logging
from typing import Iterable
from libs.result import Result, Return, Error
from src.app.services.providers import CompletionProvider, ProviderRequestError
from src.domain.completion import CompletionFailure, CompletionSuccess
from src.domain.generation_request import GenerationRequest
from src.domain.generation_type import OutputKind, get_generation_type
from .completion_applier import CompletionApplier
from .dtos import ApplyResultDTO
from .prompt_builder import PromptBuilder
from .sanitize import sanitize_error

logger = logging.getLogger(__name__)


class DirectExecutor:
    """
    Use Case: Execute a generation synchronously

    Business Rules:
    1. Text output is stored as {"content": ...}, images as {"imageUrl": ...}
    2. Empty or malformed provider output is a PROVIDER_ERROR failure
    3. Stored errors never contain credentials
    """

    def __init__(
        self,
        completion_provider: CompletionProvider,
        applier: CompletionApplier,
        prompt_builder: PromptBuilder = None,
        secrets: Iterable[str] = (),
    ):
        self.completion_provider = completion_provider
        self.applier = applier
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.secrets = tuple(secrets)

    async def execute(self, request: GenerationRequest) -> Result[ApplyResultDTO]:
        gen_type = get_generation_type(request.type)
        if gen_type is None:
            return Return.err(
                Error(
                    code="UNSUPPORTED_GENERATION_TYPE",
                    message=f"Unsupported generation type: {request.type}",
                )
            )

        try:
            if gen_type.output_kind == OutputKind.IMAGE:
                prompt = self.prompt_builder.build_image_prompt(request.type, request.params)
                image_url = await self.completion_provider.generate_image(request.model, prompt)
                if not isinstance(image_url, str) or not image_url:
                    raise ProviderRequestError("Provider returned no image")
                outcome = CompletionSuccess(result={"imageUrl": image_url, "prompt": prompt})
            else:
                messages = self.prompt_builder.build_messages(request.type, request.params)
                content = await self.completion_provider.complete_text(request.model, messages)
                if not isinstance(content, str) or not content.strip():
                    raise ProviderRequestError("Provider returned empty content")
                outcome = CompletionSuccess(result={"content": content})

        except Exception as e:
            error = sanitize_error(str(e) or type(e).__name__, self.secrets)
            logger.error(f"Direct generation {request.id} ({request.type}) failed: {error}")
            outcome = CompletionFailure(error=error, code="PROVIDER_ERROR")

        return await self.applier.apply(request.id, outcome)
