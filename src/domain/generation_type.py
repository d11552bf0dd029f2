"""Generation type catalogue

Static description of every supported generation type: how it is priced,
which execution strategy produces it and which model it defaults to.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class ExecutionStrategy(str, Enum):
    """How a generation is produced"""
    DIRECT = "direct"      # synchronous provider call
    RELAY = "relay"        # fire-and-forget webhook to an automation pipeline
    POLLING = "polling"    # external job API, rechecked by delayed tasks


class OutputKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    DOCUMENT = "document"


@dataclass(frozen=True)
class GenerationTypeSpec:
    name: str
    operation_type: str
    strategy: ExecutionStrategy
    default_model: str
    output_kind: OutputKind = OutputKind.TEXT
    relay_path: Optional[str] = None
    job_provider: Optional[str] = None
    polling_queue: Optional[str] = None


def _text(name: str, operation_type: str) -> GenerationTypeSpec:
    return GenerationTypeSpec(name, operation_type, ExecutionStrategy.DIRECT, "GigaChat-2-Max")


def _image(name: str, operation_type: str) -> GenerationTypeSpec:
    return GenerationTypeSpec(
        name, operation_type, ExecutionStrategy.DIRECT, "GigaChat-2-Max", output_kind=OutputKind.IMAGE
    )


GENERATION_TYPES: Dict[str, GenerationTypeSpec] = {
    gen_type.name: gen_type
    for gen_type in (
        _text("worksheet", "worksheet"),
        _text("quiz", "quiz"),
        _text("vocabulary", "vocabulary"),
        _text("lesson-plan", "lesson_plan"),
        _text("content-adaptation", "content_adaptation"),
        _text("message", "message"),
        _text("feedback", "feedback"),
        _text("gigachat-chat", "gigachat_text"),
        _image("image", "image_generation"),
        _image("photosession", "photosession"),
        _image("gigachat-image", "gigachat_image"),
        GenerationTypeSpec(
            "transcription",
            "transcription",
            ExecutionStrategy.RELAY,
            "Whisper AI",
            relay_path="transcribe-video",
        ),
        GenerationTypeSpec(
            "video-analysis",
            "video_analysis",
            ExecutionStrategy.RELAY,
            "claude-3.5-sonnet",
            relay_path="analyze-video",
        ),
        GenerationTypeSpec(
            "presentation",
            "presentation",
            ExecutionStrategy.POLLING,
            "Gamma AI",
            output_kind=OutputKind.DOCUMENT,
            job_provider="gamma",
            polling_queue="gamma-polling",
        ),
        GenerationTypeSpec(
            "lesson-preparation",
            "lesson_preparation",
            ExecutionStrategy.POLLING,
            "claude-3.5-sonnet",
            job_provider="replicate",
            polling_queue="long-form-polling",
        ),
    )
}


def get_generation_type(name: str) -> Optional[GenerationTypeSpec]:
    return GENERATION_TYPES.get(name)
