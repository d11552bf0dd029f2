"""Background workers for the generation service"""
from .handlers import GenerationTaskHandlers

__all__ = ["GenerationTaskHandlers"]
