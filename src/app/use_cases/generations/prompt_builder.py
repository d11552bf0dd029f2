"""Prompt construction for direct generations

Maps a generation type and its params to chat messages or an image prompt.
Content templates are owned by product; this keeps a plain default for
every type.
"""

import json
from typing import Any, Dict, List

SYSTEM_PROMPTS = {
    "worksheet": "You are an experienced teacher. Create a printable worksheet with tasks and an answer key.",
    "quiz": "You are an experienced teacher. Create a quiz with questions, answer options and correct answers.",
    "vocabulary": "You are a language teacher. Create a vocabulary list with definitions and usage examples.",
    "lesson-plan": "You are a methodologist. Create a structured lesson plan with goals, stages and timing.",
    "content-adaptation": "You are a teacher. Adapt the given material to the requested level and audience.",
    "message": "You help teachers write clear, polite messages to parents and students.",
    "feedback": "You are a teacher. Write constructive feedback on the student's work.",
}
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant for teachers."
PROMPT_FIELDS = ("prompt", "text", "inputText", "topic", "content")


class PromptBuilder:

    def build_messages(self, generation_type: str, params: Dict[str, Any]) -> List[Dict[str, str]]:
        messages = params.get("messages")
        if isinstance(messages, list) and messages:
            return [{"role": str(m.get("role", "user")), "content": str(m.get("content", ""))} for m in messages]

        return [
            {"role": "system", "content": SYSTEM_PROMPTS.get(generation_type, DEFAULT_SYSTEM_PROMPT)},
            {"role": "user", "content": self._describe(params)},
        ]

    def build_image_prompt(self, generation_type: str, params: Dict[str, Any]) -> str:
        prompt = self._describe(params)
        if params.get("style"):
            prompt += f"\nStyle: {params['style']}"
        return prompt

    @staticmethod
    def _describe(params: Dict[str, Any]) -> str:
        main = next((params[field] for field in PROMPT_FIELDS if params.get(field)), None)
        rest = {
            key: value
            for key, value in params.items()
            if key not in PROMPT_FIELDS and key not in ("messages", "style") and value not in (None, "")
        }
        parts = [str(main)] if main else []
        parts.extend(f"{key}: {value}" for key, value in rest.items())
        return "\n".join(parts) if parts else json.dumps(params, ensure_ascii=False)
