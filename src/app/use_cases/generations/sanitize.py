"""Credential scrubbing for provider error messages"""

import re
from typing import Iterable

MAX_ERROR_LENGTH = 500
REDACTED = "[REDACTED]"

AUTH_SCHEME_PATTERN = re.compile(r"(Bearer|Basic)\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE)
BOT_TOKEN_PATTERN = re.compile(r"/bot\d+:[A-Za-z0-9_-]+")
KEY_VALUE_PATTERN = re.compile(
    r"((?:api[_-]?key|access[_-]?token|token|secret|password|authorization)[\"']?\s*[:=]\s*[\"']?)[^\s\"',}&]+",
    re.IGNORECASE,
)


def sanitize_error(message: str, secrets: Iterable[str] = ()) -> str:
    """Strip credentials from an error message before it is stored or returned"""
    sanitized = message or "Unknown provider error"
    for secret in secrets:
        if secret:
            sanitized = sanitized.replace(secret, REDACTED)

    sanitized = AUTH_SCHEME_PATTERN.sub(lambda m: f"{m.group(1)} {REDACTED}", sanitized)
    sanitized = BOT_TOKEN_PATTERN.sub(f"/bot{REDACTED}", sanitized)
    sanitized = KEY_VALUE_PATTERN.sub(lambda m: f"{m.group(1)}{REDACTED}", sanitized)

    if len(sanitized) > MAX_ERROR_LENGTH:
        sanitized = sanitized[: MAX_ERROR_LENGTH - 3] + "..."
    return sanitized
