"""Inbound callback parsing

Automation pipelines post loosely shaped JSON. Parsing reduces every body to
a correlation id plus a CompletionSuccess/CompletionFailure before anything
touches storage.

Kinds:
    text          content | text | result
    image         imageUrl | image_url
    presentation  gammaUrl | pdfUrl | pptxUrl (and snake_case forms)
    transcription transcription | text
    generic       success/status flags, content from content | text | result | output
"""

import json
from datetime import datetime
from typing import Any, Dict, Optional
from src.domain.completion import CompletionFailure, CompletionSuccess
from src.domain.generation_type import GENERATION_TYPES, OutputKind
from .dtos import ParsedCallback

TEXT = "text"
IMAGE = "image"
PRESENTATION = "presentation"
TRANSCRIPTION = "transcription"
GENERIC = "generic"

ID_FIELDS = ("generationRequestId", "requestId", "id")
SERVICE_FIELDS = set(ID_FIELDS) | {"success", "error", "errorMessage", "webhook_secret", "status"}


class InvalidCallbackError(ValueError):
    """Body is not a JSON object (or a one-element list holding one)"""


def callback_kind(route_kind: str) -> Optional[str]:
    """Parsing family of a `/webhooks/{route_kind}-callback` route, None if unknown"""
    if route_kind == "n8n":
        return GENERIC
    if route_kind in (IMAGE, PRESENTATION, TRANSCRIPTION):
        return route_kind
    gen_type = GENERATION_TYPES.get(route_kind)
    if gen_type is None:
        return None
    if gen_type.output_kind == OutputKind.IMAGE:
        return IMAGE
    return TEXT


def _unwrap(body: Any) -> Dict[str, Any]:
    if isinstance(body, list) and len(body) == 1:
        body = body[0]
    if not isinstance(body, dict):
        raise InvalidCallbackError("Callback body must be a JSON object")
    return body


def _first(data: Dict[str, Any], *fields: str) -> Any:
    for field in fields:
        value = data.get(field)
        if value not in (None, ""):
            return value
    return None


def _decode_json_text(value: Any) -> Any:
    if isinstance(value, str) and value.strip()[:1] in ("{", "["):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def _completed_at() -> str:
    return datetime.utcnow().isoformat()


def _failure(data: Dict[str, Any], default: str) -> CompletionFailure:
    error = _first(data, "error", "errorMessage")
    return CompletionFailure(error=str(error) if error else default, code="PROVIDER_ERROR")


def _parse_text(data: Dict[str, Any], route_kind: str):
    content = _first(data, "content", "text", "result")
    if data.get("success") and content:
        return CompletionSuccess(
            result={"content": _decode_json_text(content), "type": route_kind, "completedAt": _completed_at()}
        )
    return _failure(data, "Unknown error from webhook")


def _parse_image(data: Dict[str, Any], route_kind: str):
    image_url = _first(data, "imageUrl", "image_url")
    if data.get("success") and image_url:
        return CompletionSuccess(
            result={
                "imageUrl": image_url,
                "prompt": data.get("prompt") or "N/A",
                "style": data.get("style") or "realistic",
                "type": data.get("type") or route_kind,
                "completedAt": _completed_at(),
            }
        )
    return _failure(data, "Unknown error from webhook")


def _parse_presentation(data: Dict[str, Any], route_kind: str):
    links = {
        "gammaUrl": _first(data, "gammaUrl", "gamma_url"),
        "pdfUrl": _first(data, "pdfUrl", "pdf_url"),
        "pptxUrl": _first(data, "pptxUrl", "pptx_url"),
    }
    if data.get("success") and any(links.values()):
        return CompletionSuccess(
            result={
                **{key: value for key, value in links.items() if value},
                "inputText": data.get("inputText") or "N/A",
                "themeName": data.get("themeName") or "N/A",
                "type": PRESENTATION,
                "completedAt": _completed_at(),
            }
        )
    return _failure(data, "Unknown error from webhook")


def _parse_transcription(data: Dict[str, Any], route_kind: str):
    transcription = _first(data, "transcription", "text")
    if data.get("success") and transcription:
        return CompletionSuccess(
            result={"transcription": transcription, "type": TRANSCRIPTION, "completedAt": _completed_at()}
        )
    return _failure(data, "Unknown error from webhook")


def _parse_generic(data: Dict[str, Any], route_kind: str):
    succeeded = data.get("success") is not False
    error = _first(data, "error", "errorMessage")

    status = data.get("status")
    if not error and isinstance(status, str) and status.lower() in ("failed", "error"):
        error = "Status is failed"

    if not succeeded or error:
        return CompletionFailure(
            error=str(error) if error else "Unknown error from generic callback",
            code="PROVIDER_ERROR",
        )

    payload = {key: value for key, value in data.items() if key not in SERVICE_FIELDS}

    if not _first(payload, "content", "text", "result") and payload.get("output") is not None:
        output = payload["output"]
        if isinstance(output, str):
            output = _decode_json_text(output)
        if isinstance(output, list) and all(isinstance(chunk, str) for chunk in output):
            payload["content"] = "".join(output)
        elif isinstance(output, (dict, list)):
            payload["content"] = output
        else:
            payload["content"] = str(output)

    main_field = next((field for field in ("content", "text", "result") if payload.get(field)), None)
    main_content = payload[main_field] if main_field else None
    if main_field:
        main_content = _decode_json_text(main_content)
        payload[main_field] = main_content

    return CompletionSuccess(
        result={
            **payload,
            "result": main_content if main_content else dict(payload),
            "type": data.get("type") or route_kind,
            "completedAt": _completed_at(),
        }
    )


PARSERS = {
    TEXT: _parse_text,
    IMAGE: _parse_image,
    PRESENTATION: _parse_presentation,
    TRANSCRIPTION: _parse_transcription,
    GENERIC: _parse_generic,
}


def parse_callback_payload(body: Any, kind: str, route_kind: Optional[str] = None) -> ParsedCallback:
    """
    Parse a callback body

    Args:
        body: Decoded JSON body
        kind: Parsing family (text, image, presentation, transcription, generic)
        route_kind: Route name the callback arrived on, recorded as result type

    Raises:
        InvalidCallbackError: body is not an object
    """
    data = _unwrap(body)
    request_id = _first(data, *ID_FIELDS)
    outcome = PARSERS[kind](data, route_kind or kind)
    return ParsedCallback(request_id=str(request_id) if request_id else None, outcome=outcome)
