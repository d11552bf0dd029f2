"""Webhook API Routes

Completion callbacks posted by automation pipelines. Every route is guarded
by `verify_webhook_auth`.
"""

from typing import Any
from fastapi import APIRouter, Body, Depends, status

from src.api.error import ClientError
from src.api.guards import verify_webhook_auth
from src.api.schemas.generation_request import WebhookResponseSchema
from src.app.use_cases.callbacks import HandleCallback
from src.depends import get_handle_callback

router = APIRouter(
    prefix="/webhooks",
    tags=["Webhooks"],
    dependencies=[Depends(verify_webhook_auth)],
)

ERROR_STATUS = {
    "CALLBACK_MISMATCH": status.HTTP_404_NOT_FOUND,
    "INVALID_CALLBACK": status.HTTP_400_BAD_REQUEST,
    "GENERATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
}


@router.post(
    "/{kind}-callback",
    response_model=WebhookResponseSchema,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Callback for an unknown generation request",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "CALLBACK_MISMATCH",
                            "message": "Generation request not found"
                        }
                    }
                }
            }
        },
        401: {"description": "Webhook authentication failed"},
    }
)
async def handle_callback(
    kind: str,
    body: Any = Body(...),
    use_case: HandleCallback = Depends(get_handle_callback),
):
    """
    Complete a generation from a pipeline callback.

    `kind` is a generation type (`worksheet-callback`, `image-callback`, ...),
    `presentation`, `transcription`, or `n8n` for the generic shape.

    **Example request (`POST /webhooks/worksheet-callback`):**
    ```json
    {
      "generationRequestId": "0b6f2c1e-5d0e-4f53-9a47-1f0b8f1d2c3a",
      "success": true,
      "content": "1. 3/4 + 1/8 = ..."
    }
    ```

    **Returns:**
    - 200: `{success: true, message}` once applied (or already terminal),
      `{success: false, error}` for a failure callback
    - 400: Body is not a JSON object or the kind is unknown
    - 404: No such generation request
    """
    result = await use_case.execute(body, kind)

    if result.is_err():
        raise ClientError(
            result.error,
            status_code=ERROR_STATUS.get(result.error.code, status.HTTP_400_BAD_REQUEST),
        )

    return result.value
