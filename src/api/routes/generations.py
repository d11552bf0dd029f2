"""Generation API Routes

Start generations and read their status and history.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Header, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from libs.result import Error
from src.adapter.repositories import SqlAlchemyGenerationRequestRepository
from src.api.error import ClientError
from src.api.schemas.generation_request import (
    GenerationHistoryItemSchema,
    GenerationHistoryResponseSchema,
    GenerationRequestSchema,
    GenerationResponseSchema,
)
from src.app.use_cases.generations import (
    CreateGeneration,
    CreateGenerationCommandDTO,
    GetGenerationStatus,
    ListGenerations,
)
from src.depends import get_create_generation, get_session

router = APIRouter(prefix="/generate", tags=["Generations"])

ERROR_STATUS = {
    "ADMISSION_DENIED": status.HTTP_402_PAYMENT_REQUIRED,
    "UNSUPPORTED_GENERATION_TYPE": status.HTTP_400_BAD_REQUEST,
    "GENERATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
}

ADMISSION_DENIED_EXAMPLE = {
    402: {
        "description": "Credits unavailable",
        "content": {
            "application/json": {
                "example": {
                    "error": {
                        "code": "ADMISSION_DENIED",
                        "message": "Insufficient credits. Required: 2, Available: 1"
                    }
                }
            }
        }
    }
}


def raise_for_error(error: Error) -> None:
    raise ClientError(error, status_code=ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST))


def resolve_user_id(header_user_id: Optional[str], body_user_id: Optional[str] = None) -> str:
    user_id = header_user_id or body_user_id
    if not user_id:
        raise_for_error(Error(code="UNAUTHORIZED", message="Missing user identity (X-User-Id)"))
    return user_id


async def _create(
    generation_type: Optional[str],
    request: GenerationRequestSchema,
    x_user_id: Optional[str],
    use_case: CreateGeneration,
) -> GenerationResponseSchema:
    if not generation_type:
        raise_for_error(
            Error(code="UNSUPPORTED_GENERATION_TYPE", message="Generation type is required")
        )

    command = CreateGenerationCommandDTO(
        user_id=resolve_user_id(x_user_id, request.user_id),
        type=generation_type,
        params=request.params,
        model=request.model,
        origin=request.origin,
        chat_id=request.chat_id,
    )

    result = await use_case.execute(command)
    if result.is_err():
        raise_for_error(result.error)

    created = result.value
    return GenerationResponseSchema(
        success=created.success,
        request_id=created.request_id,
        status=created.status,
        result=created.result,
        error=created.error,
    )


@router.post(
    "",
    response_model=GenerationResponseSchema,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    responses=ADMISSION_DENIED_EXAMPLE,
)
async def create_generation(
    request: GenerationRequestSchema,
    x_user_id: Optional[str] = Header(default=None),
    use_case: CreateGeneration = Depends(get_create_generation),
):
    """
    Start a generation of the type given in the body.

    Credits are debited before anything is dispatched. Direct types answer
    with the finished result; relay and polling types answer `pending` and
    are completed later (see `GET /generate/{request_id}`).

    **Returns:**
    - 200: Request accepted (or finished, for direct types)
    - 400: Unknown generation type
    - 402: Credits unavailable
    """
    return await _create(request.type, request, x_user_id, use_case)


@router.get(
    "/history",
    response_model=GenerationHistoryResponseSchema,
    status_code=status.HTTP_200_OK,
)
async def list_generations(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    x_user_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
):
    """Generation history of the calling user, newest first."""
    use_case = ListGenerations(SqlAlchemyGenerationRequestRepository(session))
    result = await use_case.execute(resolve_user_id(x_user_id), limit=limit, offset=offset)

    history = result.value
    return GenerationHistoryResponseSchema(
        items=[GenerationHistoryItemSchema(**item.model_dump()) for item in history.items],
        total=history.total,
        limit=history.limit,
        offset=history.offset,
    )


@router.get(
    "/{request_id}",
    response_model=GenerationResponseSchema,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "Unknown request or not owned by the caller",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "GENERATION_NOT_FOUND",
                            "message": "Generation request 0b6f2c1e not found"
                        }
                    }
                }
            }
        }
    }
)
async def get_generation(
    request_id: str,
    x_user_id: Optional[str] = Header(default=None),
    session: AsyncSession = Depends(get_session),
):
    """
    Current status of one generation request.

    `result` is set once the request is completed; `error` once it failed.
    A pending long-running job may carry partial progress in `result`.
    """
    use_case = GetGenerationStatus(SqlAlchemyGenerationRequestRepository(session))
    result = await use_case.execute(request_id, resolve_user_id(x_user_id))

    if result.is_err():
        raise_for_error(result.error)

    generation = result.value
    return GenerationResponseSchema(
        request_id=generation.request_id,
        status=generation.status,
        result=generation.result,
        error=generation.error,
        created_at=generation.created_at,
        updated_at=generation.updated_at,
    )


@router.post(
    "/{generation_type}",
    response_model=GenerationResponseSchema,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    responses=ADMISSION_DENIED_EXAMPLE,
)
async def create_typed_generation(
    generation_type: str,
    request: GenerationRequestSchema,
    x_user_id: Optional[str] = Header(default=None),
    use_case: CreateGeneration = Depends(get_create_generation),
):
    """Start a generation whose type is given in the path."""
    return await _create(generation_type, request, x_user_id, use_case)
