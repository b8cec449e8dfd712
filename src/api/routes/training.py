from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from src.api.deps import get_db_session, require_access
from src.api.schemas.training import (
    RecordCompletionRequest,
    RecordCompletionResponse,
    TrainingCompletionItem,
    TrainingCompletionsResponse,
)
from src.domain import User
from src.domain.errors import AssignmentNotFoundError, InvalidRequestError
from src.domain.services import TrainingCompletionService, TrainingMatrixService

router = APIRouter(prefix="/api", tags=["Training"])


@router.post("/record-training-completion", response_model=RecordCompletionResponse)
async def record_training_completion(
    payload: RecordCompletionRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_access(["trainer", "admin"])),
) -> RecordCompletionResponse:
    """
    Record a training outcome for one assigned module or document.

    Only ``completed`` closes the assignment and sets follow-up/refresh due
    dates. Linked documents of a completed module are completed too.
    """
    service = TrainingCompletionService(session)
    try:
        result = await service.record_completion(
            auth_id=payload.auth_id,
            item_id=payload.item_id,
            item_type=payload.item_type,
            completed_date=payload.completed_date,
            training_outcome=payload.training_outcome,
            linked_document_ids=payload.linked_document_ids,
            duration_hours=payload.duration_hours,
            notes=payload.notes,
        )
    except InvalidRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except AssignmentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    message = (
        "Training completion recorded"
        if result.completed_at is not None
        else "Training outcome recorded; assignment remains open"
    )
    return RecordCompletionResponse(message=message, **asdict(result))


@router.get("/training-completions", response_model=TrainingCompletionsResponse)
async def list_training_completions(
    auth_id: str | None = Query(default=None),
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_access(["trainer", "admin"])),
) -> TrainingCompletionsResponse:
    """Current assignments merged with historical completions."""
    service = TrainingMatrixService(session)
    views = await service.list_training_completions(auth_id)
    return TrainingCompletionsResponse(
        completions=[TrainingCompletionItem(**asdict(view)) for view in views]
    )
