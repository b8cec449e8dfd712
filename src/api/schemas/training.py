from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RecordCompletionRequest(BaseModel):
    auth_id: str | None = None
    item_id: str | None = None
    item_type: str | None = None
    completed_date: str | None = Field(
        default=None,
        description="YYYY-MM-DD (UTC midnight) or an ISO-8601 timestamp; defaults to now",
    )
    training_outcome: str | None = None
    linked_document_ids: list[str] | None = None
    duration_hours: float | None = None
    notes: str | None = None


class RecordCompletionResponse(BaseModel):
    message: str
    auth_id: str
    item_id: str
    item_type: str
    training_outcome: str
    completed_at: datetime | None = None
    follow_up_due_at: datetime | None = None
    refresh_due_at: datetime | None = None
    training_log_recorded: bool
    linked_documents_completed: list[str] = Field(default_factory=list)


class TrainingCompletionItem(BaseModel):
    auth_id: str
    item_id: str
    item_type: str
    completed_at: datetime | None = None
    is_current_assignment: bool


class TrainingCompletionsResponse(BaseModel):
    completions: list[TrainingCompletionItem]
