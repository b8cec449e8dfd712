from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

from src.infrastructure.db.models import ItemType


@dataclass(slots=True)
class User:
    """Represents an authenticated actor within the system."""

    user_id: str
    email: str = ""
    access_levels: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class ItemKey:
    """Identity of a trainable item; the type is part of the key."""

    item_id: str
    item_type: ItemType


@dataclass(slots=True)
class ReconciliationResult:
    user_id: str
    old_role_id: str | None
    new_role_id: str
    assignments_removed: int
    assignments_added: int
    completions_restored: int
    user_name: str


@dataclass(slots=True)
class CompletionResult:
    auth_id: str
    item_id: str
    item_type: str
    training_outcome: str
    completed_at: datetime | None
    follow_up_due_at: datetime | None = None
    refresh_due_at: datetime | None = None
    training_log_recorded: bool = False
    linked_documents_completed: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RoleSyncResult:
    role_id: str
    users_synced: int
    assignments_added: int
    completions_restored: int


@dataclass(slots=True)
class TrainingCompletionView:
    auth_id: str
    item_id: str
    item_type: str
    completed_at: datetime | None
    is_current_assignment: bool
