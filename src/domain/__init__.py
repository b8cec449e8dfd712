from src.domain.models import (
    CompletionResult,
    ItemKey,
    ReconciliationResult,
    RoleSyncResult,
    TrainingCompletionView,
    User,
)

__all__ = [
    "CompletionResult",
    "ItemKey",
    "ReconciliationResult",
    "RoleSyncResult",
    "TrainingCompletionView",
    "User",
]
