"""Domain services."""

from src.domain.services.completion import TrainingCompletionService
from src.domain.services.reconciliation import RoleChangeService
from src.domain.services.role_sync import RoleProfileSyncService
from src.domain.services.training_matrix import TrainingMatrixService

__all__ = [
    "RoleChangeService",
    "RoleProfileSyncService",
    "TrainingCompletionService",
    "TrainingMatrixService",
]
