"""Error taxonomy shared by the training services.

Routes translate these into HTTP responses; services never build responses
themselves.
"""

from __future__ import annotations


class TrainingDomainError(Exception):
    """Base class for expected failures raised by the domain services."""


class InvalidRequestError(TrainingDomainError):
    """Raised when required fields are missing or hold unsupported values."""


class UserNotFoundError(TrainingDomainError):
    """Raised when the referenced user does not exist."""


class RoleNotFoundError(TrainingDomainError):
    """Raised when the referenced role does not exist."""


class RoleHasNoUsersError(TrainingDomainError):
    """Raised when a role profile sync finds nobody holding the role."""


class AssignmentNotFoundError(TrainingDomainError):
    """Raised when a completion targets an item the user is not assigned."""


class DependencyFailureError(TrainingDomainError):
    """Raised when a critical data-store step fails.

    ``step`` names the failing step, ``details`` carries the driver message.
    """

    def __init__(self, step: str, details: str) -> None:
        super().__init__(f"Failed to {step}")
        self.step = step
        self.details = details
