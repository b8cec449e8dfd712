from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class ItemType(str, enum.Enum):
    """Kind of trainable item a role or user can be assigned."""

    MODULE = "module"
    DOCUMENT = "document"


class TrainingOutcome(str, enum.Enum):
    COMPLETED = "completed"
    NEEDS_IMPROVEMENT = "needs_improvement"
    FAILED = "failed"


def _item_type_enum() -> Enum:
    return Enum(ItemType, name="item_type", values_callable=lambda e: [x.value for x in e])


def _outcome_enum() -> Enum:
    return Enum(
        TrainingOutcome,
        name="training_outcome",
        values_callable=lambda e: [x.value for x in e],
    )


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    assignments: Mapped[list[RoleAssignment]] = relationship(
        back_populates="role",
        cascade="all,delete-orphan",
    )


class UserModel(Base):
    """SQLAlchemy model for users table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    auth_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    first_name: Mapped[str | None] = mapped_column(String(128))
    last_name: Mapped[str | None] = mapped_column(String(128))
    email: Mapped[str | None] = mapped_column(String(255))
    role_id: Mapped[str | None] = mapped_column(
        ForeignKey("roles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, auth_id={self.auth_id}, role_id={self.role_id})>"


class Module(Base):
    """Training module with optional follow-up and refresh cadence.

    Period columns hold the strings stored by the admin UI (``"1 week"``,
    ``"2 years"``, ``"0"`` for none); see ``src.domain.periods``.
    """

    __tablename__ = "modules"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    requires_follow_up: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    follow_up_period: Mapped[str | None] = mapped_column(String(32))
    refresh_period: Mapped[str | None] = mapped_column(String(32))


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(255), nullable=False)


class RoleAssignment(Base):
    """Template row linking a role to a module or document.

    Redundant rows are tolerated; readers deduplicate by ``(type, item_id)``.
    """

    __tablename__ = "role_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role_id: Mapped[str] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[ItemType] = mapped_column(_item_type_enum(), nullable=False)
    module_id: Mapped[str | None] = mapped_column(
        ForeignKey("modules.id", ondelete="CASCADE"), nullable=True
    )
    document_id: Mapped[str | None] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"), nullable=True
    )

    role: Mapped[Role] = relationship(back_populates="assignments")

    @property
    def item_id(self) -> str | None:
        if self.type == ItemType.MODULE:
            return self.module_id
        return self.document_id


class UserAssignment(Base):
    __tablename__ = "user_assignments"
    __table_args__ = (
        UniqueConstraint("auth_id", "item_id", "item_type", name="uq_user_assignment_item"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    auth_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_id: Mapped[str] = mapped_column(String(36), nullable=False)
    item_type: Mapped[ItemType] = mapped_column(_item_type_enum(), nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # NULL means open; a completed row is never removed by a role change
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    training_outcome: Mapped[TrainingOutcome | None] = mapped_column(_outcome_enum())
    follow_up_due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    refresh_due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class UserTrainingCompletion(Base):
    """Permanent completion ledger, kept even after the live assignment is gone."""

    __tablename__ = "user_training_completions"
    __table_args__ = (
        UniqueConstraint("auth_id", "item_id", "item_type", name="uq_training_completion_item"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    auth_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    item_id: Mapped[str] = mapped_column(String(36), nullable=False)
    item_type: Mapped[ItemType] = mapped_column(_item_type_enum(), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_by_role_id: Mapped[str | None] = mapped_column(String(36))
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class UserRoleChangeLog(Base):
    __tablename__ = "user_role_change_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    old_role_id: Mapped[str | None] = mapped_column(String(36))
    new_role_id: Mapped[str] = mapped_column(String(36), nullable=False)
    assignments_removed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    assignments_added: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class TrainingLog(Base):
    __tablename__ = "training_logs"
    __table_args__ = (
        UniqueConstraint("auth_id", "topic", "date", name="uq_training_log_per_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    auth_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    log_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    duration_hours: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    outcome: Mapped[TrainingOutcome] = mapped_column(_outcome_enum(), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
