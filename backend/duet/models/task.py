import enum

from sqlalchemy import Column, String, Boolean, Integer, DateTime, Enum, ForeignKey, Index
from sqlalchemy.orm import relationship

from .base import UUIDModel


class TaskKind(str, enum.Enum):
    TASK = "task"
    HABIT = "habit"


class Interval(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ActionKind(str, enum.Enum):
    PROGRESS = "progress"
    DEFER = "defer"
    DONE = "done"


class TaskDB(UUIDModel):
    """A one-off task or a recurring habit, told apart by ``kind``.

    Dates only mean something for tasks and interval/frequency only for
    habits, but both groups are stored as given.
    """
    __tablename__ = "tasks"

    kind = Column(Enum(TaskKind, name="task_kind"), nullable=False)
    title = Column(String(500), nullable=False)
    done = Column(Boolean, default=False, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    # Task fields
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)

    # Habit fields
    interval = Column(Enum(Interval, name="task_interval"), nullable=True)
    frequency = Column(Integer, nullable=True)

    # Relationships. Actions are only ever loaded explicitly by the repository.
    user = relationship("UserDB", back_populates="tasks", lazy="raise")
    actions = relationship(
        "ActionDB",
        back_populates="task",
        lazy="raise",
        order_by="ActionDB.created_at",
    )

    __table_args__ = (
        Index("idx_tasks_user_kind", "user_id", "kind"),
    )


class ActionDB(UUIDModel):
    """A progress/defer/done event on a task. Owned through its task only."""
    __tablename__ = "actions"

    kind = Column(Enum(ActionKind, name="action_kind"), nullable=False)
    when = Column(DateTime(timezone=True), nullable=False)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)

    task = relationship("TaskDB", back_populates="actions", lazy="raise")
