from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Select, select, update, delete
from sqlalchemy.orm import selectinload

from duet.core.errors import NotFoundOrNotOwnedError
from duet.models.api import TaskPatch
from duet.models.task import TaskDB, ActionDB, TaskKind
from .base import BaseRepository, translate_store_errors


class TaskRepository(BaseRepository[TaskDB]):
    """
    Owner-scoped access to tasks, habits and their actions.

    Every method takes the authenticated ``user_id`` and filters on it. A task
    that does not exist and a task owned by someone else produce the same
    NotFoundOrNotOwnedError, so callers cannot probe for other users' ids.
    Actions have no owner column; they are reachable only through a task the
    caller owns.
    """

    def __init__(self):
        super().__init__(TaskDB)

    def _owned(self, user_id: int, kind: Optional[TaskKind] = None, with_actions: bool = False) -> Select:
        stmt = self.select_live().where(TaskDB.user_id == user_id)
        if kind is not None:
            stmt = stmt.where(TaskDB.kind == kind)
        if with_actions:
            stmt = stmt.options(selectinload(TaskDB.actions))
        return stmt

    @translate_store_errors
    async def get_task(
        self,
        db: AsyncSession,
        task_id: str,
        user_id: int,
        kind: Optional[TaskKind] = None,
        with_actions: bool = False,
    ) -> TaskDB:
        """Get one of the user's tasks, optionally restricted to a kind"""
        result = await db.execute(
            self._owned(user_id, kind, with_actions)
            .where(TaskDB.id == task_id)
            .execution_options(populate_existing=True)
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundOrNotOwnedError()
        return task

    @translate_store_errors
    async def get_tasks(
        self,
        db: AsyncSession,
        user_id: int,
        kind: Optional[TaskKind] = None,
        with_actions: bool = False,
    ) -> List[TaskDB]:
        """Get all of the user's tasks in creation order"""
        result = await db.execute(
            self._owned(user_id, kind, with_actions).order_by(TaskDB.created_at, TaskDB.id)
        )
        return list(result.scalars().all())

    @translate_store_errors
    async def add_task(self, db: AsyncSession, task: TaskDB, user_id: int) -> TaskDB:
        """Persist a new task owned by user_id, whatever owner the caller set"""
        task.user_id = user_id
        db.add(task)
        await db.commit()
        await db.refresh(task)
        return task

    @translate_store_errors
    async def update_task(
        self,
        db: AsyncSession,
        task_id: str,
        user_id: int,
        patch: TaskPatch,
        with_actions: bool = True,
    ) -> TaskDB:
        """Apply a partial update to one of the user's tasks and reload it"""
        values = patch.changes()
        if not values:
            return await self.get_task(db, task_id, user_id, with_actions=with_actions)

        values['updated_at'] = datetime.utcnow()
        result = await db.execute(
            update(TaskDB)
            .where(TaskDB.id == task_id, TaskDB.user_id == user_id, TaskDB.deleted_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundOrNotOwnedError()
        await db.commit()

        return await self.get_task(db, task_id, user_id, with_actions=with_actions)

    @translate_store_errors
    async def delete_task(self, db: AsyncSession, task_id: str, user_id: int) -> bool:
        """Hard-delete a task and its actions. Returns whether a task row was removed."""
        owned = select(TaskDB.id).where(TaskDB.id == task_id, TaskDB.user_id == user_id)
        await db.execute(
            delete(ActionDB)
            .where(ActionDB.task_id.in_(owned))
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(
            delete(TaskDB)
            .where(TaskDB.id == task_id, TaskDB.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
        return result.rowcount > 0

    @translate_store_errors
    async def add_action(self, db: AsyncSession, action: ActionDB, user_id: int) -> ActionDB:
        """Record an action on one of the user's tasks"""
        # Raises before anything is written if the task is not visible
        await self.get_task(db, action.task_id, user_id)

        if action.when is None:
            action.when = datetime.utcnow()
        db.add(action)
        await db.commit()
        await db.refresh(action)
        return action

    @translate_store_errors
    async def delete_action(self, db: AsyncSession, action_id: str, user_id: int) -> None:
        """Delete an action whose task belongs to the user"""
        result = await db.execute(
            select(ActionDB.id)
            .join(TaskDB, ActionDB.task_id == TaskDB.id)
            .where(
                ActionDB.id == action_id,
                TaskDB.user_id == user_id,
                TaskDB.deleted_at.is_(None),
            )
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundOrNotOwnedError("Action not found")

        await db.execute(
            delete(ActionDB)
            .where(ActionDB.id == action_id)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
