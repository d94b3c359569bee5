"""GraphQL schema over the owner-scoped task store.

Resolvers read the authenticated user id from the request context; no type
exposes or accepts an owner, so every query is implicitly the caller's own.
"""
from datetime import datetime
from typing import List, Optional

import strawberry
from strawberry.types import Info
from strawberry.types.nodes import SelectedField

from duet.core.deps import USER_ID_KEY
from duet.core.errors import NotFoundOrNotOwnedError
from duet.models.api import TaskCreate, TaskPatch, ActionCreate
from duet.models.task import TaskDB, ActionDB, TaskKind, Interval, ActionKind
from duet.repositories.task import TaskRepository

strawberry.enum(TaskKind, name="TaskKind")
strawberry.enum(Interval, name="Interval")
strawberry.enum(ActionKind, name="ActionKind")

task_repo = TaskRepository()


@strawberry.type(name="Action")
class ActionType:
    id: strawberry.ID
    kind: ActionKind
    when: datetime
    task_id: strawberry.ID

    @classmethod
    def from_db(cls, action: ActionDB) -> "ActionType":
        return cls(
            id=strawberry.ID(action.id),
            kind=action.kind,
            when=action.when,
            task_id=strawberry.ID(action.task_id),
        )


@strawberry.type(name="Task")
class TaskType:
    id: strawberry.ID
    kind: TaskKind
    title: str
    done: bool
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    interval: Optional[Interval]
    frequency: Optional[int]
    actions: List[ActionType]

    @classmethod
    def from_db(cls, task: TaskDB, with_actions: bool = False) -> "TaskType":
        # task.actions is only touched when the repository loaded it
        actions = [ActionType.from_db(a) for a in task.actions] if with_actions else []
        return cls(
            id=strawberry.ID(task.id),
            kind=task.kind,
            title=task.title,
            done=task.done,
            start_date=task.start_date,
            end_date=task.end_date,
            interval=task.interval,
            frequency=task.frequency,
            actions=actions,
        )


@strawberry.input
class TaskInput:
    title: str
    kind: TaskKind = TaskKind.TASK
    done: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    interval: Optional[Interval] = None
    frequency: Optional[int] = None


@strawberry.input
class TaskPatchInput:
    kind: Optional[TaskKind] = strawberry.UNSET
    title: Optional[str] = strawberry.UNSET
    done: Optional[bool] = strawberry.UNSET
    start_date: Optional[datetime] = strawberry.UNSET
    end_date: Optional[datetime] = strawberry.UNSET
    interval: Optional[Interval] = strawberry.UNSET
    frequency: Optional[int] = strawberry.UNSET

    def to_patch(self) -> TaskPatch:
        given = {name: value for name, value in vars(self).items() if value is not strawberry.UNSET}
        return TaskPatch(**given)


@strawberry.input
class ActionInput:
    task_id: strawberry.ID
    kind: ActionKind
    when: Optional[datetime] = None


def _contains_field(selections, name: str) -> bool:
    for selection in selections:
        if isinstance(selection, SelectedField):
            if selection.name == name:
                return True
        elif _contains_field(selection.selections, name):
            # fragment spread or inline fragment
            return True
    return False


def selects_actions(info: Info) -> bool:
    """Whether the query asks for Task.actions, so they are loaded up front"""
    return any(_contains_field(field.selections, "actions") for field in info.selected_fields)


def _scope(info: Info):
    return info.context["db"], info.context[USER_ID_KEY]


@strawberry.type
class Query:
    @strawberry.field
    async def tasks(self, info: Info, kind: Optional[TaskKind] = None) -> List[TaskType]:
        db, user_id = _scope(info)
        with_actions = selects_actions(info)
        tasks = await task_repo.get_tasks(db, user_id, kind=kind, with_actions=with_actions)
        return [TaskType.from_db(task, with_actions) for task in tasks]

    @strawberry.field
    async def task(self, info: Info, id: strawberry.ID, kind: Optional[TaskKind] = None) -> Optional[TaskType]:
        db, user_id = _scope(info)
        with_actions = selects_actions(info)
        try:
            task = await task_repo.get_task(db, str(id), user_id, kind=kind, with_actions=with_actions)
        except NotFoundOrNotOwnedError:
            return None
        return TaskType.from_db(task, with_actions)


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def add_task(self, info: Info, input: TaskInput) -> TaskType:
        db, user_id = _scope(info)
        data = TaskCreate(**vars(input))
        task = await task_repo.add_task(db, TaskDB(**data.model_dump()), user_id)
        return TaskType.from_db(task)

    @strawberry.mutation
    async def update_task(self, info: Info, id: strawberry.ID, patch: TaskPatchInput) -> TaskType:
        db, user_id = _scope(info)
        task = await task_repo.update_task(db, str(id), user_id, patch.to_patch(), with_actions=True)
        return TaskType.from_db(task, with_actions=True)

    @strawberry.mutation
    async def delete_task(self, info: Info, id: strawberry.ID) -> bool:
        db, user_id = _scope(info)
        return await task_repo.delete_task(db, str(id), user_id)

    @strawberry.mutation
    async def add_action(self, info: Info, input: ActionInput) -> ActionType:
        db, user_id = _scope(info)
        data = ActionCreate(task_id=str(input.task_id), kind=input.kind, when=input.when)
        action = await task_repo.add_action(db, ActionDB(**data.model_dump()), user_id)
        return ActionType.from_db(action)

    @strawberry.mutation
    async def delete_action(self, info: Info, id: strawberry.ID) -> bool:
        db, user_id = _scope(info)
        await task_repo.delete_action(db, str(id), user_id)
        return True


schema = strawberry.Schema(query=Query, mutation=Mutation)
