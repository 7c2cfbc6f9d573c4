"""Todo service: the single path for list and task changes.

Every method takes the caller's UserId and resolves records through
TodoListRepository.find_list_for_user(). Anything the caller does not own
raises NotFound, the same error as a missing record, so other users'
ids cannot be probed.

Priority policy differs by operation: add_task() quietly falls back to
"medium" for unknown values, update_task_priority() rejects them.
"""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from listkeeper.auth.identity import UserId
from listkeeper.db.models import Priority, TodoList, TodoTask
from listkeeper.errors import NotFound, ValidationError
from listkeeper.repositories.todo_repository import TodoListRepository
from listkeeper.validation import check_priority, required_string

logger = structlog.get_logger()


def _required(value: str, field: str) -> str:
    """Reject blank input; return it trimmed."""
    problems = required_string(value, field)
    if problems:
        raise ValidationError({field: problems})
    return value.strip()


class TodoService:
    """Ownership-scoped list and task management."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = TodoListRepository(db)

    # ─── Lists ──────────────────────────────────────────

    async def lists(self, user: UserId) -> list[TodoList]:
        return await self.repo.lists_for_user(user)

    async def create_list(self, user: UserId, name: str) -> TodoList:
        name = _required(name, "name")
        todo_list = await self.repo.create_list(user, name)
        await self.db.commit()
        logger.info("todo.list_created", user_id=user, list_id=todo_list.id)
        return todo_list

    async def delete_list(self, user: UserId, list_id: int) -> None:
        todo_list = await self._find_list_or_fail(user, list_id, with_tasks=False)
        await self.repo.delete_list(todo_list)
        await self.db.commit()
        logger.info("todo.list_deleted", user_id=user, list_id=list_id)

    # ─── Tasks ──────────────────────────────────────────

    async def add_task(
        self,
        user: UserId,
        list_id: int,
        title: str,
        priority: Any = None,
    ) -> TodoTask:
        """Add a task. Unknown priorities become medium instead of failing."""
        title = _required(title, "title")
        normalized = Priority.normalize(priority)
        todo_list = await self._find_list_or_fail(user, list_id, with_tasks=False)

        task = await self.repo.create_task(todo_list, title, normalized)
        await self.db.commit()
        logger.info(
            "todo.task_created",
            user_id=user,
            list_id=list_id,
            task_id=task.id,
            priority=task.priority,
        )
        return task

    async def update_task_priority(
        self, user: UserId, list_id: int, task_id: int, priority: str
    ) -> TodoTask:
        """Set a task's priority. The value must be exactly high, medium or low."""
        problems = check_priority(priority)
        if problems:
            raise ValidationError({"priority": problems})

        task = await self._find_task_or_fail(user, list_id, task_id)
        await self.repo.update_task_priority(task, Priority(priority))
        await self.db.commit()
        await self.db.refresh(task)
        logger.info(
            "todo.task_priority_changed",
            user_id=user,
            task_id=task_id,
            priority=task.priority,
        )
        return task

    async def delete_task(self, user: UserId, list_id: int, task_id: int) -> None:
        task = await self._find_task_or_fail(user, list_id, task_id)
        await self.repo.delete_task(task)
        await self.db.commit()
        logger.info("todo.task_deleted", user_id=user, list_id=list_id, task_id=task_id)

    # ─── Ownership resolution ───────────────────────────

    async def _find_list_or_fail(
        self, user: UserId, list_id: int, with_tasks: bool = True
    ) -> TodoList:
        todo_list = await self.repo.find_list_for_user(
            user, list_id, with_tasks=with_tasks
        )
        if todo_list is None:
            raise NotFound("List not found.")
        return todo_list

    async def _find_task_or_fail(
        self, user: UserId, list_id: int, task_id: int
    ) -> TodoTask:
        todo_list = await self._find_list_or_fail(user, list_id, with_tasks=False)
        task = await self.repo.find_task_in_list(todo_list.id, task_id)
        if task is None:
            raise NotFound("Task not found.")
        return task
