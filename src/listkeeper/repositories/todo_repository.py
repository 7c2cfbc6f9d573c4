"""List/task repository: plain data access, no authorization.

Callers pass the owning user's id explicitly; the repository never decides
who may see what. The only lookup that takes an owner is
find_list_for_user(), and TodoService uses it as the gate for every write.

Methods flush but do not commit. The service commits once per operation.
"""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from listkeeper.db.models import Priority, TodoList, TodoTask


class TodoListRepository:
    """Persistence for TodoList and TodoTask rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Lists ──────────────────────────────────────────

    async def lists_for_user(self, user_id: int) -> list[TodoList]:
        """All of a user's lists in creation order, tasks attached."""
        result = await self.db.execute(
            select(TodoList)
            .where(TodoList.user_id == user_id)
            .options(selectinload(TodoList.tasks))
            .order_by(TodoList.created_at, TodoList.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def create_list(self, user_id: int, name: str) -> TodoList:
        todo_list = TodoList(user_id=user_id, name=name, tasks=[])
        self.db.add(todo_list)
        await self.db.flush()
        return todo_list

    async def find_list_for_user(
        self, user_id: int, list_id: int, with_tasks: bool = True
    ) -> Optional[TodoList]:
        """The list with this id if user_id owns it, else None.

        A list owned by someone else comes back as None, exactly like a
        list that does not exist.
        """
        q = select(TodoList).where(
            TodoList.user_id == user_id, TodoList.id == list_id
        )
        if with_tasks:
            # Refresh collections already held by this session
            q = q.options(selectinload(TodoList.tasks)).execution_options(
                populate_existing=True
            )
        result = await self.db.execute(q)
        return result.scalars().first()

    async def delete_list(self, todo_list: TodoList) -> None:
        """Remove a list and its tasks in the current transaction.

        Both statements match zero rows if a concurrent request got there
        first, which is fine.
        """
        await self.db.execute(
            delete(TodoTask).where(TodoTask.todo_list_id == todo_list.id)
        )
        await self.db.execute(delete(TodoList).where(TodoList.id == todo_list.id))
        await self.db.flush()

    # ─── Tasks ──────────────────────────────────────────

    async def create_task(
        self, todo_list: TodoList, title: str, priority: Priority
    ) -> TodoTask:
        task = TodoTask(
            todo_list_id=todo_list.id, title=title, priority=priority.value
        )
        self.db.add(task)
        await self.db.flush()
        return task

    async def find_task_in_list(
        self, list_id: int, task_id: int
    ) -> Optional[TodoTask]:
        result = await self.db.execute(
            select(TodoTask).where(
                TodoTask.todo_list_id == list_id, TodoTask.id == task_id
            )
        )
        return result.scalars().first()

    async def update_task_priority(
        self, task: TodoTask, priority: Priority
    ) -> TodoTask:
        task.priority = priority.value
        await self.db.flush()
        return task

    async def delete_task(self, task: TodoTask) -> None:
        await self.db.execute(delete(TodoTask).where(TodoTask.id == task.id))
        await self.db.flush()
