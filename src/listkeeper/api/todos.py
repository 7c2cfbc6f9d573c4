"""Todo list and task API routes.

Each handler pulls the caller's UserId from the session and hands it to
TodoService along with the ids from the path. Ownership checks live in
the service; a list or task belonging to someone else answers 404, never
403.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from listkeeper.auth.dependencies import get_current_user
from listkeeper.auth.identity import UserId
from listkeeper.db.engine import get_db
from listkeeper.schemas.auth import MessageResponse
from listkeeper.schemas.todo import (
    ListCollection,
    ListCreate,
    ListEnvelope,
    ListRead,
    TaskCreate,
    TaskEnvelope,
    TaskPriorityUpdate,
    TaskRead,
)
from listkeeper.services.todo_service import TodoService

router = APIRouter(prefix="/todos")

# Ids are int4 columns on Postgres; anything outside that range cannot exist.
MAX_ID = 2**31 - 1


def _svc(db: AsyncSession = Depends(get_db)) -> TodoService:
    return TodoService(db)


# ─── Lists ──────────────────────────────────────────────

@router.get("", response_model=ListCollection)
async def list_todos(
    user: UserId = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    """All of the caller's lists, oldest first, each with its tasks."""
    lists = await svc.lists(user)
    return ListCollection(data=[ListRead.model_validate(lst) for lst in lists])


@router.post("", response_model=ListEnvelope, status_code=201)
async def create_list(
    body: ListCreate,
    user: UserId = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    todo_list = await svc.create_list(user, body.name)
    return ListEnvelope(message="List created.", data=ListRead.model_validate(todo_list))


@router.delete("/{list_id}", response_model=MessageResponse)
async def delete_list(
    list_id: int = Path(..., ge=1, le=MAX_ID),
    user: UserId = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    """Delete a list and every task in it."""
    await svc.delete_list(user, list_id)
    return MessageResponse(message="List deleted.")


# ─── Tasks ──────────────────────────────────────────────

@router.post("/{list_id}/tasks", response_model=TaskEnvelope, status_code=201)
async def create_task(
    body: TaskCreate,
    list_id: int = Path(..., ge=1, le=MAX_ID),
    user: UserId = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    task = await svc.add_task(user, list_id, body.title, body.priority)
    return TaskEnvelope(message="Task created.", data=TaskRead.model_validate(task))


@router.patch("/{list_id}/tasks/{task_id}", response_model=TaskEnvelope)
async def update_task(
    body: TaskPriorityUpdate,
    list_id: int = Path(..., ge=1, le=MAX_ID),
    task_id: int = Path(..., ge=1, le=MAX_ID),
    user: UserId = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    task = await svc.update_task_priority(user, list_id, task_id, body.priority)
    return TaskEnvelope(message="Task updated.", data=TaskRead.model_validate(task))


@router.delete("/{list_id}/tasks/{task_id}", response_model=MessageResponse)
async def delete_task(
    list_id: int = Path(..., ge=1, le=MAX_ID),
    task_id: int = Path(..., ge=1, le=MAX_ID),
    user: UserId = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    await svc.delete_task(user, list_id, task_id)
    return MessageResponse(message="Task deleted.")
