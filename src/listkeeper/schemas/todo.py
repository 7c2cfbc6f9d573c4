"""Pydantic schemas for lists and tasks.

Create schemas (input) are separate from Read schemas (output). Task
creation accepts any priority value (the service coerces unknown values,
non-strings included, to medium); the update schema only accepts the
three real values.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


# ─── Tasks ──────────────────────────────────────────────

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    priority: Optional[Any] = None


class TaskPriorityUpdate(BaseModel):
    priority: str = Field(..., pattern=r"^(high|medium|low)$")


class TaskRead(BaseModel):
    id: int
    todo_list_id: int
    title: str
    priority: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ─── Lists ──────────────────────────────────────────────

class ListCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ListRead(BaseModel):
    id: int
    user_id: int
    name: str
    created_at: datetime
    updated_at: datetime
    tasks: list[TaskRead] = []

    model_config = {"from_attributes": True}


# ─── Envelopes ──────────────────────────────────────────

class ListCollection(BaseModel):
    data: list[ListRead]


class ListEnvelope(BaseModel):
    message: str
    data: ListRead


class TaskEnvelope(BaseModel):
    message: str
    data: TaskRead
