"""SQLAlchemy ORM models: single source of truth for the database schema.

Declarative mapping in SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations mirror these definitions.

Ownership: a TodoList carries user_id; a TodoTask only knows its list.
The owner of a task is always its list's owner and is never stored twice.
"""

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Priority(str, enum.Enum):
    """Task priority buckets."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def values(cls) -> list[str]:
        return [p.value for p in cls]

    @classmethod
    def normalize(cls, value: Any) -> "Priority":
        """Case-insensitive match; anything unrecognised becomes MEDIUM."""
        if not isinstance(value, str):
            return cls.MEDIUM
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.MEDIUM


class User(Base):
    """A registered person. Owns zero or more lists."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # Relationships
    lists: Mapped[list["TodoList"]] = relationship(
        back_populates="user", passive_deletes=True
    )


class TodoList(Base):
    """A named container of tasks, owned by exactly one user."""

    __tablename__ = "todo_lists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="lists")
    tasks: Mapped[list["TodoTask"]] = relationship(
        back_populates="todo_list",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TodoTask.id",
    )


class TodoTask(Base):
    """A titled item with a priority. Belongs to exactly one list."""

    __tablename__ = "todo_tasks"
    __table_args__ = (
        Index("ix_todo_tasks_list_priority", "todo_list_id", "priority"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    todo_list_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("todo_lists.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default=Priority.MEDIUM.value,
        server_default=Priority.MEDIUM.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )

    # Relationships
    todo_list: Mapped["TodoList"] = relationship(back_populates="tasks")


class Session(Base):
    """Server-side login session.

    Only a sha256 of the session token is stored; the raw token lives in
    the client's cookie. Each row is bound to one user and expires on its
    own schedule.
    """

    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    csrf_token: Mapped[str] = mapped_column(String(64), nullable=False)
    remember: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    last_seen_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
