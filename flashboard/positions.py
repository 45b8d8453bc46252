"""Dense integer ordering of siblings under a parent.

Columns are ordered within their board and tasks within their column. After
every successful write the positions of a parent's children are exactly
``0..n-1``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from .db import Board, ColumnModel, Task


@dataclass(frozen=True)
class SiblingScope:
    name: str
    model: type
    parent_model: type
    parent_key: str

    @property
    def parent_column(self) -> InstrumentedAttribute:
        return getattr(self.model, self.parent_key)


COLUMNS = SiblingScope(name="columns", model=ColumnModel, parent_model=Board, parent_key="board_id")
TASKS = SiblingScope(name="tasks", model=Task, parent_model=ColumnModel, parent_key="column_id")


def lock_parents(session: Session, scope: SiblingScope, parent_ids: Iterable[str]) -> None:
    """Take row locks on the parents whose children are about to be renumbered.

    Locks are taken in id order so two movers never wait on each other in a
    cycle. SQLite ignores ``FOR UPDATE``; there every transaction opens with
    ``BEGIN IMMEDIATE`` (see ``db.configure_sqlite``), which holds
    the database write lock for the whole allocate-and-insert.
    """
    for parent_id in sorted(set(parent_ids)):
        session.execute(
            select(scope.parent_model.id)
            .where(scope.parent_model.id == parent_id)
            .with_for_update()
        )


def siblings(session: Session, scope: SiblingScope, parent_id: str) -> list:
    session.flush()
    stmt = (
        select(scope.model)
        .where(scope.parent_column == parent_id)
        .order_by(scope.model.position, scope.model.created_at, scope.model.id)
    )
    return list(session.scalars(stmt))


def next_position(session: Session, scope: SiblingScope, parent_id: str) -> int:
    """Return the append position for a new child of ``parent_id``."""
    session.flush()
    stmt = select(func.coalesce(func.max(scope.model.position), -1)).where(
        scope.parent_column == parent_id
    )
    return session.scalar(stmt) + 1


def compact(session: Session, scope: SiblingScope, parent_id: str) -> None:
    """Renumber the children of ``parent_id`` to ``0..n-1`` keeping their order."""
    for index, row in enumerate(siblings(session, scope, parent_id)):
        if row.position != index:
            row.position = index
