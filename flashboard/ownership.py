from __future__ import annotations

import enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import Board, ColumnModel, Task
from .errors import NotFoundOrDenied


class EntityKind(str, enum.Enum):
    COLUMN = "column"
    TASK = "task"


def find_board(session: Session, device_id: str) -> Optional[Board]:
    return session.scalar(select(Board).where(Board.device_id == device_id))


def find_column(session: Session, device_id: str, column_id: str) -> Optional[ColumnModel]:
    stmt = (
        select(ColumnModel)
        .join(Board, ColumnModel.board_id == Board.id)
        .where(ColumnModel.id == column_id, Board.device_id == device_id)
    )
    return session.scalar(stmt)


def find_task(session: Session, device_id: str, task_id: str) -> Optional[Task]:
    stmt = (
        select(Task)
        .join(ColumnModel, Task.column_id == ColumnModel.id)
        .join(Board, ColumnModel.board_id == Board.id)
        .where(Task.id == task_id, Board.device_id == device_id)
    )
    return session.scalar(stmt)


def owns(session: Session, device_id: str, entity_id: str, kind: EntityKind) -> bool:
    if kind is EntityKind.COLUMN:
        return find_column(session, device_id, entity_id) is not None
    return find_task(session, device_id, entity_id) is not None


def owned_board(session: Session, device_id: str) -> Board:
    board = find_board(session, device_id)
    if board is None:
        raise NotFoundOrDenied("Board not found for this device")
    return board


def owned_column(
    session: Session,
    device_id: str,
    column_id: str,
    message: str = "Column not found or access denied",
) -> ColumnModel:
    column = find_column(session, device_id, column_id)
    if column is None:
        raise NotFoundOrDenied(message)
    return column


def owned_task(session: Session, device_id: str, task_id: str) -> Task:
    task = find_task(session, device_id, task_id)
    if task is None:
        raise NotFoundOrDenied("Task not found or access denied")
    return task
