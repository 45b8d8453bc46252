from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .config import get_settings
from .db import Board, ColumnModel, Task
from .errors import StoreError
from .ownership import find_board, owned_board, owned_column, owned_task
from .positions import COLUMNS, TASKS, compact, lock_parents, next_position
from .reorder import reorder
from .schemas import TaskPatch

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = ("To Do", "In Progress", "Done")


@dataclass
class BoardSnapshot:
    board: Board
    columns: List[ColumnModel]
    tasks_by_column: Dict[str, List[Task]]


class BoardStore:
    """Board, column and task operations for one device.

    Every mutating method runs in a single transaction: ownership check,
    parent lock, position work, write, commit.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("store error, transaction rolled back")
            raise StoreError() from exc
        except Exception:
            self.session.rollback()
            raise

    # === Board operations ===
    def boot(self, device_id: str) -> BoardSnapshot:
        """Return the device's board, creating it with the default columns on first contact."""
        board = find_board(self.session, device_id)
        if board is None:
            board = self._create_board(device_id)
        if not board.columns:
            with self.transaction() as session:
                lock_parents(session, COLUMNS, [board.id])
                if next_position(session, COLUMNS, board.id) == 0:
                    for position, title in enumerate(DEFAULT_COLUMNS):
                        session.add(ColumnModel(board_id=board.id, title=title, position=position))
            self.session.refresh(board)
        return self.snapshot(board)

    def _create_board(self, device_id: str) -> Board:
        board = Board(device_id=device_id, title=get_settings().default_board_title)
        self.session.add(board)
        try:
            self.session.commit()
        except IntegrityError:
            # another request for the same device created it first
            self.session.rollback()
            return owned_board(self.session, device_id)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("could not create board for device %s", device_id)
            raise StoreError() from exc
        logger.info("created board %s for device %s", board.id, device_id)
        return board

    def board_for(self, device_id: str) -> Board:
        return owned_board(self.session, device_id)

    def snapshot(self, board: Board) -> BoardSnapshot:
        columns = list(
            self.session.scalars(
                select(ColumnModel)
                .where(ColumnModel.board_id == board.id)
                .order_by(ColumnModel.position, ColumnModel.created_at, ColumnModel.id)
            )
        )
        tasks_by_column: Dict[str, List[Task]] = {column.id: [] for column in columns}
        tasks = self.session.scalars(
            select(Task)
            .join(ColumnModel, Task.column_id == ColumnModel.id)
            .where(ColumnModel.board_id == board.id)
            .order_by(Task.position, Task.created_at, Task.id)
        )
        for task in tasks:
            tasks_by_column[task.column_id].append(task)
        return BoardSnapshot(board=board, columns=columns, tasks_by_column=tasks_by_column)

    # === Column operations ===
    def create_column(self, device_id: str, title: str) -> ColumnModel:
        with self.transaction() as session:
            board = owned_board(session, device_id)
            lock_parents(session, COLUMNS, [board.id])
            column = ColumnModel(
                board_id=board.id,
                title=title,
                position=next_position(session, COLUMNS, board.id),
            )
            session.add(column)
        logger.info("created column %s at position %d", column.id, column.position)
        return column

    def rename_column(self, device_id: str, column_id: str, title: str) -> ColumnModel:
        with self.transaction() as session:
            column = owned_column(session, device_id, column_id)
            column.title = title
        return column

    def delete_column(self, device_id: str, column_id: str) -> None:
        with self.transaction() as session:
            column = owned_column(session, device_id, column_id)
            board_id = column.board_id
            lock_parents(session, COLUMNS, [board_id])
            session.delete(column)
            compact(session, COLUMNS, board_id)

    def reorder_columns(self, device_id: str, ordered_ids: Sequence[str]) -> None:
        with self.transaction() as session:
            board = owned_board(session, device_id)
            lock_parents(session, COLUMNS, [board.id])
            reorder(session, COLUMNS, board.id, ordered_ids)

    # === Task operations ===
    def create_task(
        self,
        device_id: str,
        column_id: str,
        title: str,
        description: Optional[str],
    ) -> Task:
        with self.transaction() as session:
            column = owned_column(session, device_id, column_id)
            lock_parents(session, TASKS, [column.id])
            task = Task(
                column_id=column.id,
                title=title,
                description=description or None,
                position=next_position(session, TASKS, column.id),
            )
            session.add(task)
        logger.info("created task %s in column %s at position %d", task.id, column_id, task.position)
        return task

    def update_task(self, device_id: str, task_id: str, patch: TaskPatch) -> Task:
        patch.validate()
        with self.transaction() as session:
            task = owned_task(session, device_id, task_id)
            for name, value in patch.changes().items():
                setattr(task, name, value)
            if patch.moves_task and patch.column_id != task.column_id:
                target = owned_column(
                    session, device_id, patch.column_id, "Target column not found or access denied"
                )
                source_id = task.column_id
                lock_parents(session, TASKS, [source_id, target.id])
                task.position = next_position(session, TASKS, target.id)
                task.column_id = target.id
                compact(session, TASKS, source_id)
        return task

    def delete_task(self, device_id: str, task_id: str) -> None:
        with self.transaction() as session:
            task = owned_task(session, device_id, task_id)
            column_id = task.column_id
            lock_parents(session, TASKS, [column_id])
            session.delete(task)
            compact(session, TASKS, column_id)

    def reorder_tasks(self, device_id: str, column_id: str, ordered_ids: Sequence[str]) -> None:
        with self.transaction() as session:
            column = owned_column(session, device_id, column_id)
            lock_parents(session, TASKS, [column.id])
            reorder(session, TASKS, column.id, ordered_ids)
