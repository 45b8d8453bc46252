"""Optimistic drag-and-drop moves against the board API.

A move is applied to the local :class:`BoardState` first, then sent to the
server. If any call fails the local state goes back to the value it had just
before the move. Each optimistic mutation carries a version number; a failure
that arrives after a newer mutation was applied is ignored instead of
clobbering the newer state.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .client import ApiError, KanbanClient
from .models import BoardState, ColumnView, TaskView
from .utils import move_item

logger = logging.getLogger(__name__)


class DragPhase(str, enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    PREVIEWING = "previewing"
    COMMITTING = "committing"


@dataclass(frozen=True)
class OptimisticMutation:
    version: int
    snapshot: BoardState
    tentative: BoardState


@dataclass(frozen=True)
class DragGesture:
    task_id: str
    origin_column_id: str
    preview_column_id: Optional[str] = None


def _log_error(action: str, exc: Exception) -> None:
    logger.warning("%s failed: %s", action, exc)


class MoveCoordinator:
    """Owns the local board state and keeps it in step with the server.

    ``on_error`` is told about failures the user should see (task creation
    and deletion). Move and reorder failures are only logged and rolled back.
    """

    def __init__(
        self,
        api: KanbanClient,
        state: BoardState,
        on_error: Callable[[str, Exception], None] = _log_error,
    ) -> None:
        self.api = api
        self.on_error = on_error
        self._state = state
        self._version = 0
        self._gesture: Optional[DragGesture] = None
        self._committing = False

    @classmethod
    def boot(cls, api: KanbanClient, **kwargs) -> MoveCoordinator:
        return cls(api, BoardState.from_payload(api.boot()), **kwargs)

    @property
    def state(self) -> BoardState:
        return self._state

    @property
    def view(self) -> BoardState:
        """State to render: the committed state plus any hover preview."""
        gesture = self._gesture
        if gesture is None or gesture.preview_column_id is None:
            return self._state
        return self._state.with_task_moved(gesture.task_id, gesture.preview_column_id)

    @property
    def phase(self) -> DragPhase:
        if self._committing:
            return DragPhase.COMMITTING
        if self._gesture is None:
            return DragPhase.IDLE
        if self._gesture.preview_column_id is not None:
            return DragPhase.PREVIEWING
        return DragPhase.DRAGGING

    # === Optimistic mutations ===
    def apply(self, tentative: BoardState) -> OptimisticMutation:
        self._version += 1
        mutation = OptimisticMutation(self._version, self._state, tentative)
        self._state = tentative
        return mutation

    def revert(self, mutation: OptimisticMutation) -> bool:
        if mutation.version != self._version:
            logger.info("discarding stale rollback of mutation %d (current %d)", mutation.version, self._version)
            return False
        self._state = mutation.snapshot
        return True

    def _run(self, tentative: BoardState, calls: list[Callable[[], object]], action: str) -> bool:
        mutation = self.apply(tentative)
        try:
            for call in calls:
                call()
        except ApiError as exc:
            logger.warning("%s failed, rolling back: %s", action, exc)
            self.revert(mutation)
            return False
        return True

    # === Drag gesture ===
    def pick_up(self, task_id: str) -> None:
        if self._gesture is not None:
            raise RuntimeError("a drag is already in progress")
        task = self._state.find_task(task_id)
        if task is None:
            raise KeyError(task_id)
        self._gesture = DragGesture(task_id=task_id, origin_column_id=task.column_id)

    def hover(self, target_id: str) -> None:
        """Preview the dragged task over ``target_id`` (a column or a task). No network."""
        gesture = self._gesture
        if gesture is None:
            return
        column_id = self._target_column(target_id)
        if column_id is None:
            return
        preview = column_id if column_id != gesture.origin_column_id else None
        self._gesture = DragGesture(gesture.task_id, gesture.origin_column_id, preview)

    def cancel(self) -> None:
        self._gesture = None

    def drop(self, target_id: Optional[str]) -> bool:
        """Finish the gesture over ``target_id``.

        Returns True when a move was committed to the server, False when the
        drop was a no-op, was cancelled or was rolled back.
        """
        gesture = self._gesture
        self._gesture = None
        if gesture is None or target_id is None:
            return False
        column_id = self._target_column(target_id)
        # the task may have been deleted while it was being dragged
        task = self._state.find_task(gesture.task_id)
        if column_id is None or task is None:
            return False

        self._committing = True
        try:
            if column_id != task.column_id:
                return self._move_across(task.id, task.column_id, column_id)
            return self._move_within(task.id, column_id, target_id)
        finally:
            self._committing = False

    def _target_column(self, target_id: str) -> Optional[str]:
        if self._state.has_column(target_id):
            return target_id
        task = self._state.find_task(target_id)
        return task.column_id if task else None

    def _move_across(self, task_id: str, source_id: str, target_id: str) -> bool:
        tentative = self._state.with_task_moved(task_id, target_id)
        source_ids = tentative.task_ids(source_id)
        target_ids = tentative.task_ids(target_id)

        calls = [lambda: self.api.update_task(task_id, column_id=target_id)]
        if source_ids:
            calls.append(lambda: self.api.reorder_tasks(source_id, source_ids))
        calls.append(lambda: self.api.reorder_tasks(target_id, target_ids))
        return self._run(tentative, calls, f"move task {task_id}")

    def _move_within(self, task_id: str, column_id: str, target_id: str) -> bool:
        ids = self._state.task_ids(column_id)
        old_index = ids.index(task_id)
        new_index = ids.index(target_id) if target_id in ids else len(ids) - 1
        if old_index == new_index:
            return False
        ordered = move_item(ids, old_index, new_index)
        tentative = self._state.with_task_order(column_id, ordered)
        calls = [lambda: self.api.reorder_tasks(column_id, ordered)]
        return self._run(tentative, calls, f"reorder column {column_id}")

    # === Column drag ===
    def move_column(self, column_id: str, to_index: int) -> bool:
        ids = self._state.column_ids()
        if column_id not in ids:
            return False
        old_index = ids.index(column_id)
        to_index = max(0, min(to_index, len(ids) - 1))
        if old_index == to_index:
            return False
        ordered = move_item(ids, old_index, to_index)
        tentative = self._state.with_column_order(ordered)
        return self._run(tentative, [lambda: self.api.reorder_columns(ordered)], "reorder columns")

    # === Create / rename / delete ===
    def create_task(self, column_id: str, title: str, description: Optional[str] = None) -> Optional[TaskView]:
        try:
            payload = self.api.create_task(column_id, title, description)
        except ApiError as exc:
            self.on_error("create task", exc)
            return None
        task = TaskView.from_payload(payload["task"])
        self._state = self._state.with_task_added(task)
        return task

    def delete_task(self, task_id: str) -> bool:
        mutation = self.apply(self._state.without_task(task_id))
        try:
            self.api.delete_task(task_id)
        except ApiError as exc:
            self.revert(mutation)
            self.on_error("delete task", exc)
            return False
        return True

    def create_column(self, title: str) -> Optional[ColumnView]:
        try:
            payload = self.api.create_column(title)
        except ApiError as exc:
            self.on_error("create column", exc)
            return None
        column = ColumnView.from_payload(payload["column"])
        self._state = self._state.with_column_added(column)
        return column

    def rename_column(self, column_id: str, title: str) -> bool:
        tentative = self._state.with_column_renamed(column_id, title)
        return self._run(tentative, [lambda: self.api.rename_column(column_id, title)], "rename column")

    def delete_column(self, column_id: str) -> bool:
        mutation = self.apply(self._state.without_column(column_id))
        try:
            self.api.delete_column(column_id)
        except ApiError as exc:
            self.revert(mutation)
            self.on_error("delete column", exc)
            return False
        return True
