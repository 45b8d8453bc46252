from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Sequence, Tuple


# === Client-side view of a board ===
# Values are immutable; every ``with_*`` helper returns a new BoardState.


@dataclass(frozen=True)
class ColumnView:
    id: str
    title: str
    position: int

    @classmethod
    def from_payload(cls, data: Mapping) -> ColumnView:
        return cls(id=data["id"], title=data["title"], position=data["position"])


@dataclass(frozen=True)
class TaskView:
    id: str
    column_id: str
    title: str
    description: Optional[str]
    position: int

    @classmethod
    def from_payload(cls, data: Mapping) -> TaskView:
        return cls(
            id=data["id"],
            column_id=data["column_id"],
            title=data["title"],
            description=data.get("description"),
            position=data["position"],
        )


@dataclass(frozen=True)
class BoardState:
    board_id: str
    columns: Tuple[ColumnView, ...] = ()
    tasks_by_column: Dict[str, Tuple[TaskView, ...]] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping) -> BoardState:
        """Build a state from a ``/boot`` or ``/board`` response body."""
        columns = tuple(
            sorted((ColumnView.from_payload(c) for c in payload["columns"]), key=lambda c: c.position)
        )
        tasks_by_column = {column.id: () for column in columns}
        for column_id, tasks in payload.get("tasksByColumn", {}).items():
            views = (TaskView.from_payload(t) for t in tasks)
            tasks_by_column[column_id] = tuple(sorted(views, key=lambda t: t.position))
        return cls(board_id=payload["board"]["id"], columns=columns, tasks_by_column=tasks_by_column)

    # === Lookups ===
    def column_ids(self) -> list[str]:
        return [c.id for c in self.columns]

    def has_column(self, column_id: str) -> bool:
        return column_id in self.tasks_by_column

    def tasks(self, column_id: str) -> Tuple[TaskView, ...]:
        return self.tasks_by_column.get(column_id, ())

    def task_ids(self, column_id: str) -> list[str]:
        return [t.id for t in self.tasks(column_id)]

    def find_task(self, task_id: str) -> Optional[TaskView]:
        for tasks in self.tasks_by_column.values():
            for task in tasks:
                if task.id == task_id:
                    return task
        return None

    # === Task helpers ===
    def with_task_order(self, column_id: str, ordered_ids: Sequence[str]) -> BoardState:
        lookup = {t.id: t for t in self.tasks(column_id)}
        tasks = tuple(
            replace(lookup[task_id], position=index) for index, task_id in enumerate(ordered_ids)
        )
        return self._with_tasks(column_id, tasks)

    def with_task_moved(self, task_id: str, to_column_id: str) -> BoardState:
        """Move a task to the end of ``to_column_id``, renumbering both columns."""
        task = self.find_task(task_id)
        if task is None or task.column_id == to_column_id:
            return self
        source = [t.id for t in self.tasks(task.column_id) if t.id != task_id]
        moved = replace(task, column_id=to_column_id, position=len(self.tasks(to_column_id)))
        state = self.with_task_order(task.column_id, source)
        return state._with_tasks(to_column_id, state.tasks(to_column_id) + (moved,))

    def with_task_added(self, task: TaskView) -> BoardState:
        return self._with_tasks(task.column_id, self.tasks(task.column_id) + (task,))

    def without_task(self, task_id: str) -> BoardState:
        task = self.find_task(task_id)
        if task is None:
            return self
        remaining = [t.id for t in self.tasks(task.column_id) if t.id != task_id]
        return self.with_task_order(task.column_id, remaining)

    def _with_tasks(self, column_id: str, tasks: Tuple[TaskView, ...]) -> BoardState:
        tasks_by_column = dict(self.tasks_by_column)
        tasks_by_column[column_id] = tasks
        return replace(self, tasks_by_column=tasks_by_column)

    # === Column helpers ===
    def with_column_order(self, ordered_ids: Sequence[str]) -> BoardState:
        lookup = {c.id: c for c in self.columns}
        columns = tuple(
            replace(lookup[column_id], position=index) for index, column_id in enumerate(ordered_ids)
        )
        return replace(self, columns=columns)

    def with_column_added(self, column: ColumnView) -> BoardState:
        tasks_by_column = dict(self.tasks_by_column)
        tasks_by_column.setdefault(column.id, ())
        return replace(self, columns=self.columns + (column,), tasks_by_column=tasks_by_column)

    def with_column_renamed(self, column_id: str, title: str) -> BoardState:
        columns = tuple(replace(c, title=title) if c.id == column_id else c for c in self.columns)
        return replace(self, columns=columns)

    def without_column(self, column_id: str) -> BoardState:
        tasks_by_column = dict(self.tasks_by_column)
        tasks_by_column.pop(column_id, None)
        remaining = [c.id for c in self.columns if c.id != column_id]
        return replace(self, tasks_by_column=tasks_by_column).with_column_order(remaining)
