from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import ValidationError

COLUMN_TITLE_MAX = 50
TASK_TITLE_MAX = 100
TASK_DESCRIPTION_MAX = 500


class RequestBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# === Requests ===


class ColumnCreate(RequestBody):
    title: str = Field(min_length=1, max_length=COLUMN_TITLE_MAX)


class ColumnUpdate(RequestBody):
    title: str = Field(min_length=1, max_length=COLUMN_TITLE_MAX)


class ColumnReorder(BaseModel):
    ordered_ids: Optional[list[str]] = None


class TaskCreate(RequestBody):
    columnId: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=TASK_TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=TASK_DESCRIPTION_MAX)


class TaskUpdate(RequestBody):
    title: Optional[str] = Field(default=None, min_length=1, max_length=TASK_TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=TASK_DESCRIPTION_MAX)
    columnId: Optional[str] = Field(default=None, min_length=1)


class TaskReorder(BaseModel):
    column_id: Optional[str] = None
    ordered_ids: Optional[list[str]] = None


# === Responses ===


class BoardOut(BaseModel):
    id: str
    device_id: str
    title: str
    created_at: datetime


class ColumnOut(BaseModel):
    id: str
    board_id: str
    title: str
    position: int
    created_at: datetime


class TaskOut(BaseModel):
    id: str
    column_id: str
    title: str
    description: Optional[str]
    position: int
    created_at: datetime


# === Partial task update ===


@dataclass(frozen=True)
class TaskPatch:
    """Fields a caller asked to change on a task.

    ``provided`` records which fields were present in the request so that an
    explicit ``description: null`` clears the description while an absent
    description leaves it untouched.
    """

    STORAGE_COLUMNS: ClassVar[dict[str, str]] = {
        "title": "title",
        "description": "description",
        "column_id": "column_id",
    }

    title: Optional[str] = None
    description: Optional[str] = None
    column_id: Optional[str] = None
    provided: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_update(cls, payload: TaskUpdate) -> TaskPatch:
        aliases = {"title": "title", "description": "description", "columnId": "column_id"}
        provided = frozenset(aliases[name] for name in payload.model_fields_set if name in aliases)
        return cls(
            title=payload.title,
            description=payload.description or None,
            column_id=payload.columnId,
            provided=provided,
        )

    @property
    def moves_task(self) -> bool:
        return "column_id" in self.provided

    def validate(self) -> None:
        if not self.provided:
            raise ValidationError("No valid fields to update")
        if "title" in self.provided and self.title is None:
            raise ValidationError("Missing or invalid title")
        if "column_id" in self.provided and self.column_id is None:
            raise ValidationError("Missing or invalid columnId")

    def changes(self) -> dict[str, Any]:
        """Map the provided fields onto storage column names, ``column_id`` excluded."""
        return {
            self.STORAGE_COLUMNS[name]: getattr(self, name)
            for name in ("title", "description")
            if name in self.provided
        }
