from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import __version__
from .auth import get_device_id
from .config import get_settings
from .db import Board, ColumnModel, Task, get_session, init_db
from .errors import ValidationError, install_error_handlers
from .schemas import (
    BoardOut,
    ColumnCreate,
    ColumnOut,
    ColumnReorder,
    ColumnUpdate,
    TaskCreate,
    TaskOut,
    TaskPatch,
    TaskReorder,
    TaskUpdate,
)
from .storage import BoardSnapshot, BoardStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Flashboard API", version=__version__, lifespan=lifespan)
install_error_handlers(app)

router = APIRouter(prefix=get_settings().api_root)


# === Helpers ===


def board_out(board: Board) -> BoardOut:
    return BoardOut(
        id=board.id,
        device_id=board.device_id,
        title=board.title,
        created_at=board.created_at,
    )


def column_out(column: ColumnModel) -> ColumnOut:
    return ColumnOut(
        id=column.id,
        board_id=column.board_id,
        title=column.title,
        position=column.position,
        created_at=column.created_at,
    )


def task_out(task: Task) -> TaskOut:
    return TaskOut(
        id=task.id,
        column_id=task.column_id,
        title=task.title,
        description=task.description,
        position=task.position,
        created_at=task.created_at,
    )


def snapshot_out(snapshot: BoardSnapshot) -> dict:
    return {
        "board": board_out(snapshot.board),
        "columns": [column_out(c) for c in snapshot.columns],
        "tasksByColumn": {
            column_id: [task_out(t) for t in tasks]
            for column_id, tasks in snapshot.tasks_by_column.items()
        },
    }


def get_store(session: Session = Depends(get_session)) -> BoardStore:
    return BoardStore(session)


# === Health & metadata ===


@app.get("/api/health")
def health(session: Session = Depends(get_session)):
    try:
        db_time = session.execute(text("SELECT CURRENT_TIMESTAMP")).scalar()
    except SQLAlchemyError as exc:
        logger.exception("health check failed")
        return JSONResponse(status_code=500, content={"ok": False, "error": type(exc).__name__})
    return {"ok": True, "db_time": str(db_time)}


@app.get("/api/version")
def version() -> dict:
    return {"version": __version__}


# === Board endpoints ===


@router.get("/boot", response_model=dict)
def boot(device_id: str = Depends(get_device_id), store: BoardStore = Depends(get_store)):
    return snapshot_out(store.boot(device_id))


@router.get("/board", response_model=dict)
def get_board(device_id: str = Depends(get_device_id), store: BoardStore = Depends(get_store)):
    board = store.board_for(device_id)
    return snapshot_out(store.snapshot(board))


# === Column endpoints ===
# /columns/reorder is registered before /columns/{column_id} so it wins the match.


@router.post("/columns", response_model=dict)
def create_column(
    payload: ColumnCreate,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    column = store.create_column(device_id, payload.title)
    return {"column": column_out(column)}


@router.patch("/columns/reorder", response_model=dict)
def reorder_columns(
    payload: ColumnReorder,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    if not payload.ordered_ids:
        raise ValidationError("ordered_ids required")
    store.reorder_columns(device_id, payload.ordered_ids)
    return {"success": True}


@router.patch("/columns/{column_id}", response_model=dict)
def rename_column(
    column_id: str,
    payload: ColumnUpdate,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    column = store.rename_column(device_id, column_id, payload.title)
    return {"column": column_out(column)}


@router.delete("/columns/{column_id}", response_model=dict)
def delete_column(
    column_id: str,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    store.delete_column(device_id, column_id)
    return {"success": True}


# === Task endpoints ===


@router.post("/tasks", response_model=dict)
def create_task(
    payload: TaskCreate,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    task = store.create_task(device_id, payload.columnId, payload.title, payload.description)
    return {"task": task_out(task)}


@router.patch("/tasks/reorder", response_model=dict)
def reorder_tasks(
    payload: TaskReorder,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    if not payload.column_id or not payload.ordered_ids:
        raise ValidationError("column_id and ordered_ids required")
    store.reorder_tasks(device_id, payload.column_id, payload.ordered_ids)
    return {"success": True}


@router.patch("/tasks/{task_id}", response_model=dict)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    task = store.update_task(device_id, task_id, TaskPatch.from_update(payload))
    return {"task": task_out(task)}


@router.delete("/tasks/{task_id}", response_model=dict)
def delete_task(
    task_id: str,
    device_id: str = Depends(get_device_id),
    store: BoardStore = Depends(get_store),
):
    store.delete_task(device_id, task_id)
    return {"success": True}


app.include_router(router)
