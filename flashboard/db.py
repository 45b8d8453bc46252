from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship, sessionmaker

from .config import get_settings
from .utils import new_uuid


def now_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


DATABASE_URL = get_settings().database_url


class Base(DeclarativeBase):
    pass


class Board(Base):
    __tablename__ = "kb_boards"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    device_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(100))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    columns: Mapped[list[ColumnModel]] = relationship(
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="ColumnModel.position",
    )


class ColumnModel(Base):
    __tablename__ = "kb_columns"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    board_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("kb_boards.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(50))
    position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    board: Mapped[Board] = relationship(back_populates="columns")
    tasks: Mapped[list[Task]] = relationship(
        back_populates="column",
        cascade="all, delete-orphan",
        order_by="Task.position",
    )


class Task(Base):
    __tablename__ = "kb_tasks"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    column_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("kb_columns.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    column: Mapped[ColumnModel] = relationship(back_populates="tasks")


def configure_sqlite(target: Engine) -> None:
    """Enforce ``ON DELETE CASCADE`` and serialise writers on SQLite.

    pysqlite defers ``BEGIN`` until the first write, so two sessions could
    both read ``MAX(position)`` before either inserts. Transactions are
    started with ``BEGIN IMMEDIATE`` instead, which takes the database write
    lock up front and serialises allocators the way ``FOR UPDATE`` does on
    other backends.
    """
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        # hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(target, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
configure_sqlite(engine)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def get_session() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
