"""Async engine and session factory wiring."""

from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from berkomunitas_api.core.settings import settings


def _enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    """Make every SQLite transaction take the write lock when it begins.

    pysqlite defers BEGIN until the first write, which lets two redemption
    transactions read the same stock before either one writes. Emitting
    ``BEGIN IMMEDIATE`` serializes writers the way ``SELECT ... FOR UPDATE``
    does on PostgreSQL.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record) -> None:  # noqa: ANN001
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn) -> None:  # noqa: ANN001
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with dialect specific transaction handling."""

    engine = create_async_engine(database_url, echo=echo, future=True)
    if make_url(database_url).get_backend_name() == "sqlite":
        _enable_sqlite_immediate_transactions(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


engine = build_engine(settings.database_url, echo=settings.database_echo)
async_session = build_session_factory(engine)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency yielding a request scoped session."""

    async with async_session() as session:
        yield session
