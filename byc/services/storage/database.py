"""
Database plumbing for the candidate profile store.

The only table is ``kv_store`` (see ``models_db``), which holds the profile
blob that the progress tracker updates when an interview is submitted. One
engine and one session factory are created lazily per process; tests swap in
their own engine by assigning ``_engine`` and clearing ``_session_factory``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from byc.core.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for the key-value table."""


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _ensure_sqlite_dir(db_url: str) -> None:
    """``data/byc.db`` lives in a directory that may not exist on first run."""
    url = make_url(db_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def get_engine(url: str | None = None) -> AsyncEngine:
    """Engine for ``url`` or ``settings.database_url``, created on first use."""
    global _engine
    if _engine is None:
        db_url = url or get_settings().database_url
        _ensure_sqlite_dir(db_url)
        _engine = create_async_engine(db_url, echo=False)
    return _engine


def get_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # Profiles are read back after commit (e.g. the progress route)
        _session_factory = async_sessionmaker(
            engine or get_engine(),
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """One unit of work on the profile store.

    Repositories only flush; the profile update is committed here when the
    block exits cleanly and rolled back if it raises, so a failed progress
    write leaves the stored profile untouched.
    """
    factory = get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create ``kv_store`` if it does not exist yet (called from the app lifespan)."""
    from byc.services.storage import models_db  # noqa: F401

    eng = engine or get_engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose the engine on shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def reset_engine() -> None:
    """Forget the engine without disposing it; the owner (a test) disposes."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None
