import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from core.config import get_settings
from core.exceptions import DocumentStoreError

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(database_url: str) -> dict[str, Any]:
    """Pool sizing only applies to server databases; SQLite manages its own pool"""
    if database_url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": True,
        "pool_size": 20,
        "max_overflow": 30,
        "pool_recycle": 3600,
    }


engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)

Base = declarative_base()


async def create_tables() -> None:
    """Create all tables (development / SQLite deployments)"""
    # Import models so they register on Base.metadata
    import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """Session for GET endpoints; never committed, closed after the response"""
    async with AsyncSessionLocal() as session:
        yield session


AFTER_COMMIT_KEY = "after_commit"

AfterCommitAction = Callable[[], Optional[Awaitable[Any]]]


def after_commit(session: AsyncSession, action: AfterCommitAction) -> None:
    """
    Defer `action` until the session's transaction has committed.

    Actions run in registration order and are discarded on rollback. Only
    sessions opened through transaction() run them.
    """
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(action)


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> AsyncIterator[AsyncSession]:
    """
    One session, one transaction: commit when the block exits normally,
    roll back if it raises, then run the after-commit actions.
    """
    async with session_factory() as session:
        try:
            async with session.begin():
                yield session
        except SQLAlchemyError as e:
            session.info.pop(AFTER_COMMIT_KEY, None)
            logger.error(f"Transaction commit failed: {e}")
            raise DocumentStoreError("commit", str(e)) from e
        except BaseException:
            session.info.pop(AFTER_COMMIT_KEY, None)
            raise

        for action in session.info.pop(AFTER_COMMIT_KEY, []):
            result = action()
            if inspect.isawaitable(result):
                await result


async def get_db_transactional():
    """
    Session for timeline and message writes.

    The whole request runs in one transaction: committed when the endpoint
    returns, rolled back if it raises (including RecordNotFoundError). Cache
    invalidation and blob cleanup registered with after_commit() run only
    once the commit has succeeded.
    """
    async with transaction() as session:
        yield session
