# app/core/database.py

"""
Database connection and session management.

- Builds the SQLModel async engine.
- Provides session helpers for FastAPI dependencies and background tasks.
- Provides the `transactional` unit-of-work used by every multi-step write.
- Includes a development-only helper that creates schemas and tables.
"""

import logging
from typing import Any, AsyncGenerator, Dict
from contextlib import asynccontextmanager

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine
from sqlalchemy.orm import configure_mappers, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy import text

from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.exceptions import TransientStoreFailure

# Every domain model must be imported so SQLModel.metadata knows all tables
# before configure_mappers() / create_all() run.
from app.domains.usr import models as usr_models  # noqa: F401
from app.domains.inv import models as inv_models  # noqa: F401
from app.domains.prj import models as prj_models  # noqa: F401
from app.domains.tpl import models as tpl_models  # noqa: F401

logger = logging.getLogger(__name__)

# PostgreSQL schemas, one per domain.
SCHEMA = ["usr", "inv", "prj", "tpl"]

# SQLSTATEs that mean "retry the whole transaction".
TRANSIENT_SQLSTATES = {"40001", "40P01"}  # serialization_failure, deadlock_detected


def engine_options(url: str) -> Dict[str, Any]:
    """
    Engine keyword arguments for the given URL.
    SQLite has no schemas, so schema names are translated away and a single
    shared connection is used.
    """
    if url.startswith("sqlite"):
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
            "execution_options": {"schema_translate_map": {name: None for name in SCHEMA}},
        }
    return {
        "pool_recycle": 3600,
        "pool_size": 10,
        "max_overflow": 20,
    }


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL.get_secret_value(),
    echo=settings.DEBUG_MODE,  # echo SQL only in debug mode
    future=True,
    **engine_options(settings.DATABASE_URL.get_secret_value()),
)

AsyncSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

metadata = SQLModel.metadata

_mappers_configured = False


# =============================================================================
# Schema / table creation (development only; use Alembic elsewhere)
# =============================================================================
async def create_db_and_tables(bind: AsyncEngine = engine) -> None:
    """
    Creates the domain schemas and all tables. Existing tables are kept.
    """
    global _mappers_configured

    async with bind.begin() as conn:
        if bind.dialect.name == "postgresql":
            for schema_name in SCHEMA:
                await conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema_name}"))
                logger.debug("Schema '%s' ensured.", schema_name)

        if not _mappers_configured:
            configure_mappers()
            _mappers_configured = True

        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created (or already present).")


# =============================================================================
# Session dependencies
# =============================================================================
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one session per request, closed afterwards.
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Standalone session for ARQ tasks and scripts; commits on success and
    rolls back on error.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# =============================================================================
# Unit of work
# =============================================================================
def is_transient_error(exc: BaseException) -> bool:
    """True when a store error is safe to retry (lost connection, deadlock, serialization)."""
    if isinstance(exc, OperationalError):
        return True
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return True
        orig = exc.orig
        sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        return sqlstate in TRANSIENT_SQLSTATES
    return False


@asynccontextmanager
async def transactional(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Runs the enclosed block as one transaction on `db`.

    Commits when the block finishes. Any error rolls everything back before
    it propagates; retryable store errors are re-raised as
    TransientStoreFailure.
    """
    try:
        yield db
        await db.commit()
    except DBAPIError as e:
        await db.rollback()
        if is_transient_error(e):
            logger.warning("Transient store failure, transaction rolled back: %s", e)
            raise TransientStoreFailure(str(e.orig) if e.orig is not None else str(e)) from e
        raise
    except Exception:
        await db.rollback()
        raise
