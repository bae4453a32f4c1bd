# app/core/dependencies.py

"""
FastAPI dependency-injection helpers.

- Database session per request (get_db_session).
- Actor name recorded on ledger entries (get_actor_name).
"""

from typing import AsyncGenerator, Optional

from fastapi import Header
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import get_session as get_main_app_session


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Per-request async session; wraps app.core.database.get_session.
    """
    async for session in get_main_app_session():
        yield session


def get_actor_name(x_actor_name: Optional[str] = Header(None)) -> str:
    """Name written to activities.actor_name; falls back to the system actor."""
    if x_actor_name and x_actor_name.strip():
        return x_actor_name.strip()
    return settings.SYSTEM_ACTOR_NAME
