# app/domains/inv/tasks.py

import logging
from typing import Any, Dict, List, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import get_async_session_context
from app.domains.inv import ledger

logger = logging.getLogger(__name__)


async def rebuild_inventory_balances(
    ctx: Dict[str, Any], part_ids: Optional[List[int]] = None
) -> Dict[str, Any]:
    """
    Replays the activity ledger into inv.inventory_balances.

    Runs on the session in ctx['db'] when the caller provides one (inline
    execution from a request); the ARQ worker gets its own session.
    """
    scope = "all parts" if part_ids is None else f"parts {part_ids}"
    logger.info("Background job started: rebuilding inventory balances for %s", scope)

    db: Optional[AsyncSession] = ctx.get("db")
    if db is not None:
        rebuilt = await ledger.recompute_all(db, part_ids)
        await db.commit()
    else:
        async with get_async_session_context() as session:
            rebuilt = await ledger.recompute_all(session, part_ids)

    logger.info("Job finished: %s balance rows rebuilt.", rebuilt)
    return {"status": "ok", "rebuilt_count": rebuilt}
