# app/domains/inv/ledger.py

"""
The activity ledger and the balance recompute step.

`inv.activities` is append-only. Every append goes through
`append_activity` / `append_activities`, which flush the new rows and then
recompute `inv.inventory_balances` for the touched parts inside the caller's
transaction.

`qty` is always a non-negative magnitude. Its effect on a balance comes from
BALANCE_EFFECTS, the same table the optional PostgreSQL trigger in
`pgsql_scripts` is rendered from.
"""

import logging
from datetime import datetime, UTC
from typing import Dict, Iterable, List, Optional, Tuple, Union

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.domains.inv.models import Activity, ActivityEventType, InventoryBalance, Part

logger = logging.getLogger(__name__)

# event_type -> (on_hand_sign, allocated_sign). Keyed by the plain string value.
BALANCE_EFFECTS: Dict[str, Tuple[int, int]] = {
    ActivityEventType.RECEIVE.value: (1, 0),
    ActivityEventType.ISSUE.value: (-1, 0),
    ActivityEventType.WRITE_OFF.value: (-1, 0),
    ActivityEventType.PROJECT_ALLOCATION.value: (0, 1),
    ActivityEventType.PROJECT_DEALLOCATION.value: (0, -1),
    ActivityEventType.RETURN.value: (0, -1),
}

NO_EFFECT: Tuple[int, int] = (0, 0)


def balance_effect(event_type: Union[str, ActivityEventType]) -> Tuple[int, int]:
    """(on_hand_sign, allocated_sign) for an event type; (0, 0) when it moves nothing."""
    key = event_type.value if isinstance(event_type, ActivityEventType) else event_type
    return BALANCE_EFFECTS.get(key, NO_EFFECT)


def available_effect(event_type: Union[str, ActivityEventType]) -> int:
    on_hand_sign, allocated_sign = balance_effect(event_type)
    return on_hand_sign - allocated_sign


async def append_activity(db: AsyncSession, activity: Activity) -> Activity:
    """Appends one ledger row. See `append_activities`."""
    appended = await append_activities(db, [activity])
    return appended[0]


async def append_activities(db: AsyncSession, activities: Iterable[Activity]) -> List[Activity]:
    """
    Appends ledger rows in one batch and brings the affected balances up to
    date. Nothing is committed here; the caller owns the transaction.
    """
    rows = list(activities)
    if not rows:
        return rows

    for row in rows:
        if isinstance(row.event_type, ActivityEventType):
            row.event_type = row.event_type.value
        if row.qty is None or row.qty < 0:
            raise ValueError(f"Activity qty must be a non-negative magnitude, got {row.qty!r}")

    db.add_all(rows)
    await db.flush()

    if settings.BALANCES_MAINTAINED_BY_DB_TRIGGER:
        return rows

    part_ids = sorted({row.part_id for row in rows if row.part_id is not None})
    for part_id in part_ids:
        await recompute_balance(db, part_id)
    return rows


async def _ensure_balance_row(db: AsyncSession, part_id: int) -> None:
    """Creates an all-zero balance row for the part unless one exists (ON CONFLICT DO NOTHING)."""
    if db.get_bind().dialect.name == "postgresql":
        insert_stmt = pg_insert(InventoryBalance)
    else:
        insert_stmt = sqlite_insert(InventoryBalance)

    stmt = insert_stmt.values(
        part_id=part_id, on_hand=0, allocated=0, available=0, updated_at=datetime.now(UTC)
    ).on_conflict_do_nothing(index_elements=["part_id"])
    await db.execute(stmt)


async def recompute_balance(db: AsyncSession, part_id: int) -> InventoryBalance:
    """
    Replays the whole ledger of one part into its balance row (upsert).
    The result depends only on the ledger, so repeating it is harmless.

    The balance row is locked before the ledger is summed, so the sum sees
    every activity committed by a writer that held the lock before us.
    """
    await _ensure_balance_row(db, part_id)
    locked = await db.execute(
        select(InventoryBalance)
        .where(InventoryBalance.part_id == part_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    balance = locked.scalars().one()

    query = (
        select(Activity.event_type, func.coalesce(func.sum(Activity.qty), 0))
        .where(Activity.part_id == part_id)
        .group_by(Activity.event_type)
    )
    result = await db.execute(query)

    on_hand = 0
    allocated = 0
    for event_type, total in result.all():
        on_hand_sign, allocated_sign = balance_effect(event_type)
        on_hand += on_hand_sign * int(total)
        allocated += allocated_sign * int(total)

    balance.on_hand = on_hand
    balance.allocated = allocated
    balance.available = on_hand - allocated
    balance.updated_at = datetime.now(UTC)
    await db.flush()

    logger.debug(
        "Balance for part %s: on_hand=%s allocated=%s available=%s",
        part_id, on_hand, allocated, balance.available,
    )
    return balance


async def recompute_all(db: AsyncSession, part_ids: Optional[List[int]] = None) -> int:
    """Recomputes the balances of the given parts (all parts when None). Returns the count."""
    query = select(Part.id).order_by(Part.id)
    if part_ids is not None:
        query = query.where(Part.id.in_(part_ids))
    result = await db.execute(query)
    ids = result.scalars().all()

    for part_id in ids:
        await recompute_balance(db, part_id)
    return len(ids)
