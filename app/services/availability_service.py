# app/services/availability_service.py

"""
Availability checking over a set of required part lines.

Used as the pre-check of apply-template and by the template availability
endpoint.
"""

from typing import Iterable, List, NamedTuple

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.domains.inv.models import InventoryBalance


class RequiredLine(NamedTuple):
    part_id: int
    part_name: str
    required_quantity: int


class Shortage(SQLModel):
    part_id: int
    part_name: str
    needed: int
    available: int


class AvailabilityReport(SQLModel):
    can_fulfill: bool
    shortages: List[Shortage] = []


async def check_availability(
    db: AsyncSession, lines: Iterable[RequiredLine], lock: bool = False
) -> AvailabilityReport:
    """
    Compares each line with the part's available stock. A part with no
    balance row counts as 0 available. Every line is checked; all shortages
    are reported together.

    With `lock=True` the balance rows are read with SELECT ... FOR UPDATE, so
    the caller must be inside a transaction.
    """
    lines = [RequiredLine(*line) for line in lines]
    if not lines:
        return AvailabilityReport(can_fulfill=True, shortages=[])

    part_ids = sorted({line.part_id for line in lines})
    query = (
        select(InventoryBalance)
        .where(InventoryBalance.part_id.in_(part_ids))
        .order_by(InventoryBalance.part_id)
        .execution_options(populate_existing=True)
    )
    if lock:
        query = query.with_for_update()

    result = await db.execute(query)
    available_by_part = {b.part_id: b.available for b in result.scalars().all()}

    shortages = []
    for line in lines:
        available = available_by_part.get(line.part_id, 0)
        if available < line.required_quantity:
            shortages.append(Shortage(
                part_id=line.part_id,
                part_name=line.part_name,
                needed=line.required_quantity,
                available=available,
            ))

    return AvailabilityReport(can_fulfill=not shortages, shortages=shortages)
