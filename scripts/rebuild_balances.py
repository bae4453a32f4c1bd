# flake8: noqa
# scripts/rebuild_balances.py

import asyncio
from typing import List, Optional

import typer

from app.core.database import engine, get_async_session_context
from app.domains.inv import ledger

cli = typer.Typer()


async def rebuild(part_ids: Optional[List[int]]) -> int:
    """Replays the activity ledger into inv.inventory_balances and commits."""
    async with get_async_session_context() as db:
        rebuilt = await ledger.recompute_all(db, part_ids)
    await engine.dispose()
    return rebuilt


@cli.command()
def main(
    part_id: Optional[List[int]] = typer.Option(
        None, '--part-id', '-p',
        help="Part to rebuild. Repeat for several parts; every part when omitted."
    ),
):
    """
    Rebuilds inventory balances from the activity ledger.
    """
    part_ids = part_id or None
    scope = "every part" if part_ids is None else f"parts {part_ids}"
    print(f"Rebuilding inventory balances for {scope}...")

    rebuilt = asyncio.run(rebuild(part_ids))
    print(f"Done. {rebuilt} balance row(s) rebuilt.")


if __name__ == "__main__":
    cli()
