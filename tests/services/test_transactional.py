# tests/services/test_transactional.py

"""
The unit-of-work wrapper: which store errors become retryable failures, and
that nothing written inside a failed block survives.
"""

from typing import Callable

import pytest
from sqlalchemy import func
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.database import is_transient_error, transactional
from app.core.exceptions import ConflictingState, TransientStoreFailure
from app.domains.inv import crud as inv_crud
from app.domains.inv import ledger
from app.domains.inv import models as inv_models


class _DriverError(Exception):
    """Stands in for a driver exception carrying a SQLSTATE code."""

    def __init__(self, sqlstate: str):
        super().__init__(f"driver error {sqlstate}")
        self.sqlstate = sqlstate


def _dbapi_error(sqlstate: str = "XX000", connection_invalidated: bool = False) -> DBAPIError:
    return DBAPIError(
        "UPDATE inv.inventory_balances SET ...",
        {},
        _DriverError(sqlstate),
        connection_invalidated=connection_invalidated,
    )


async def _activity_count(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(inv_models.Activity.id)))
    return result.scalar_one()


# =================================================================================
# 1. Error classification
# =================================================================================
@pytest.mark.parametrize(
    "error, transient",
    [
        (OperationalError("SELECT 1", {}, _DriverError("08006")), True),
        (_dbapi_error(connection_invalidated=True), True),
        (_dbapi_error("40001"), True),
        (_dbapi_error("40P01"), True),
        (_dbapi_error("23505"), False),
        (ValueError("not a store error"), False),
    ],
)
def test_is_transient_error(error: Exception, transient: bool):
    assert is_transient_error(error) is transient


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        OperationalError("SELECT 1", {}, _DriverError("08006")),
        _dbapi_error(connection_invalidated=True),
        _dbapi_error("40001"),
        _dbapi_error("40P01"),
    ],
)
async def test_retryable_errors_become_transient_failure(db_session: AsyncSession, error: DBAPIError):
    with pytest.raises(TransientStoreFailure) as exc_info:
        async with transactional(db_session):
            raise error
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_other_store_errors_propagate_unchanged(db_session: AsyncSession):
    error = _dbapi_error("23505")
    with pytest.raises(DBAPIError) as exc_info:
        async with transactional(db_session):
            raise error
    assert exc_info.value is error


# =================================================================================
# 2. Rollback
# =================================================================================
@pytest.mark.asyncio
async def test_failed_block_leaves_no_ledger_rows(
    db_session: AsyncSession, part_factory: Callable, balance_of: Callable
):
    """Rows appended before the failure are rolled back together with the balance update."""
    part = await part_factory("Hex Bolt M8", "HB-M8", stock=10)
    part_id = part.id
    rows_before = await _activity_count(db_session)

    with pytest.raises(TransientStoreFailure):
        async with transactional(db_session):
            await ledger.append_activity(
                db_session,
                inv_models.Activity(event_type="issue", part_id=part_id, qty=4, actor_name="Ines"),
            )
            raise _dbapi_error("40P01")

    assert await _activity_count(db_session) == rows_before
    assert await balance_of(part_id) == {"on_hand": 10, "allocated": 0, "available": 10}


@pytest.mark.asyncio
async def test_failed_block_rolls_back_on_plain_errors(db_session: AsyncSession, part_factory: Callable):
    part = await part_factory("Hex Bolt M8", "HB-M8", stock=2)
    part_id = part.id
    rows_before = await _activity_count(db_session)

    with pytest.raises(RuntimeError):
        async with transactional(db_session):
            await ledger.append_activity(
                db_session,
                inv_models.Activity(event_type="receive", part_id=part_id, qty=1, actor_name="Ines"),
            )
            raise RuntimeError("interrupted")

    assert await _activity_count(db_session) == rows_before


@pytest.mark.asyncio
async def test_constraint_violation_on_update_is_a_conflict(db_session: AsyncSession, part_factory: Callable):
    """A SKU clash that reaches the database is rolled back and reported as a conflict."""
    await part_factory("Hex Bolt M8", "HB-M8")
    second = await part_factory("Hex Bolt M10", "HB-M10")
    second_id = second.id

    with pytest.raises(ConflictingState):
        await inv_crud.part.update(db_session, db_obj=second, obj_in={"sku": "HB-M8"})

    reloaded = await inv_crud.part.get_detail(db_session, id=second_id)
    assert reloaded.sku == "HB-M10"
