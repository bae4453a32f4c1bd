# app/domains/inv/routers.py

import math
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, status
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core import dependencies as deps
from app.core.config import settings
from app.domains.inv import crud as inv_crud, schemas as inv_schemas
from app.domains.inv import tasks as inv_tasks

router = APIRouter(
    tags=["Inventory Management"],
    responses={404: {"description": "Not found"}},
)


# =============================================================================
# 1. inv.categories
# =============================================================================
@router.post("/categories", response_model=inv_schemas.CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_create: inv_schemas.CategoryCreate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    return await inv_crud.category.create(db=db, obj_in=category_create)


@router.get("/categories", response_model=List[inv_schemas.CategoryResponse])
async def read_categories(db: AsyncSession = Depends(deps.get_db_session)):
    """Lists active categories ordered by name."""
    return await inv_crud.category.get_active(db)


@router.patch("/categories/{category_id}", response_model=inv_schemas.CategoryResponse)
async def update_category(
    category_id: int,
    category_update: inv_schemas.CategoryUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    db_category = await inv_crud.category.get(db, id=category_id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Category not found.")
    return await inv_crud.category.update(db=db, db_obj=db_category, obj_in=category_update)


@router.delete("/categories/{category_id}", response_model=inv_schemas.CategoryResponse)
async def delete_category(category_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Deactivates a category. Returns 409 while active parts still use it."""
    db_category = await inv_crud.category.get(db, id=category_id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Category not found.")
    return await inv_crud.category.deactivate(db, db_obj=db_category)


# =============================================================================
# 2. inv.parts
# =============================================================================
@router.post("/parts", response_model=inv_schemas.PartResponse, status_code=status.HTTP_201_CREATED)
async def create_part(
    part_create: inv_schemas.PartCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    actor_name: str = Depends(deps.get_actor_name),
):
    """Creates a part. Its balance starts at zero."""
    if await inv_crud.part.get_by_sku(db, sku=part_create.sku):
        raise HTTPException(status_code=400, detail="Part with this SKU already exists.")
    return await inv_crud.part.create_with_ledger(db, obj_in=part_create, actor_name=actor_name)


@router.get("/parts", response_model=List[inv_schemas.PartResponse])
async def read_parts(db: AsyncSession = Depends(deps.get_db_session)):
    """Lists active parts with their category and balance."""
    return await inv_crud.part.get_active(db)


@router.get("/parts/{part_id}", response_model=inv_schemas.PartResponse)
async def read_part(part_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    db_part = await inv_crud.part.get_detail(db, id=part_id)
    if db_part is None:
        raise HTTPException(status_code=404, detail="Part not found.")
    return db_part


@router.patch("/parts/{part_id}", response_model=inv_schemas.PartResponse)
async def update_part(
    part_id: int,
    part_update: inv_schemas.PartUpdate,
    db: AsyncSession = Depends(deps.get_db_session),
):
    db_part = await inv_crud.part.get(db, id=part_id)
    if db_part is None:
        raise HTTPException(status_code=404, detail="Part not found.")

    if part_update.sku and part_update.sku != db_part.sku:
        if await inv_crud.part.get_by_sku(db, sku=part_update.sku):
            raise HTTPException(status_code=400, detail="Part with this SKU already exists.")
    if part_update.category_id is not None:
        if await inv_crud.category.get(db, id=part_update.category_id) is None:
            raise HTTPException(status_code=404, detail="Category not found.")

    await inv_crud.part.update(db=db, db_obj=db_part, obj_in=part_update)
    return await inv_crud.part.get_detail(db, id=part_id)


@router.delete("/parts/{part_id}", response_model=inv_schemas.PartResponse)
async def delete_part(part_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    """Deactivates a part. Its ledger history and balance are kept."""
    db_part = await inv_crud.part.get(db, id=part_id)
    if db_part is None:
        raise HTTPException(status_code=404, detail="Part not found.")
    await inv_crud.part.soft_delete(db, db_obj=db_part)
    return await inv_crud.part.get_detail(db, id=part_id)


# =============================================================================
# 3. inv.activities
# =============================================================================
@router.post("/activities", response_model=inv_schemas.ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    activity_create: inv_schemas.ActivityCreate,
    db: AsyncSession = Depends(deps.get_db_session),
    actor_name: str = Depends(deps.get_actor_name),
):
    """
    Records a ledger event (receive, issue, write-off, ...). The part's
    balance is recomputed in the same transaction.
    """
    return await inv_crud.activity.create(db, obj_in=activity_create, actor_name=actor_name)


@router.get("/activities", response_model=inv_schemas.ActivityPage)
async def read_activities(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(deps.get_db_session),
):
    """The activity log, newest first."""
    page_size = limit or settings.DEFAULT_PAGE_SIZE
    rows, total = await inv_crud.activity.get_page(db, page=page, limit=page_size)
    return {
        "data": rows,
        "pagination": {
            "total_items": total,
            "current_page": page,
            "page_size": page_size,
            "total_pages": math.ceil(total / page_size),
        },
    }


# =============================================================================
# 4. inv.inventory_balances
# =============================================================================
@router.get("/balances/{part_id}", response_model=inv_schemas.InventoryBalanceResponse)
async def read_balance(part_id: int, db: AsyncSession = Depends(deps.get_db_session)):
    db_balance = await inv_crud.balance.get(db, part_id=part_id)
    if db_balance is None:
        raise HTTPException(status_code=404, detail="Balance not found.")
    return db_balance


@router.post("/balances/rebuild", status_code=status.HTTP_202_ACCEPTED)
async def rebuild_balances(
    request: Request,
    rebuild_request: Optional[inv_schemas.BalanceRebuildRequest] = Body(None),
    db: AsyncSession = Depends(deps.get_db_session),
):
    """
    Replays the ledger into the balance table. Queued on the ARQ worker when
    Redis is configured; otherwise runs within the request.
    """
    part_ids = rebuild_request.part_ids if rebuild_request else None
    arq_redis_pool = getattr(request.app.state, "redis", None)

    if arq_redis_pool:
        job = await arq_redis_pool.enqueue_job(inv_tasks.rebuild_inventory_balances.__name__, part_ids)
        return {"status": "queued", "job_id": job.job_id if job else None}

    return await inv_tasks.rebuild_inventory_balances({"db": db}, part_ids)
