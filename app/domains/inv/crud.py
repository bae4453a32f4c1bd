# app/domains/inv/crud.py

"""
CRUD operations for the 'inv' domain.

Writes that touch the ledger run inside `transactional` and go through
`app.domains.inv.ledger`, so balances are recomputed in the same transaction.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.database import transactional
from app.core.exceptions import ConflictingState, NotFound
from app.domains.inv import ledger
from app.domains.inv import models as inv_models
from app.domains.inv import schemas as inv_schemas
from app.domains.prj import models as prj_models

logger = logging.getLogger(__name__)


class CRUDCategory(
    CRUDBase[inv_models.Category, inv_schemas.CategoryCreate, inv_schemas.CategoryUpdate]
):
    async def get_active(self, db: AsyncSession) -> List[inv_models.Category]:
        query = (
            select(self.model)
            .where(self.model.is_active == True)  # noqa: E712
            .order_by(self.model.name)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def count_active_parts(self, db: AsyncSession, *, category_id: int) -> int:
        query = select(func.count(inv_models.Part.id)).where(
            inv_models.Part.category_id == category_id,
            inv_models.Part.is_active == True,  # noqa: E712
        )
        result = await db.execute(query)
        return result.scalar_one()

    async def deactivate(self, db: AsyncSession, *, db_obj: inv_models.Category) -> inv_models.Category:
        """
        Soft-deletes a category. Refused while any active part still
        belongs to it.
        """
        active_parts = await self.count_active_parts(db, category_id=db_obj.id)
        if active_parts > 0:
            raise ConflictingState(
                f"Cannot delete category: it is still used by {active_parts} active part(s)."
            )
        return await self.soft_delete(db, db_obj=db_obj)


class CRUDPart(CRUDBase[inv_models.Part, inv_schemas.PartCreate, inv_schemas.PartUpdate]):
    async def get_detail(self, db: AsyncSession, *, id: int) -> Optional[inv_models.Part]:
        """Fetches a part with fresh category and balance relationships."""
        query = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def get_active(self, db: AsyncSession) -> List[inv_models.Part]:
        query = (
            select(self.model)
            .where(self.model.is_active == True)  # noqa: E712
            .order_by(self.model.name)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_by_sku(self, db: AsyncSession, *, sku: str) -> Optional[inv_models.Part]:
        return await self.get_by_attribute(db, attribute="sku", value=sku)

    async def create_with_ledger(
        self, db: AsyncSession, *, obj_in: inv_schemas.PartCreate, actor_name: str
    ) -> inv_models.Part:
        """
        Creates a part and logs a zero-quantity `create_part` activity, which
        also creates its (empty) balance row.
        """
        category = await db.get(inv_models.Category, obj_in.category_id)
        if category is None:
            raise NotFound("Category not found.")

        async with transactional(db):
            db_part = self.model.model_validate(obj_in)
            db.add(db_part)
            await db.flush()
            await ledger.append_activity(
                db,
                inv_models.Activity(
                    event_type=inv_models.ActivityEventType.CREATE_PART.value,
                    part_id=db_part.id,
                    qty=0,
                    actor_name=actor_name,
                    notes=f'Part "{db_part.name}" ({db_part.sku}) created',
                    tags=["part", "created"],
                    category_name=category.name,
                ),
            )
            part_id = db_part.id

        logger.info("Part %s (%s) created", part_id, obj_in.sku)
        return await self.get_detail(db, id=part_id)


class CRUDActivity:
    """The ledger has no update or delete operations."""

    model = inv_models.Activity

    async def create(
        self, db: AsyncSession, *, obj_in: inv_schemas.ActivityCreate, actor_name: str
    ) -> inv_models.Activity:
        data = obj_in.model_dump()
        data["event_type"] = obj_in.event_type.value
        data["actor_name"] = obj_in.actor_name or actor_name

        if obj_in.part_id is not None:
            part = await db.get(inv_models.Part, obj_in.part_id)
            if part is None:
                raise NotFound("Part not found.")
            if not data.get("category_name") and part.category is not None:
                data["category_name"] = part.category.name

        if obj_in.project_id is not None:
            project = await db.get(prj_models.Project, obj_in.project_id)
            if project is None:
                raise NotFound("Project not found.")
            if not data.get("project"):
                data["project"] = project.name

        async with transactional(db):
            activity = await ledger.append_activity(db, self.model(**data))
            activity_id = activity.id

        return await self.get(db, id=activity_id)

    async def get(self, db: AsyncSession, *, id: int) -> Optional[inv_models.Activity]:
        query = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def get_page(
        self, db: AsyncSession, *, page: int, limit: int
    ) -> Tuple[List[inv_models.Activity], int]:
        """One page of the ledger, newest first, and the total row count."""
        total = (await db.execute(select(func.count(self.model.id)))).scalar_one()
        query = (
            select(self.model)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await db.execute(query)
        return result.scalars().all(), total

    async def get_for_product(self, db: AsyncSession, *, product_id: int) -> List[inv_models.Activity]:
        query = (
            select(self.model)
            .where(self.model.product_id == product_id)
            .order_by(self.model.id)
        )
        result = await db.execute(query)
        return result.scalars().all()


class CRUDInventoryBalance:
    model = inv_models.InventoryBalance

    async def get(self, db: AsyncSession, *, part_id: int) -> Optional[inv_models.InventoryBalance]:
        query = (
            select(self.model)
            .where(self.model.part_id == part_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()


category = CRUDCategory(inv_models.Category)
part = CRUDPart(inv_models.Part)
activity = CRUDActivity()
balance = CRUDInventoryBalance()
