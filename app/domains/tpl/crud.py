# app/domains/tpl/crud.py

"""
CRUD operations for the 'tpl' domain.
"""

from typing import List, Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.database import transactional
from app.core.exceptions import NotFound
from app.domains.inv.models import Part
from app.domains.tpl import models as tpl_models
from app.domains.tpl import schemas as tpl_schemas


class CRUDProductTemplate(
    CRUDBase[
        tpl_models.ProductTemplate,
        tpl_schemas.ProductTemplateCreate,
        tpl_schemas.ProductTemplateUpdate,
    ]
):
    async def get_detail(self, db: AsyncSession, *, id: int) -> Optional[tpl_models.ProductTemplate]:
        """Template with its part lines (and part names) freshly loaded."""
        query = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def get_active(self, db: AsyncSession) -> List[tpl_models.ProductTemplate]:
        query = (
            select(self.model)
            .where(self.model.is_active == True)  # noqa: E712
            .order_by(self.model.name)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def _check_parts(self, db: AsyncSession, lines: List[tpl_schemas.TemplatePartIn]) -> None:
        part_ids = [line.part_id for line in lines]
        if not part_ids:
            return
        result = await db.execute(select(Part.id).where(Part.id.in_(part_ids)))
        missing = set(part_ids) - set(result.scalars().all())
        if missing:
            raise NotFound(f"Part(s) not found: {sorted(missing)}", data={"part_ids": sorted(missing)})

    async def create_with_parts(
        self, db: AsyncSession, *, obj_in: tpl_schemas.ProductTemplateCreate
    ) -> tpl_models.ProductTemplate:
        await self._check_parts(db, obj_in.parts)

        async with transactional(db):
            db_template = self.model(name=obj_in.name, description=obj_in.description)
            db_template.parts = [
                tpl_models.TemplatePart(part_id=line.part_id, quantity=line.quantity)
                for line in obj_in.parts
            ]
            db.add(db_template)
            await db.flush()
            template_id = db_template.id

        return await self.get_detail(db, id=template_id)

    async def update_with_parts(
        self,
        db: AsyncSession,
        *,
        db_obj: tpl_models.ProductTemplate,
        obj_in: tpl_schemas.ProductTemplateUpdate,
    ) -> tpl_models.ProductTemplate:
        """
        Updates name/description; when `parts` is given the part lines are
        replaced wholesale.
        """
        update_data = obj_in.model_dump(exclude_unset=True, exclude={"parts"})
        if obj_in.parts is not None:
            await self._check_parts(db, obj_in.parts)

        async with transactional(db):
            for key, value in update_data.items():
                setattr(db_obj, key, value)
            db.add(db_obj)

            if obj_in.parts is not None:
                db_obj.parts.clear()
                await db.flush()
                for line in obj_in.parts:
                    db_obj.parts.append(
                        tpl_models.TemplatePart(part_id=line.part_id, quantity=line.quantity)
                    )
            template_id = db_obj.id

        return await self.get_detail(db, id=template_id)


template = CRUDProductTemplate(tpl_models.ProductTemplate)
