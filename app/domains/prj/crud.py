# app/domains/prj/crud.py

"""
CRUD operations for the 'prj' domain.

Anything that moves inventory (product parts, product deletion, templates,
status changes) lives in `app.services.allocation_service`.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.core.database import transactional
from app.core.exceptions import NotFound
from app.domains.inv import ledger
from app.domains.inv.models import Activity, ActivityEventType
from app.domains.prj import models as prj_models
from app.domains.prj import schemas as prj_schemas
from app.domains.usr import crud as usr_crud

logger = logging.getLogger(__name__)


def _unique(ids: List[int]) -> List[int]:
    return list(dict.fromkeys(ids))


class CRUDProject(
    CRUDBase[prj_models.Project, prj_schemas.ProjectCreate, prj_schemas.ProjectUpdate]
):
    async def get_detail(self, db: AsyncSession, *, id: int) -> Optional[prj_models.Project]:
        """Project with team and products (and their parts) freshly loaded."""
        query = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def get_active(self, db: AsyncSession) -> List[prj_models.Project]:
        query = (
            select(self.model)
            .where(self.model.is_active == True)  # noqa: E712
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def _check_users(self, db: AsyncSession, user_ids: List[int]) -> None:
        found = await usr_crud.user.get_many_by_ids(db, ids=user_ids)
        missing = set(user_ids) - {u.id for u in found}
        if missing:
            raise NotFound(f"User(s) not found: {sorted(missing)}", data={"user_ids": sorted(missing)})

    async def create_with_team(
        self, db: AsyncSession, *, obj_in: prj_schemas.ProjectCreate, actor_name: str
    ) -> prj_models.Project:
        """Creates a project in 'in-progress', assigns its team and logs `project-created`."""
        assignee_ids = _unique(obj_in.assignee_ids)
        await self._check_users(db, assignee_ids)

        async with transactional(db):
            db_project = self.model(
                name=obj_in.name,
                description=obj_in.description,
                status=prj_models.ProjectStatus.IN_PROGRESS.value,
            )
            db_project.assignees = [prj_models.ProjectAssignee(user_id=user_id) for user_id in assignee_ids]
            db.add(db_project)
            await db.flush()

            await ledger.append_activity(
                db,
                Activity(
                    event_type=ActivityEventType.PROJECT_CREATED.value,
                    actor_name=actor_name,
                    notes=f'Project "{db_project.name}" created',
                    project_id=db_project.id,
                    project=db_project.name,
                    tags=["project", "created"],
                ),
            )
            project_id = db_project.id

        logger.info("Project %s created with %s assignee(s)", project_id, len(assignee_ids))
        return await self.get_detail(db, id=project_id)

    async def update_team(
        self,
        db: AsyncSession,
        *,
        db_obj: prj_models.Project,
        assignee_ids: List[int],
        actor_name: str,
    ) -> prj_models.Project:
        """Replaces the whole team and logs `project-team-change`."""
        assignee_ids = _unique(assignee_ids)
        await self._check_users(db, assignee_ids)

        async with transactional(db):
            db_obj.assignees.clear()
            await db.flush()
            for user_id in assignee_ids:
                db_obj.assignees.append(prj_models.ProjectAssignee(user_id=user_id))

            await ledger.append_activity(
                db,
                Activity(
                    event_type=ActivityEventType.PROJECT_TEAM_CHANGE.value,
                    actor_name=actor_name,
                    notes=f'Team updated for project "{db_obj.name}"',
                    project_id=db_obj.id,
                    project=db_obj.name,
                    tags=["project", "team-change"],
                ),
            )
            project_id = db_obj.id

        return await self.get_detail(db, id=project_id)

    async def part_summary(self, db: AsyncSession, *, project_id: int) -> Dict[int, int]:
        """part_id -> total quantity over all products of the project."""
        query = (
            select(prj_models.ProductPart.part_id, func.sum(prj_models.ProductPart.quantity))
            .join(prj_models.Product, prj_models.Product.id == prj_models.ProductPart.product_id)
            .where(prj_models.Product.project_id == project_id)
            .group_by(prj_models.ProductPart.part_id)
            .order_by(prj_models.ProductPart.part_id)
        )
        result = await db.execute(query)
        return {part_id: int(total) for part_id, total in result.all()}


class CRUDProduct(
    CRUDBase[prj_models.Product, prj_schemas.ProductCreate, prj_schemas.ProductUpdate]
):
    async def get_detail(self, db: AsyncSession, *, id: int) -> Optional[prj_models.Product]:
        query = (
            select(self.model)
            .where(self.model.id == id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def create_for_project(
        self,
        db: AsyncSession,
        *,
        project: prj_models.Project,
        obj_in: prj_schemas.ProductCreate,
        actor_name: str,
    ) -> prj_models.Product:
        """Creates an empty product and logs `product-created`."""
        async with transactional(db):
            db_product = self.model(project_id=project.id, name=obj_in.name)
            db.add(db_product)
            await db.flush()
            await ledger.append_activity(
                db,
                Activity(
                    event_type=ActivityEventType.PRODUCT_CREATED.value,
                    actor_name=actor_name,
                    notes=f'Product "{db_product.name}" created in {project.name}',
                    project_id=project.id,
                    project=project.name,
                    product_id=db_product.id,
                    tags=["product", "created"],
                ),
            )
            product_id = db_product.id

        return await self.get_detail(db, id=product_id)


project = CRUDProject(prj_models.Project)
product = CRUDProduct(prj_models.Product)
