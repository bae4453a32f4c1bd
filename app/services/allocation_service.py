# app/services/allocation_service.py

"""
Inventory allocation across the prj, tpl and inv domains.

Every public method is one transaction: product-part links and the ledger
entries describing them are written together, and balances are recomputed
before commit. Balance rows are read with SELECT ... FOR UPDATE before any
allocation, which serializes concurrent allocations of the same part.
"""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional, Union

from fastapi import Depends
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.database import transactional
from app.core.dependencies import get_actor_name, get_db_session
from app.core.exceptions import (
    DuplicateAllocation,
    InsufficientInventory,
    InvalidQuantity,
    NotFound,
)
from app.domains.inv import ledger
from app.domains.inv.models import Activity, ActivityEventType, InventoryBalance, Part
from app.domains.prj import crud as prj_crud
from app.domains.prj import models as prj_models
from app.domains.prj.schemas import DispatchDetails
from app.domains.tpl import crud as tpl_crud
from app.services.availability_service import RequiredLine, check_availability

logger = logging.getLogger(__name__)


class AllocationService:
    """
    Allocates parts to products and returns them to stock.
    """

    def __init__(self, db: AsyncSession, actor_name: Optional[str] = None):
        self.db = db
        self.actor_name = actor_name or settings.SYSTEM_ACTOR_NAME

    # -------------------------------------------------------------------------
    # helpers
    # -------------------------------------------------------------------------
    async def _lock_balance(self, part_id: int) -> Optional[InventoryBalance]:
        query = (
            select(InventoryBalance)
            .where(InventoryBalance.part_id == part_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def _get_product(self, product_id: int) -> prj_models.Product:
        product = await prj_crud.product.get_detail(self.db, id=product_id)
        if product is None:
            raise NotFound("Product not found.")
        return product

    async def _get_project(self, project_id: int) -> prj_models.Project:
        project = await self.db.get(prj_models.Project, project_id)
        if project is None:
            raise NotFound("Project not found.")
        return project

    async def _get_link(self, product_id: int, part_id: int) -> prj_models.ProductPart:
        query = (
            select(prj_models.ProductPart)
            .where(
                prj_models.ProductPart.product_id == product_id,
                prj_models.ProductPart.part_id == part_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        link = result.scalars().first()
        if link is None:
            raise NotFound("Part is not in this product.")
        return link

    async def _shortage(self, part_id: int, needed: int, available: int) -> Dict[str, Any]:
        part = await self.db.get(Part, part_id)
        return {
            "part_id": part_id,
            "part_name": part.name if part else f"Part {part_id}",
            "needed": needed,
            "available": available,
        }

    def _entry(
        self,
        event_type: ActivityEventType,
        *,
        project: prj_models.Project,
        part: Optional[Part] = None,
        qty: int = 0,
        product_id: Optional[int] = None,
        notes: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Activity:
        return Activity(
            event_type=event_type.value,
            part_id=part.id if part is not None else None,
            qty=qty,
            actor_name=self.actor_name,
            project=project.name,
            project_id=project.id,
            product_id=product_id,
            notes=notes,
            tags=tags or [],
            category_name=part.category.name if part is not None and part.category else None,
        )

    # -------------------------------------------------------------------------
    # product parts
    # -------------------------------------------------------------------------
    async def add_part_to_product(
        self, product_id: int, part_id: int, quantity: int
    ) -> prj_models.ProductPart:
        """
        Allocates `quantity` units of a part to a product.

        Raises InsufficientInventory when the part has no balance or too little
        available stock, and DuplicateAllocation when the part is already
        linked (use `update_part_in_product` instead).
        """
        if quantity <= 0:
            raise InvalidQuantity("Quantity must be a positive integer.")

        async with transactional(self.db):
            product = await self._get_product(product_id)

            balance = await self._lock_balance(part_id)
            available = balance.available if balance is not None else 0
            if balance is None or available < quantity:
                raise InsufficientInventory(
                    "Insufficient inventory for this part.",
                    [await self._shortage(part_id, quantity, available)],
                )

            existing = await self.db.get(prj_models.ProductPart, (product_id, part_id))
            if existing is not None:
                raise DuplicateAllocation(product_id, part_id)

            project = await self._get_project(product.project_id)
            part = await self.db.get(Part, part_id)

            link = prj_models.ProductPart(product_id=product_id, part_id=part_id, quantity=quantity)
            product.parts.append(link)
            await ledger.append_activity(
                self.db,
                self._entry(
                    ActivityEventType.PROJECT_ALLOCATION,
                    project=project,
                    part=part,
                    qty=quantity,
                    product_id=product_id,
                    notes=f"Allocated to {project.name} - {product.name}",
                    tags=["project-allocation"],
                ),
            )

        logger.info("Allocated %s x part %s to product %s", quantity, part_id, product_id)
        return link

    async def update_part_in_product(
        self, product_id: int, part_id: int, new_quantity: int
    ) -> prj_models.ProductPart:
        """
        Changes the allocated quantity. Only an increase is checked against
        available stock; a decrease releases the difference.
        """
        if new_quantity <= 0:
            raise InvalidQuantity(
                "Quantity must be a positive integer. Remove the part to take it out of the product."
            )

        async with transactional(self.db):
            product = await self._get_product(product_id)
            link = await self._get_link(product_id, part_id)
            delta = new_quantity - link.quantity

            if delta > 0:
                balance = await self._lock_balance(part_id)
                available = balance.available if balance is not None else 0
                if available < delta:
                    raise InsufficientInventory(
                        "Insufficient inventory for this part.",
                        [await self._shortage(part_id, delta, available)],
                    )

            if delta != 0:
                project = await self._get_project(product.project_id)
                part = await self.db.get(Part, part_id)
                link.quantity = new_quantity
                self.db.add(link)

                if delta > 0:
                    entry = self._entry(
                        ActivityEventType.PROJECT_ALLOCATION,
                        project=project, part=part, qty=delta, product_id=product_id,
                        notes=f"Allocation increased for {project.name} - {product.name}",
                        tags=["project-allocation", "update"],
                    )
                else:
                    entry = self._entry(
                        ActivityEventType.PROJECT_DEALLOCATION,
                        project=project, part=part, qty=-delta, product_id=product_id,
                        notes=f"Allocation reduced for {project.name} - {product.name}",
                        tags=["project-deallocation", "update"],
                    )
                await ledger.append_activity(self.db, entry)

        return link

    async def remove_part_from_product(self, product_id: int, part_id: int) -> int:
        """Removes the link and releases its whole quantity. Returns that quantity."""
        async with transactional(self.db):
            product = await self._get_product(product_id)
            project = await self._get_project(product.project_id)
            part = await self.db.get(Part, part_id)

            link = await self._get_link(product_id, part_id)
            quantity = link.quantity

            await self.db.delete(link)
            await self.db.flush()
            await ledger.append_activity(
                self.db,
                self._entry(
                    ActivityEventType.PROJECT_DEALLOCATION,
                    project=project, part=part, qty=quantity, product_id=product_id,
                    notes=f"Removed from {project.name} - {product.name}",
                    tags=["project-deallocation", "remove"],
                ),
            )

        logger.info("Released %s x part %s from product %s", quantity, part_id, product_id)
        return quantity

    # -------------------------------------------------------------------------
    # products
    # -------------------------------------------------------------------------
    async def delete_product(self, product_id: int) -> List[Dict[str, int]]:
        """
        Returns every allocated part to stock and physically deletes the
        product. Returns the (part_id, quantity) pairs that were released.
        """
        async with transactional(self.db):
            product = await self._get_product(product_id)
            project = await self._get_project(product.project_id)
            links = list(product.parts)
            product_name = product.name

            returns = [
                self._entry(
                    ActivityEventType.RETURN,
                    project=project, part=link.part, qty=link.quantity, product_id=product_id,
                    notes=f"Returned from deleted product {project.name} - {product_name}",
                    tags=["return", "product-deleted"],
                )
                for link in links
            ]
            await ledger.append_activities(self.db, returns)
            returned = [{"part_id": link.part_id, "quantity": link.quantity} for link in links]

            product.parts.clear()
            await self.db.flush()

            await ledger.append_activity(
                self.db,
                self._entry(
                    ActivityEventType.PRODUCT_DELETED,
                    project=project, product_id=product_id,
                    notes=f'Product "{product_name}" deleted from {project.name}',
                    tags=["product", "deleted"],
                ),
            )
            await self.db.delete(product)

        logger.info("Product %s deleted; %s part line(s) returned", product_id, len(returned))
        return returned

    async def apply_template(
        self, project_id: int, template_id: int, product_name: Optional[str] = None
    ) -> prj_models.Product:
        """
        Creates a product in a project from a template's part lines.

        All lines are checked for availability first; if any is short,
        InsufficientInventory carries the complete shortage list and nothing
        is written. Unless STRICT_TEMPLATE_LOCKING is set, that check does
        not lock the balance rows.
        """
        template = await tpl_crud.template.get_detail(self.db, id=template_id)
        if template is None:
            raise NotFound("Product template not found.")
        project = await self._get_project(project_id)

        template_lines = list(template.parts)
        required = [
            RequiredLine(line.part_id, line.part.name if line.part else f"Part {line.part_id}", line.quantity)
            for line in template_lines
        ]
        error_message = "Insufficient inventory to create product from template."

        if not settings.STRICT_TEMPLATE_LOCKING:
            report = await check_availability(self.db, required)
            if not report.can_fulfill:
                raise InsufficientInventory(error_message, [s.model_dump() for s in report.shortages])

        async with transactional(self.db):
            if settings.STRICT_TEMPLATE_LOCKING:
                report = await check_availability(self.db, required, lock=True)
                if not report.can_fulfill:
                    raise InsufficientInventory(error_message, [s.model_dump() for s in report.shortages])

            product = prj_models.Product(project_id=project.id, name=product_name or template.name)
            product.parts = [
                prj_models.ProductPart(part_id=line.part_id, quantity=line.quantity)
                for line in template_lines
            ]
            self.db.add(product)
            await self.db.flush()

            await ledger.append_activities(self.db, [
                self._entry(
                    ActivityEventType.PROJECT_ALLOCATION,
                    project=project, part=line.part, qty=line.quantity, product_id=product.id,
                    notes=f"Allocated to {project.name} - {product.name}",
                    tags=["project-allocation", "template"],
                )
                for line in template_lines
            ])
            new_product_id = product.id

        logger.info(
            "Product %s created in project %s from template %s", new_product_id, project_id, template_id
        )
        return await prj_crud.product.get_detail(self.db, id=new_product_id)

    # -------------------------------------------------------------------------
    # projects
    # -------------------------------------------------------------------------
    async def change_project_status(
        self,
        project_id: int,
        status: Union[prj_models.ProjectStatus, str],
        dispatch_details: Optional[DispatchDetails] = None,
    ) -> prj_models.Project:
        """
        Moves a project to a new status and logs `project-status-change`.
        Dispatching stamps dispatched_at and records the dispatch details;
        cancelling stamps cancelled_at.
        """
        status_value = prj_models.ProjectStatus(status).value

        async with transactional(self.db):
            project = await self._get_project(project_id)
            now = datetime.now(UTC)
            notes = f'Project status changed to "{status_value}"'

            project.status = status_value
            project.updated_at = now
            if status_value == prj_models.ProjectStatus.DISPATCHED.value:
                project.dispatched_at = now
                if dispatch_details is not None:
                    project.dispatch_datetime = dispatch_details.dispatch_datetime
                    project.dispatch_from_location = dispatch_details.dispatch_from_location
                    project.dispatch_to_location = dispatch_details.dispatch_to_location
                    project.receiving_person_name = dispatch_details.receiving_person_name
                    notes += f"\nDispatched to: {dispatch_details.dispatch_to_location}"
            elif status_value == prj_models.ProjectStatus.CANCELLED.value:
                project.cancelled_at = now
            self.db.add(project)

            await ledger.append_activity(
                self.db,
                self._entry(
                    ActivityEventType.PROJECT_STATUS_CHANGE,
                    project=project,
                    notes=notes,
                    tags=["project", "status-change"],
                ),
            )

        return await prj_crud.project.get_detail(self.db, id=project_id)


def get_allocation_service(
    db: AsyncSession = Depends(get_db_session),
    actor_name: str = Depends(get_actor_name),
) -> AllocationService:
    """FastAPI dependency that builds an AllocationService for the request."""
    return AllocationService(db, actor_name=actor_name)
