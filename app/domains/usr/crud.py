# app/domains/usr/crud.py

"""
CRUD operations for the 'usr' domain.
"""

from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase
from app.domains.usr import models as usr_models
from app.domains.usr import schemas as usr_schemas


class CRUDAppUser(
    CRUDBase[usr_models.AppUser, usr_schemas.AppUserCreate, usr_schemas.AppUserUpdate]
):
    async def get_active(self, db: AsyncSession) -> List[usr_models.AppUser]:
        """Active users ordered by name."""
        query = (
            select(self.model)
            .where(self.model.is_active == True)  # noqa: E712
            .order_by(self.model.name)
        )
        result = await db.execute(query)
        return result.scalars().all()

    async def get_many_by_ids(self, db: AsyncSession, *, ids: List[int]) -> List[usr_models.AppUser]:
        if not ids:
            return []
        result = await db.execute(select(self.model).where(self.model.id.in_(ids)))
        return result.scalars().all()


user = CRUDAppUser(usr_models.AppUser)
