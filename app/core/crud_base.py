# app/core/crud_base.py

"""
Generic async CRUD base class shared by every domain.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar, Any, Dict, Union

from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession
from pydantic import BaseModel

from app.core.database import transactional
from app.core.exceptions import ConflictingState

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Basic create/read/update and soft-delete operations for one model.
    """
    def __init__(self, model: Type[ModelType]):
        self.model = model

    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """Fetches one row by primary key."""
        return await db.get(self.model, id)

    async def get_multi(
        self,
        db: AsyncSession,
        *,
        skip: int = 0,
        limit: int = 100,
        order_by_field: Optional[str] = None,
        **kwargs: Any
    ) -> List[ModelType]:
        """
        Fetches several rows. Keyword arguments naming model attributes are
        applied as equality filters.
        """
        query = select(self.model)

        for field, value in kwargs.items():
            if hasattr(self.model, field):
                query = query.where(getattr(self.model, field) == value)
            else:
                logger.warning("Model %s has no attribute '%s'", self.model.__name__, field)

        if order_by_field and hasattr(self.model, order_by_field):
            query = query.order_by(getattr(self.model, order_by_field))

        query = query.offset(skip).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_by_attribute(
        self, db: AsyncSession, *, attribute: str, value: Any
    ) -> Optional[ModelType]:
        statement = select(self.model).where(getattr(self.model, attribute) == value)
        response = await db.execute(statement)
        return response.scalars().first()

    async def create(self, db: AsyncSession, *, obj_in: CreateSchemaType) -> ModelType:
        db_obj = self.model.model_validate(obj_in)
        await self._save(db, db_obj)
        return db_obj

    async def update(
        self,
        db: AsyncSession,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> ModelType:
        """Applies only the fields that were explicitly set."""
        update_data = (
            obj_in
            if isinstance(obj_in, dict)
            else obj_in.model_dump(exclude_unset=True)
        )
        for key, value in update_data.items():
            if hasattr(db_obj, key):
                setattr(db_obj, key, value)

        await self._save(db, db_obj)
        return db_obj

    async def _save(self, db: AsyncSession, db_obj: ModelType) -> None:
        """Commits one object; a constraint violation is rolled back and reported as a conflict."""
        try:
            async with transactional(db):
                db.add(db_obj)
        except IntegrityError as e:
            logger.error("IntegrityError while saving %s: %s", self.model.__name__, e)
            raise ConflictingState(
                f"{self.model.__name__} conflicts with an existing record."
            ) from e
        await db.refresh(db_obj)

    async def soft_delete(self, db: AsyncSession, *, db_obj: ModelType) -> ModelType:
        """
        Logical delete: flips `is_active` to False. Every deactivatable entity
        goes through here; rows are never physically removed.
        """
        if not hasattr(db_obj, "is_active"):
            raise TypeError(f"{self.model.__name__} does not support soft delete")
        db_obj.is_active = False
        await self._save(db, db_obj)
        return db_obj
