# app/domains/prj/models.py

"""
ORM models for the 'prj' domain (PostgreSQL 'prj' schema).
"""

from typing import Optional, List
from datetime import datetime, UTC
from enum import Enum
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.domains.inv.models import Part
from app.domains.usr.models import AppUser


class ProjectStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    DISPATCHED = "dispatched"
    CANCELLED = "cancelled"


# =============================================================================
# 1. prj.projects
# =============================================================================
class ProjectBase(SQLModel):
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None)
    status: str = Field(default=ProjectStatus.IN_PROGRESS.value, max_length=20, index=True)
    dispatched_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    dispatch_datetime: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    dispatch_from_location: Optional[str] = Field(default=None, max_length=200)
    dispatch_to_location: Optional[str] = Field(default=None, max_length=200)
    receiving_person_name: Optional[str] = Field(default=None, max_length=100)
    cancelled_at: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    is_active: bool = Field(default=True)


class Project(ProjectBase, table=True):
    __tablename__ = "projects"
    __table_args__ = {'schema': 'prj'}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="Row creation time"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="Row last update time"
    )

    assignees: List["ProjectAssignee"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"lazy": "selectin", "cascade": "all, delete-orphan"}
    )
    products: List["Product"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"lazy": "selectin", "order_by": "Product.id"}
    )


# =============================================================================
# 2. prj.project_assignees (association)
# =============================================================================
class ProjectAssignee(SQLModel, table=True):
    __tablename__ = "project_assignees"
    __table_args__ = {'schema': 'prj'}

    project_id: int = Field(foreign_key="prj.projects.id", primary_key=True)
    user_id: int = Field(foreign_key="usr.users.id", primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )

    project: "Project" = Relationship(back_populates="assignees")
    user: AppUser = Relationship(sa_relationship_kwargs={"lazy": "selectin"})


# =============================================================================
# 3. prj.products
# =============================================================================
class ProductBase(SQLModel):
    project_id: int = Field(foreign_key="prj.projects.id", index=True)
    name: str = Field(max_length=200)


class Product(ProductBase, table=True):
    __tablename__ = "products"
    __table_args__ = {'schema': 'prj'}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="Row creation time"
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="Row last update time"
    )

    project: "Project" = Relationship(back_populates="products")
    parts: List["ProductPart"] = Relationship(
        back_populates="product",
        sa_relationship_kwargs={"lazy": "selectin", "cascade": "all, delete-orphan", "order_by": "ProductPart.part_id"}
    )


# =============================================================================
# 4. prj.product_parts (association)
# =============================================================================
class ProductPart(SQLModel, table=True):
    __tablename__ = "product_parts"
    __table_args__ = {'schema': 'prj'}

    product_id: int = Field(foreign_key="prj.products.id", primary_key=True)
    part_id: int = Field(foreign_key="inv.parts.id", primary_key=True)
    quantity: int = Field(description="Units of the part allocated to the product; always > 0")
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )

    product: "Product" = Relationship(back_populates="parts")
    part: Part = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
