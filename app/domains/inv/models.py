# app/domains/inv/models.py

"""
ORM models for the 'inv' domain (PostgreSQL 'inv' schema).

`activities` is the append-only ledger; `inventory_balances` is derived from
it and is never written by request handlers directly.
"""

from typing import Optional, List
from datetime import datetime, date, UTC
from enum import Enum
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP, DATE


class ActivityEventType(str, Enum):
    """Ledger event types. Stored as their string value."""
    RECEIVE = "receive"
    ISSUE = "issue"
    WRITE_OFF = "write-off"
    RETURN = "return"
    PROJECT_ALLOCATION = "project-allocation"
    PROJECT_DEALLOCATION = "project-deallocation"
    CREATE_PART = "create_part"
    PRODUCT_CREATED = "product-created"
    PRODUCT_DELETED = "product-deleted"
    PROJECT_CREATED = "project-created"
    PROJECT_STATUS_CHANGE = "project-status-change"
    PROJECT_TEAM_CHANGE = "project-team-change"


# =============================================================================
# 1. inv.categories
# =============================================================================
class CategoryBase(SQLModel):
    name: str = Field(max_length=100)
    is_active: bool = Field(default=True)


class Category(CategoryBase, table=True):
    __tablename__ = "categories"
    __table_args__ = {'schema': 'inv'}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
        description="Row creation time"
    )

    parts: List["Part"] = Relationship(back_populates="category")


# =============================================================================
# 2. inv.parts
# =============================================================================
class PartBase(SQLModel):
    name: str = Field(max_length=200)
    sku: str = Field(max_length=100, unique=True, index=True, description="Stock keeping unit")
    category_id: int = Field(foreign_key="inv.categories.id")
    description: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)


class Part(PartBase, table=True):
    __tablename__ = "parts"
    __table_args__ = {'schema': 'inv'}

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

    category: "Category" = Relationship(
        back_populates="parts",
        sa_relationship_kwargs={"lazy": "selectin"}
    )
    balance: Optional["InventoryBalance"] = Relationship(
        back_populates="part",
        sa_relationship_kwargs={"uselist": False, "lazy": "selectin"}
    )


# =============================================================================
# 3. inv.inventory_balances (derived from inv.activities)
# =============================================================================
class InventoryBalance(SQLModel, table=True):
    __tablename__ = "inventory_balances"
    __table_args__ = {'schema': 'inv'}

    part_id: int = Field(foreign_key="inv.parts.id", primary_key=True)
    on_hand: int = Field(default=0, description="Physical stock: received minus issued")
    allocated: int = Field(default=0, description="Stock committed to products")
    available: int = Field(default=0, description="on_hand - allocated")
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()),
        description="Last recompute time"
    )

    part: "Part" = Relationship(back_populates="balance")


# =============================================================================
# 4. inv.activities (ledger)
# =============================================================================
class ActivityBase(SQLModel):
    event_type: str = Field(max_length=50, index=True)
    part_id: Optional[int] = Field(default=None, foreign_key="inv.parts.id", index=True)
    qty: int = Field(default=0, description="Non-negative magnitude; direction comes from event_type")
    actor_name: str = Field(max_length=100)
    counterparty_name: Optional[str] = Field(default=None, max_length=200)
    purpose: Optional[str] = Field(default=None)
    project: Optional[str] = Field(default=None, max_length=200, description="Project name at the time of the event")
    project_id: Optional[int] = Field(default=None, foreign_key="prj.projects.id")
    # Products can be physically deleted, so this stays a plain column.
    product_id: Optional[int] = Field(default=None, index=True)
    notes: Optional[str] = Field(default=None)
    invoice_number: Optional[str] = Field(default=None, max_length=100)
    invoice_date: Optional[date] = Field(default=None, sa_column=Column(DATE))
    timestamp: Optional[datetime] = Field(default=None, sa_column=Column(TIMESTAMP(timezone=True)))
    tags: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON().with_variant(JSONB(), "postgresql"))
    )
    category_name: Optional[str] = Field(default=None, max_length=100)


class Activity(ActivityBase, table=True):
    __tablename__ = "activities"
    __table_args__ = {'schema': 'inv'}

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now(), index=True),
        description="Row creation time"
    )

    part: Optional["Part"] = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
