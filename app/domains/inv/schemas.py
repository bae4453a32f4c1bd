# app/domains/inv/schemas.py

"""
Pydantic schemas for the 'inv' domain (PostgreSQL 'inv' schema).
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import Field
from sqlmodel import SQLModel

from app.domains.inv.models import ActivityEventType


# =============================================================================
# 1. inv.categories
# =============================================================================
class CategoryBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=100, description="Category name")


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Category name")


class CategoryResponse(CategoryBase):
    id: int = Field(..., description="Category ID")
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Row creation time")

    class Config:
        from_attributes = True


# =============================================================================
# 2. inv.inventory_balances
# =============================================================================
class InventoryBalanceResponse(SQLModel):
    part_id: int = Field(..., description="Part ID")
    on_hand: int = Field(..., description="Physical stock")
    allocated: int = Field(..., description="Stock committed to products")
    available: int = Field(..., description="on_hand - allocated")
    updated_at: Optional[datetime] = Field(None, description="Last recompute time")

    class Config:
        from_attributes = True


class BalanceRebuildRequest(SQLModel):
    part_ids: Optional[List[int]] = Field(None, description="Parts to rebuild; every part when omitted")


# =============================================================================
# 3. inv.parts
# =============================================================================
class PartBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=200, description="Part name")
    sku: str = Field(..., min_length=1, max_length=100, description="Stock keeping unit (unique)")
    category_id: int = Field(..., description="Category ID (FK)")
    description: Optional[str] = Field(None, description="Free-form description")


class PartCreate(PartBase):
    pass


class PartUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200, description="Part name")
    sku: Optional[str] = Field(None, min_length=1, max_length=100, description="Stock keeping unit (unique)")
    category_id: Optional[int] = Field(None, description="Category ID (FK)")
    description: Optional[str] = Field(None, description="Free-form description")


class PartResponse(PartBase):
    id: int = Field(..., description="Part ID")
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Row creation time")
    updated_at: datetime = Field(..., description="Row last update time")
    category: Optional[CategoryResponse] = Field(None, description="Owning category")
    balance: Optional[InventoryBalanceResponse] = Field(None, description="Current balance")

    class Config:
        from_attributes = True


class PartBrief(SQLModel):
    """Part name and SKU embedded in activity and product responses."""
    id: int
    name: str
    sku: str

    class Config:
        from_attributes = True


# =============================================================================
# 4. inv.activities
# =============================================================================
class ActivityCreate(SQLModel):
    event_type: ActivityEventType = Field(..., description="Ledger event type")
    part_id: Optional[int] = Field(None, description="Part ID (FK)")
    qty: int = Field(0, ge=0, description="Non-negative magnitude")
    actor_name: Optional[str] = Field(None, max_length=100, description="Defaults to the X-Actor-Name header")
    counterparty_name: Optional[str] = Field(None, max_length=200, description="Supplier or recipient")
    purpose: Optional[str] = Field(None)
    project: Optional[str] = Field(None, max_length=200, description="Project name")
    project_id: Optional[int] = Field(None)
    product_id: Optional[int] = Field(None)
    notes: Optional[str] = Field(None)
    invoice_number: Optional[str] = Field(None, max_length=100)
    invoice_date: Optional[date] = Field(None)
    timestamp: Optional[datetime] = Field(None, description="When the event happened, if not now")
    tags: List[str] = Field(default_factory=list)
    category_name: Optional[str] = Field(None, max_length=100, description="Filled from the part when omitted")


class ActivityResponse(SQLModel):
    id: int
    event_type: str
    part_id: Optional[int] = None
    qty: int
    actor_name: str
    counterparty_name: Optional[str] = None
    purpose: Optional[str] = None
    project: Optional[str] = None
    project_id: Optional[int] = None
    product_id: Optional[int] = None
    notes: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[date] = None
    timestamp: Optional[datetime] = None
    tags: List[str] = []
    category_name: Optional[str] = None
    created_at: datetime
    part: Optional[PartBrief] = None

    class Config:
        from_attributes = True


class Pagination(SQLModel):
    total_items: int
    current_page: int
    page_size: int
    total_pages: int


class ActivityPage(SQLModel):
    data: List[ActivityResponse]
    pagination: Pagination
