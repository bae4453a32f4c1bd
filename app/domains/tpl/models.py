# app/domains/tpl/models.py

"""
ORM models for the 'tpl' domain (PostgreSQL 'tpl' schema).

A template is a reusable bill of materials; applying it to a project creates
a product with the same part lines.
"""

from typing import Optional, List
from datetime import datetime, UTC
from sqlmodel import Field, Relationship, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.domains.inv.models import Part


# =============================================================================
# 1. tpl.product_templates
# =============================================================================
class ProductTemplateBase(SQLModel):
    name: str = Field(max_length=200)
    description: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)


class ProductTemplate(ProductTemplateBase, table=True):
    __tablename__ = "product_templates"
    __table_args__ = {'schema': 'tpl'}

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

    parts: List["TemplatePart"] = Relationship(
        back_populates="template",
        sa_relationship_kwargs={
            "lazy": "selectin",
            "cascade": "all, delete-orphan",
            "order_by": "TemplatePart.part_id",
        }
    )


# =============================================================================
# 2. tpl.template_parts (association)
# =============================================================================
class TemplatePart(SQLModel, table=True):
    __tablename__ = "template_parts"
    __table_args__ = {'schema': 'tpl'}

    template_id: int = Field(foreign_key="tpl.product_templates.id", primary_key=True)
    part_id: int = Field(foreign_key="inv.parts.id", primary_key=True)
    quantity: int = Field(description="Units of the part per product; always > 0")
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(TIMESTAMP(timezone=True), server_default=func.now()),
    )

    template: "ProductTemplate" = Relationship(back_populates="parts")
    part: Part = Relationship(sa_relationship_kwargs={"lazy": "selectin"})
