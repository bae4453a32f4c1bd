# app/domains/tpl/schemas.py

"""
Pydantic schemas for the 'tpl' domain (PostgreSQL 'tpl' schema).
"""

from typing import Optional, List
from datetime import datetime
from pydantic import Field, field_validator
from sqlmodel import SQLModel

from app.domains.inv.schemas import PartBrief


def _reject_duplicate_parts(lines: Optional[List["TemplatePartIn"]]) -> Optional[List["TemplatePartIn"]]:
    if lines is None:
        return lines
    part_ids = [line.part_id for line in lines]
    if len(part_ids) != len(set(part_ids)):
        raise ValueError("each part may appear only once in a template")
    return lines


# =============================================================================
# 1. tpl.template_parts
# =============================================================================
class TemplatePartIn(SQLModel):
    part_id: int = Field(..., description="Part ID (FK)")
    quantity: int = Field(..., gt=0, description="Units per product")


class TemplatePartResponse(SQLModel):
    part_id: int
    quantity: int
    part: Optional[PartBrief] = None

    class Config:
        from_attributes = True


# =============================================================================
# 2. tpl.product_templates
# =============================================================================
class ProductTemplateCreate(SQLModel):
    name: str = Field(..., min_length=1, max_length=200, description="Template name")
    description: Optional[str] = Field(None, description="Template description")
    parts: List[TemplatePartIn] = Field(default_factory=list, description="Part lines")

    @field_validator("parts")
    @classmethod
    def unique_parts(cls, v):
        return _reject_duplicate_parts(v)


class ProductTemplateUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200, description="Template name")
    description: Optional[str] = Field(None, description="Template description")
    parts: Optional[List[TemplatePartIn]] = Field(None, description="Replaces every part line when given")

    @field_validator("parts")
    @classmethod
    def unique_parts(cls, v):
        return _reject_duplicate_parts(v)


class ProductTemplateResponse(SQLModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
    parts: List[TemplatePartResponse] = []

    class Config:
        from_attributes = True


class ProductTemplateListItem(SQLModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    part_count: int = 0
