# app/domains/prj/schemas.py

"""
Pydantic schemas for the 'prj' domain (PostgreSQL 'prj' schema).
"""

from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import Field, model_validator
from sqlmodel import SQLModel

from app.domains.inv.schemas import PartBrief
from app.domains.prj.models import ProjectStatus
from app.domains.usr.schemas import AppUserSummary


# =============================================================================
# 1. prj.projects
# =============================================================================
class ProjectCreate(SQLModel):
    name: str = Field(..., min_length=1, max_length=200, description="Project name")
    description: Optional[str] = Field(None, description="Project description")
    assignee_ids: List[int] = Field(default_factory=list, description="Users on the project team")


class ProjectUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200, description="Project name")
    description: Optional[str] = Field(None, description="Project description")


class DispatchDetails(SQLModel):
    dispatch_datetime: datetime = Field(..., description="When the shipment left")
    dispatch_from_location: str = Field(..., max_length=200)
    dispatch_to_location: str = Field(..., max_length=200)
    receiving_person_name: str = Field(..., max_length=100)


class ProjectStatusUpdate(SQLModel):
    status: ProjectStatus = Field(..., description="New project status")
    dispatch_details: Optional[DispatchDetails] = Field(None, description="Required when dispatching")

    @model_validator(mode="after")
    def require_dispatch_details(self) -> "ProjectStatusUpdate":
        if self.status == ProjectStatus.DISPATCHED and self.dispatch_details is None:
            raise ValueError("dispatch_details are required when status is 'dispatched'")
        return self


class ProjectTeamUpdate(SQLModel):
    assignee_ids: List[int] = Field(default_factory=list, description="The complete new team")


class ProjectAssigneeResponse(SQLModel):
    user_id: int
    user: Optional[AppUserSummary] = None

    class Config:
        from_attributes = True


class ProductPartResponse(SQLModel):
    product_id: int
    part_id: int
    quantity: int
    part: Optional[PartBrief] = None

    class Config:
        from_attributes = True


class ProductResponse(SQLModel):
    id: int
    project_id: int
    name: str
    created_at: datetime
    parts: List[ProductPartResponse] = []

    class Config:
        from_attributes = True


class ProjectResponse(SQLModel):
    id: int
    name: str
    description: Optional[str] = None
    status: str
    dispatched_at: Optional[datetime] = None
    dispatch_datetime: Optional[datetime] = None
    dispatch_from_location: Optional[str] = None
    dispatch_to_location: Optional[str] = None
    receiving_person_name: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectListItem(ProjectResponse):
    product_count: int = 0
    assignee_count: int = 0


class ProjectDetailResponse(ProjectResponse):
    assignees: List[ProjectAssigneeResponse] = []
    products: List[ProductResponse] = []


class ProjectPartSummary(SQLModel):
    """Total quantity of each part across every product of a project."""
    project_id: int
    totals: Dict[int, int]


# =============================================================================
# 2. prj.products / prj.product_parts
# =============================================================================
class ProductCreate(SQLModel):
    name: str = Field(..., min_length=1, max_length=200, description="Product name")


class ProductUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200, description="Product name")


class ProductFromTemplateCreate(SQLModel):
    template_id: int = Field(..., description="Template to copy parts from")
    product_name: Optional[str] = Field(None, max_length=200, description="Defaults to the template name")


class ProductPartCreate(SQLModel):
    part_id: int = Field(..., description="Part to allocate")
    quantity: int = Field(..., description="Units to allocate; must be positive")


class ProductPartUpdate(SQLModel):
    quantity: int = Field(..., description="New total quantity; must be positive")


class ProductDeleteResponse(SQLModel):
    product_id: int
    returned: List[Dict[str, Any]]
