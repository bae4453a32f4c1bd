# app/domains/usr/schemas.py

"""
Pydantic schemas for the 'usr' domain.
"""

from typing import Optional
from datetime import datetime
from pydantic import Field
from sqlmodel import SQLModel


# =============================================================================
# 1. usr.users
# =============================================================================
class AppUserBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=100, description="Display name")


class AppUserCreate(AppUserBase):
    pass


class AppUserUpdate(SQLModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100, description="Display name")
    is_active: Optional[bool] = Field(None, description="Active flag")


class AppUserResponse(AppUserBase):
    id: int = Field(..., description="User ID")
    is_active: bool = Field(..., description="Active flag")
    created_at: datetime = Field(..., description="Row creation time")
    updated_at: datetime = Field(..., description="Row last update time")

    class Config:
        from_attributes = True


class AppUserSummary(SQLModel):
    """Compact form used inside project responses."""
    id: int
    name: str

    class Config:
        from_attributes = True
