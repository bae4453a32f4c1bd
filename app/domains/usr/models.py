# app/domains/usr/models.py

"""
ORM models for the 'usr' domain (PostgreSQL 'usr' schema).

Users here are the people assigned to project teams; they carry no
credentials.
"""

from typing import Optional
from datetime import datetime, UTC
from sqlmodel import Field, SQLModel, Column
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. usr.users
# =============================================================================
class AppUserBase(SQLModel):
    name: str = Field(max_length=100, description="Display name")
    is_active: bool = Field(default=True)


class AppUser(AppUserBase, table=True):
    __tablename__ = "users"
    __table_args__ = {'schema': 'usr'}

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
