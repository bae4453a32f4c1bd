# app/domains/models/__init__.py

"""
Every domain's SQLModel tables in one place, so SQLModel.metadata (and
Alembic autogenerate) sees all of them.
"""

# usr
from app.domains.usr.models import AppUser

# inv
from app.domains.inv.models import Activity, ActivityEventType, Category, InventoryBalance, Part

# prj
from app.domains.prj.models import Product, ProductPart, Project, ProjectAssignee, ProjectStatus

# tpl
from app.domains.tpl.models import ProductTemplate, TemplatePart


__all__ = [
    # usr
    "AppUser",
    # inv
    "Category", "Part", "InventoryBalance", "Activity", "ActivityEventType",
    # prj
    "Project", "ProjectStatus", "ProjectAssignee", "Product", "ProductPart",
    # tpl
    "ProductTemplate", "TemplatePart",
]
