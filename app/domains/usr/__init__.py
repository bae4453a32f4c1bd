# app/domains/usr/__init__.py

"""
The 'usr' domain package (PostgreSQL 'usr' schema).

Holds the application users that can be assigned to project teams.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: request/response models.
- `crud.py`: async CRUD operations.
- `routers.py`: FastAPI endpoints.
"""

__title__ = "Parts Tracker User Domain"
__description__ = "Manages the users referenced by project teams."
__version__ = "0.1.0"
__all__ = []
