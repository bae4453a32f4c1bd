# app/domains/inv/__init__.py

"""
The 'inv' domain package (PostgreSQL 'inv' schema).

Categories, parts, the append-only activity ledger and the inventory
balances derived from it.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: request/response models.
- `ledger.py`: ledger appends and the balance recompute step.
- `crud.py`: async CRUD operations.
- `tasks.py`: ARQ background jobs (full balance rebuild).
- `routers.py`: FastAPI endpoints.
"""

__title__ = "Parts Tracker Inventory Domain"
__description__ = "Manages parts, categories, the activity ledger and inventory balances."
__version__ = "0.1.0"
__all__ = []
