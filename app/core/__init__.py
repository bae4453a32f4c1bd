# app/core/__init__.py

"""
Core components shared by every domain.

- `config.py`: settings (pydantic-settings).
- `database.py`: async engine, sessions and the `transactional` unit of work.
- `exceptions.py`: domain errors and their HTTP mapping.
- `crud_base.py`: generic async CRUD with soft delete.
- `dependencies.py`: FastAPI dependencies.
- `tasks.py`: ARQ maintenance jobs.
"""

__title__ = "Parts Tracker Core"
__description__ = "Core components for the Parts Tracker API."
__version__ = "0.1.0"
__all__ = []
