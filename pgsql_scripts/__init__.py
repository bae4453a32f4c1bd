# pgsql_scripts/__init__.py
"""
PostgreSQL functions and triggers managed by Alembic through alembic_utils.

- `functions.py`: PL/pgSQL functions.
- `triggers.py`: triggers that call them.

Every alembic_utils entity defined in a module of this package is collected
into `all_db_objects`, which `migrations/env.py` registers.
"""

__title__ = "Parts Tracker PL/pgSQL scripts"
__description__ = "Database functions and triggers managed by Alembic."
__version__ = "0.1.0"
__all__ = ["all_db_objects"]

import pkgutil
import importlib
import inspect

from alembic_utils.replaceable_entity import ReplaceableEntity

all_db_objects = []

for loader, module_name, is_pkg in pkgutil.iter_modules(__path__):
    module = importlib.import_module(f".{module_name}", __package__)

    for name, obj in inspect.getmembers(module):
        if isinstance(obj, ReplaceableEntity):
            all_db_objects.append(obj)
