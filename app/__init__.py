# app/__init__.py

"""
Main package of the Parts Tracker FastAPI application.

`main.py` is the entry point; `core` holds settings, database and shared
plumbing; `domains` holds one subpackage per PostgreSQL schema; `services`
holds the cross-domain allocation logic.
"""

APP_NAME = "Parts Tracker API"
APP_VERSION = "0.1.0"
API_PREFIX = "/api/v1"  # applied to every domain router in main.py

__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Project, product and parts inventory tracking API."
__all__ = []
