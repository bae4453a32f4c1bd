# app/domains/tpl/__init__.py

"""
The 'tpl' domain package (PostgreSQL 'tpl' schema): reusable product
templates and their part lines.
"""

__title__ = "Parts Tracker Template Domain"
__description__ = "Manages product templates."
__version__ = "0.1.0"
__all__ = []
