# tests/__init__.py

"""
Test suite for the Parts Tracker API.

Tests are written for `pytest` with `pytest-asyncio` and run against an
in-memory SQLite database (see conftest.py). `domains/` holds API tests per
domain; `services/` exercises the allocation and availability services
directly.
"""
