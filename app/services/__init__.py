# app/services/__init__.py

"""
Service layer: business logic that spans several domains.

- `allocation_service.py`: allocating parts to products, returning them,
  applying templates and project status changes.
- `availability_service.py`: checking required part lines against
  available stock.
"""

__title__ = "Parts Tracker Services"
__description__ = "Cross-domain inventory allocation services."
__version__ = "0.1.0"
__all__ = []
