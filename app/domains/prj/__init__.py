# app/domains/prj/__init__.py

"""
The 'prj' domain package (PostgreSQL 'prj' schema).

Projects, their teams, and the products built inside them with the parts
allocated to each product. Inventory-moving operations live in
`app.services.allocation_service`.
"""

__title__ = "Parts Tracker Project Domain"
__description__ = "Manages projects, project teams, products and product parts."
__version__ = "0.1.0"
__all__ = []
