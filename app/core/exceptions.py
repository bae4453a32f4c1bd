# app/core/exceptions.py

"""
Domain-level exceptions and their HTTP mapping.

Services raise these; `register_exception_handlers` turns them into JSON
responses of the form {"detail": <message>, "data": <payload or null>}.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for all business-rule and store failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data


class NotFound(DomainError):
    """A requested entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidQuantity(DomainError):
    """A quantity that must be positive was zero or negative."""

    status_code = status.HTTP_400_BAD_REQUEST


class DuplicateAllocation(DomainError):
    """The part is already linked to the product."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_id: int, part_id: int):
        super().__init__(
            "Part is already in this product. Use the update endpoint to change quantity.",
            data={"product_id": product_id, "part_id": part_id},
        )


class InsufficientInventory(DomainError):
    """One or more parts lack available stock. Carries every shortage found."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, shortages: List[Dict[str, Any]]):
        super().__init__(message, data={"shortages": shortages})
        self.shortages = shortages


class ConflictingState(DomainError):
    """The operation conflicts with the current state of related entities."""

    status_code = status.HTTP_409_CONFLICT


class TransientStoreFailure(DomainError):
    """The transaction could not commit; it was rolled back and may be retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        if isinstance(exc, TransientStoreFailure):
            logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
            headers = {"Retry-After": "1"}
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
            headers = None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "data": exc.data},
            headers=headers,
        )
