# Overview: Domain error taxonomy shared by services and routes.

from __future__ import annotations

from .validation import ConflictError, ValidationError


class KasirError(Exception):
    """Base for business-rule failures that are reported to the caller."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFoundError(KasirError):
    """Referenced entity id does not exist."""


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(
            f"Product with id {product_id} not found",
            details={"product_id": product_id},
        )
        self.product_id = product_id


class InsufficientStockError(KasirError):
    def __init__(self, product_id: int, product_name: str, available: int, required: int):
        super().__init__(
            f"Insufficient stock for product {product_name}. "
            f"Available: {available}, Required: {required}",
            details={
                "product_id": product_id,
                "available": available,
                "required": required,
            },
        )
        self.available = available
        self.required = required


class InsufficientBalanceError(KasirError):
    def __init__(self, product_id: int, product_name: str, available_cents: int, required_cents: int):
        super().__init__(
            f"Insufficient digital balance for product {product_name}. "
            f"Available: {available_cents}, Required: {required_cents}",
            details={
                "product_id": product_id,
                "available_cents": available_cents,
                "required_cents": required_cents,
            },
        )
        self.available_cents = available_cents
        self.required_cents = required_cents


def http_status_for(exc: Exception) -> int:
    """HTTP status a route should answer with for a business-rule failure."""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (ConflictError, InsufficientStockError, InsufficientBalanceError)):
        return 409
    return 400


def error_body(exc: Exception) -> dict:
    return {"error": str(exc), "details": getattr(exc, "details", {})}
