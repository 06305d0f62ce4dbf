# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# backend/kasir/services/inventory_service.py

"""
Inventory Invariants (authoritative)

Stock model:
- Product.stock_quantity is the current on-hand quantity of a PHYSICAL product.
- Only two writers exist: create_stock_movement() and the transaction
  processor (via apply_stock_delta()).
- Every manual change appends a StockMovement row holding the
  previous/new snapshot in the same DB transaction.

Business invariants:
- On-hand quantity may never go negative.
- IN adds quantity, OUT subtracts quantity, COUNT_ADJUSTMENT sets the
  counted quantity absolutely (stock opname).
- Stock movements apply to PHYSICAL products only.

Atomicity:
- The movement row and the product update commit together or not at all.
"""

from __future__ import annotations

import logging

from ..errors import InsufficientStockError
from ..extensions import db
from ..models import Product, StockMovement, StockMovementType
from ..validation import MAX_QUANTITY, ValidationError
from .concurrency import begin_write
from .products_service import get_product_for_update

log = logging.getLogger(__name__)


def compute_new_stock(movement_type: StockMovementType, previous: int, quantity: int) -> int:
    """Resulting stock for a movement. Does not check the sign."""
    if movement_type == StockMovementType.IN:
        return previous + quantity
    if movement_type == StockMovementType.OUT:
        return previous - quantity
    if movement_type == StockMovementType.COUNT_ADJUSTMENT:
        return quantity
    raise ValueError(f"unhandled stock movement type: {movement_type!r}")


def apply_stock_delta(product: Product, delta: int) -> int:
    """
    Change a locked PHYSICAL product's stock by delta (no commit).

    Raises InsufficientStockError if the result would be negative.
    """
    new_stock = product.stock_quantity + delta
    if new_stock < 0:
        raise InsufficientStockError(product.id, product.name, product.stock_quantity, -delta)
    product.stock_quantity = new_stock
    return new_stock


def create_stock_movement(
    *,
    product_id: int,
    movement_type: StockMovementType,
    quantity: int,
    notes: str | None = None,
    user_id: int,
) -> StockMovement:
    """
    Record a stock movement and update the product stock atomically.

    Raises:
        ProductNotFoundError: product does not exist
        ValidationError: digital product, or a quantity that is invalid for the type
        InsufficientStockError: OUT would take the stock below zero
    """
    if quantity < 0:
        raise ValidationError("quantity must be >= 0")
    if quantity == 0 and movement_type != StockMovementType.COUNT_ADJUSTMENT:
        raise ValidationError("quantity must be > 0 for in/out movements")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")

    try:
        begin_write()
        product = get_product_for_update(product_id)
        if not product.is_physical:
            raise ValidationError(f"Product with id {product_id} is not a physical product")

        previous_stock = product.stock_quantity
        new_stock = compute_new_stock(movement_type, previous_stock, quantity)
        if new_stock < 0:
            raise InsufficientStockError(product.id, product.name, previous_stock, quantity)
        if new_stock > MAX_QUANTITY:
            raise ValidationError(f"stock_quantity cannot exceed {MAX_QUANTITY}")

        movement = StockMovement(
            product_id=product.id,
            type=movement_type,
            quantity=quantity,
            previous_stock=previous_stock,
            new_stock=new_stock,
            notes=notes,
            user_id=user_id,
        )
        db.session.add(movement)
        product.stock_quantity = new_stock

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info(
        "stock_movement_recorded product_id=%s type=%s quantity=%s previous=%s new=%s user_id=%s",
        product_id, movement_type.value, quantity, previous_stock, new_stock, user_id,
    )
    return movement


def list_stock_movements(product_id: int | None = None) -> list[StockMovement]:
    """All movements newest first, optionally for one product."""
    query = db.session.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).all()
