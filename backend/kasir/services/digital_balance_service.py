# Overview: Digital balance store; lookups, explicit balance set and processor debits.

from __future__ import annotations

import logging

from ..errors import InsufficientBalanceError, ProductNotFoundError
from ..extensions import db
from ..models import DigitalBalance, Product
from ..validation import ValidationError
from .concurrency import begin_write, lock_for_update

log = logging.getLogger(__name__)


def get_by_product(product_id: int, *, lock: bool = False) -> DigitalBalance | None:
    query = db.session.query(DigitalBalance).filter_by(product_id=product_id)
    if lock:
        query = lock_for_update(query)
    return query.first()


def ensure_balance_row(product: Product) -> DigitalBalance:
    """Return the product's balance row, adding a zero balance if missing (no commit)."""
    balance = get_by_product(product.id)
    if balance is None:
        balance = DigitalBalance(product_id=product.id, balance_cents=0)
        db.session.add(balance)
        db.session.flush()
    return balance


def list_balances() -> list[DigitalBalance]:
    return (
        db.session.query(DigitalBalance)
        .join(Product, Product.id == DigitalBalance.product_id)
        .order_by(Product.name.asc(), DigitalBalance.id.asc())
        .all()
    )


def debit(
    balance: DigitalBalance | None,
    amount_cents: int,
    *,
    product: Product,
) -> None:
    """
    Deduct amount_cents from a locked balance row (no commit).

    A digital product without a balance row has nothing to sell.
    """
    available = balance.balance_cents if balance is not None else 0
    if balance is None or available < amount_cents:
        raise InsufficientBalanceError(product.id, product.name, available, amount_cents)
    balance.balance_cents = available - amount_cents


def set_balance(*, product_id: int, balance_cents: int) -> DigitalBalance:
    """
    Explicitly set a digital product's balance (creates the row if missing).

    Raises:
        ProductNotFoundError: product does not exist
        ValidationError: product is not DIGITAL or balance is negative
    """
    if balance_cents < 0:
        raise ValidationError("balance_cents must be >= 0")

    try:
        begin_write()
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise ProductNotFoundError(product_id)
        if not product.is_digital:
            raise ValidationError(f"Product with id {product_id} is not a digital product")

        balance = get_by_product(product_id, lock=True)
        if balance is None:
            balance = DigitalBalance(product_id=product_id, balance_cents=balance_cents)
            db.session.add(balance)
        else:
            balance.balance_cents = balance_cents

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info("digital_balance_set product_id=%s balance_cents=%s", product_id, balance_cents)
    return balance
