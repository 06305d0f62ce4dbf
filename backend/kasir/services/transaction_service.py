"""
Transaction processor - point-of-sale checkout as one unit of work.

A cart is validated line by line against live stock and digital balances,
and the header, line items and all stock/balance decrements are committed
together. Any failure rolls everything back: no transaction row, no item
rows, no stock or balance change.

Side effect per line:
- PHYSICAL product, not a digital sale -> decrement stock_quantity
- DIGITAL product, digital sale        -> decrement DigitalBalance
- any other combination                -> line is recorded, nothing decremented

Payment:
- CASH requires payment_received_cents >= total; change = received - total
- DIGITAL never records received/change amounts
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass

from ..errors import NotFoundError
from ..extensions import db
from ..models import PaymentMethod, Product, Transaction, TransactionItem
from ..validation import MAX_AMOUNT_CENTS, MAX_QUANTITY, ValidationError
from . import digital_balance_service
from .concurrency import begin_write
from .inventory_service import apply_stock_delta
from .products_service import get_product_for_update

log = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    unit_price_cents: int
    is_digital_sale: bool = False

    @property
    def total_price_cents(self) -> int:
        return self.quantity * self.unit_price_cents


def generate_transaction_number() -> str:
    """TRX-<epoch ms>-<5 random base36 chars>; uniqueness is enforced by the DB."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(5))
    return f"TRX-{int(time.time() * 1000)}-{suffix}"


def cart_total_cents(lines: list[CartLine]) -> int:
    return sum(line.total_price_cents for line in lines)


def compute_change_cents(
    payment_method: PaymentMethod,
    total_cents: int,
    payment_received_cents: int | None,
) -> tuple[int | None, int | None]:
    """
    Return (payment_received_cents, change_amount_cents) to store.

    Raises ValidationError when a cash payment does not cover the total.
    """
    if payment_method == PaymentMethod.DIGITAL:
        return None, None

    if payment_method == PaymentMethod.CASH:
        if payment_received_cents is None:
            raise ValidationError("payment_received_cents is required for cash payments")
        if payment_received_cents < total_cents:
            raise ValidationError(
                "payment_received_cents must cover total_amount_cents",
            )
        return payment_received_cents, max(0, payment_received_cents - total_cents)

    raise ValueError(f"unhandled payment method: {payment_method!r}")


def _apply_line(product: Product, line: CartLine) -> None:
    if product.is_physical and not line.is_digital_sale:
        apply_stock_delta(product, -line.quantity)
    elif product.is_digital and line.is_digital_sale:
        balance = digital_balance_service.get_by_product(product.id, lock=True)
        digital_balance_service.debit(balance, line.total_price_cents, product=product)


def create_transaction(
    *,
    items: list[dict] | list[CartLine],
    payment_method: PaymentMethod,
    payment_received_cents: int | None = None,
    notes: str | None = None,
    user_id: int,
) -> Transaction:
    """
    Create a transaction and apply its stock/balance side effects atomically.

    Raises:
        ValidationError: empty cart or insufficient cash
        ProductNotFoundError: a line references a missing product
        InsufficientStockError: a physical line exceeds stock
        InsufficientBalanceError: a digital sale exceeds the digital balance
    """
    lines = [item if isinstance(item, CartLine) else CartLine(**item) for item in items]
    if not lines:
        raise ValidationError("Cannot create a transaction with no items")
    for line in lines:
        if line.quantity <= 0 or line.quantity > MAX_QUANTITY:
            raise ValidationError(f"quantity must be between 1 and {MAX_QUANTITY}")

    total_cents = cart_total_cents(lines)
    if total_cents > MAX_AMOUNT_CENTS:
        raise ValidationError(f"total_amount_cents cannot exceed {MAX_AMOUNT_CENTS}")
    received_cents, change_cents = compute_change_cents(
        payment_method, total_cents, payment_received_cents
    )

    try:
        begin_write()

        transaction = Transaction(
            transaction_number=generate_transaction_number(),
            user_id=user_id,
            total_amount_cents=total_cents,
            payment_method=payment_method,
            payment_received_cents=received_cents,
            change_amount_cents=change_cents,
            notes=notes,
        )
        db.session.add(transaction)
        db.session.flush()

        for line in lines:
            product = get_product_for_update(line.product_id)

            # Checks run before the item row is written
            _apply_line(product, line)

            db.session.add(TransactionItem(
                transaction_id=transaction.id,
                product_id=product.id,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                total_price_cents=line.total_price_cents,
                is_digital_sale=line.is_digital_sale,
            ))

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info(
        "transaction_created id=%s number=%s items=%s total_cents=%s method=%s user_id=%s",
        transaction.id, transaction.transaction_number, len(lines), total_cents,
        payment_method.value, user_id,
    )
    return transaction


def list_transactions() -> list[Transaction]:
    """All transactions, newest first."""
    return (
        db.session.query(Transaction)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        .all()
    )


def get_transaction(transaction_id: int) -> Transaction:
    transaction = db.session.get(Transaction, transaction_id)
    if transaction is None:
        raise NotFoundError(
            f"Transaction with id {transaction_id} not found",
            details={"transaction_id": transaction_id},
        )
    return transaction
