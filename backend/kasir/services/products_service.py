# backend/kasir/services/products_service.py
"""
Product catalog service.

STOCK OWNERSHIP: stock_quantity is set once on create. Afterwards only the
stock movement recorder and the transaction processor write it, so it is not
in PRODUCT_MUTABLE_FIELDS.

DIGITAL PRODUCTS: a zero DigitalBalance row is created alongside every
digital product (and when an existing product is switched to digital).
"""
from __future__ import annotations

import logging

from sqlalchemy import or_

from ..errors import ProductNotFoundError
from ..extensions import db
from ..models import Product, ProductType
from ..validation import ValidationError
from .concurrency import lock_for_update
from .digital_balance_service import ensure_balance_row

log = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {
    "name", "sku", "barcode", "type", "category",
    "cost_price_cents", "selling_price_cents", "min_stock_alert", "is_active",
}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def get_product_for_update(product_id: int) -> Product:
    """Row-locked lookup used inside write units of work."""
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()


def _escape_like(term: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def search_products(query: str | None) -> list[Product]:
    """
    Active products whose name, sku or barcode contains the query
    (case-insensitive). A blank query returns every active product.
    """
    q = db.session.query(Product).filter(Product.is_active.is_(True))

    term = (query or "").strip()
    if term:
        pattern = f"%{_escape_like(term)}%"
        q = q.filter(
            or_(
                Product.name.ilike(pattern, escape="\\"),
                Product.sku.ilike(pattern, escape="\\"),
                Product.barcode.ilike(pattern, escape="\\"),
            )
        )

    return q.order_by(Product.name.asc(), Product.id.asc()).all()


def list_low_stock_products() -> list[Product]:
    """Active products with an alert threshold whose stock is at or below it."""
    return (
        db.session.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.min_stock_alert.isnot(None),
            Product.stock_quantity <= Product.min_stock_alert,
        )
        .order_by(Product.stock_quantity.asc(), Product.name.asc())
        .all()
    )


def create_product(*, patch: dict) -> Product:
    """
    Create product using a validated patch dict.

    Raises:
        ValidationError: digital product with a non-zero stock_quantity
    """
    product_type = patch["type"]
    stock_quantity = patch.get("stock_quantity") or 0
    if product_type == ProductType.DIGITAL and stock_quantity:
        raise ValidationError("stock_quantity must be 0 for digital products")

    p = Product(stock_quantity=stock_quantity)
    apply_product_patch(p, patch)

    try:
        db.session.add(p)
        db.session.flush()  # ensure p.id exists before the balance row

        if p.is_digital:
            ensure_balance_row(p)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info("product_created product_id=%s type=%s name=%s", p.id, p.type.value, p.name)
    return p


def update_product(*, product_id: int, patch: dict) -> Product:
    """
    Update a product. stock_quantity is rejected here; use a stock movement.

    Raises:
        ProductNotFoundError: product does not exist
        ValidationError: attempt to write stock_quantity, or a switch to DIGITAL
            while the product still holds stock
    """
    if "stock_quantity" in patch:
        raise ValidationError("stock_quantity can only be changed through a stock movement")

    try:
        p = get_product(product_id)
        apply_product_patch(p, patch)

        if p.is_digital and p.stock_quantity != 0:
            raise ValidationError(
                "stock_quantity must be 0 for digital products; "
                "count the stock down to 0 before switching the type"
            )

        if p.is_digital:
            ensure_balance_row(p)

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info("product_updated product_id=%s fields=%s", p.id, ",".join(sorted(patch.keys())))
    return p
