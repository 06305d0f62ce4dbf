from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from .enums import ProductType, StockMovementType, enum_column


class Product(db.Model):
    """
    Product master data.

    PRICING: cost and selling prices are authoritative integer cents.

    STOCK: stock_quantity is only meaningful for PHYSICAL products and is
    written exclusively by the stock movement recorder and the transaction
    processor. DIGITAL products are fulfilled from their DigitalBalance.

    version_id enables optimistic locking: a concurrent writer holding a stale
    row fails with StaleDataError instead of overwriting the stock.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("cost_price_cents >= 0", name="ck_products_cost_non_negative"),
        db.CheckConstraint("selling_price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_active", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True, index=True)
    barcode = db.Column(db.String(64), nullable=True, index=True)
    type = enum_column(ProductType, nullable=False)
    category = db.Column(db.String(128), nullable=True)

    cost_price_cents = db.Column(db.Integer, nullable=False)
    selling_price_cents = db.Column(db.Integer, nullable=False)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_alert = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    digital_balance = db.relationship("DigitalBalance", back_populates="product", uselist=False)
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_physical(self) -> bool:
        return self.type == ProductType.PHYSICAL

    @property
    def is_digital(self) -> bool:
        return self.type == ProductType.DIGITAL

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} type={self.type.value} stock={self.stock_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "type": self.type.value,
            "category": self.category,
            "cost_price_cents": self.cost_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "stock_quantity": self.stock_quantity,
            "min_stock_alert": self.min_stock_alert,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class DigitalBalance(db.Model):
    """
    Prepaid balance backing a DIGITAL product (one row per product).

    Written only by the transaction processor (debits) and the explicit
    balance-set operation.
    """
    __tablename__ = "digital_balances"
    __table_args__ = (
        db.UniqueConstraint("product_id", name="uq_digital_balances_product"),
        db.CheckConstraint("balance_cents >= 0", name="ck_digital_balances_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    balance_cents = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", back_populates="digital_balance")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "balance_cents": self.balance_cents,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only audit of every manual stock change.

    previous_stock/new_stock snapshot the product row at the moment the
    movement was applied. For COUNT_ADJUSTMENT, quantity is the counted
    absolute stock, not a delta.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_movements_quantity"),
        db.CheckConstraint("new_stock >= 0", name="ck_stock_movements_new_stock"),
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    type = enum_column(StockMovementType, nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)

    notes = db.Column(db.Text, nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product")

    @property
    def quantity_delta(self) -> int:
        return self.new_stock - self.previous_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "type": self.type.value,
            "quantity": self.quantity,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "quantity_delta": self.quantity_delta,
            "notes": self.notes,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
