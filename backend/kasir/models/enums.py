# Overview: Closed value sets persisted by their string value.

from __future__ import annotations

import enum

from ..extensions import db


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    CASHIER = "cashier"


class ProductType(str, enum.Enum):
    PHYSICAL = "physical"
    DIGITAL = "digital"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    DIGITAL = "digital"


class StockMovementType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    COUNT_ADJUSTMENT = "count_adjustment"


class CashDrawerEntryType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    OPENING_BALANCE = "opening_balance"


def enum_column(enum_cls: type[enum.Enum], **kwargs) -> db.Column:
    """
    Column storing the enum *value* (not the member name) as VARCHAR + CHECK,
    so the same schema works on SQLite and Postgres.
    """
    return db.Column(
        db.Enum(
            enum_cls,
            native_enum=False,
            create_constraint=True,
            validate_strings=True,
            length=32,
            name=f"ck_{enum_cls.__name__.lower()}",
            values_callable=lambda members: [m.value for m in members],
        ),
        **kwargs,
    )
