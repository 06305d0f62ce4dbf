from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Enum, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .models import PaymentMethod, ProductType, StockMovementType


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Upper bound for any quantity or stock level
MAX_QUANTITY = 1_000_000

# Line totals, transaction totals, payments, balances and drawer amounts
MAX_AMOUNT_CENTS = 999_999_999_999

# Largest value a 64-bit INTEGER column can hold
MAX_INTEGER = 2**63 - 1

MIN_PASSWORD_LENGTH = 6
MIN_USERNAME_LENGTH = 3
MIN_FULL_NAME_LENGTH = 2


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate username)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - extra_fields: non-column fields the service handles itself (e.g. password)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    extra_fields: set[str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def coerce_int(key: str, value: Any) -> int:
    """Strict integer parsing: rejects floats, bools, decimals and scientific notation."""
    value = _parse_int(key, value)
    if abs(value) > MAX_INTEGER:
        raise ValidationError(f"{key} is out of range")
    return value


def _parse_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    # Other types
    raise ValidationError(f"{key} must be an integer")


def coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{key} must be a boolean")


def coerce_enum(key: str, enum_cls, value: Any):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"{key} must be one of: {allowed}")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Enums first: sqlalchemy.Enum is a String subclass
    if isinstance(coltype, Enum) and coltype.enum_class is not None:
        return coerce_enum(col.key, coltype.enum_class, value)

    if isinstance(coltype, Integer):
        return coerce_int(col.key, value)

    if isinstance(coltype, Boolean):
        return coerce_bool(col.key, value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if not isinstance(value, str):
            raise ValidationError(f"{col.key} must be a string")
        return value.strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)

    Fields listed in policy.extra_fields are passed through untouched for the
    service (or an enforce_rules_* function) to check.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    extra = policy.extra_fields or set()

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields and k not in extra:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols and k not in extra:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in extra:
            patch[k] = raw
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not isinstance(col.type, Enum) and val == "":
            if not col.nullable:
                raise ValidationError(f"{k} cannot be blank")
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and not isinstance(col.type, Enum) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(patch: dict, key: str, *, allow_zero: bool) -> None:
    if key not in patch or patch[key] is None:
        return
    price = patch[key]
    if allow_zero and price < 0:
        raise ValidationError(f"{key} must be >= 0")
    if not allow_zero and price <= 0:
        raise ValidationError(f"{key} must be > 0")
    if price > MAX_PRICE_CENTS:
        raise ValidationError(f"{key} cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_price(patch, "cost_price_cents", allow_zero=True)
    _check_price(patch, "selling_price_cents", allow_zero=False)

    if patch.get("stock_quantity") is not None and patch["stock_quantity"] < 0:
        raise ValidationError("stock_quantity must be >= 0")

    for key in ("stock_quantity", "min_stock_alert"):
        if patch.get(key) is not None and patch[key] > MAX_QUANTITY:
            raise ValidationError(f"{key} cannot exceed {MAX_QUANTITY}")

    if patch.get("min_stock_alert") is not None and patch["min_stock_alert"] < 0:
        raise ValidationError("min_stock_alert must be >= 0")

    if patch.get("type") == ProductType.DIGITAL and patch.get("stock_quantity"):
        raise ValidationError("stock_quantity must be 0 for digital products")


def enforce_rules_user(patch: dict, *, creating: bool) -> None:
    if "username" in patch and len(patch["username"]) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"username must be at least {MIN_USERNAME_LENGTH} characters")

    if "full_name" in patch and len(patch["full_name"]) < MIN_FULL_NAME_LENGTH:
        raise ValidationError(f"full_name must be at least {MIN_FULL_NAME_LENGTH} characters")

    if "password" in patch or creating:
        password = patch.get("password")
        if not isinstance(password, str):
            raise ValidationError("password must be a string")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")


def enforce_rules_digital_balance(patch: dict) -> None:
    balance = patch.get("balance_cents")
    if balance is None:
        raise ValidationError("balance_cents is required")
    if balance < 0:
        raise ValidationError("balance_cents must be >= 0")
    if balance > MAX_AMOUNT_CENTS:
        raise ValidationError(f"balance_cents cannot exceed {MAX_AMOUNT_CENTS}")


def enforce_rules_cash_drawer(patch: dict) -> None:
    if patch.get("amount_cents") is None or patch["amount_cents"] <= 0:
        raise ValidationError("amount_cents must be > 0")
    if patch["amount_cents"] > MAX_AMOUNT_CENTS:
        raise ValidationError(f"amount_cents cannot exceed {MAX_AMOUNT_CENTS}")


def enforce_rules_stock_movement(patch: dict) -> None:
    # IN/OUT are deltas and must be positive; COUNT_ADJUSTMENT is an absolute count
    quantity = patch.get("quantity")
    if quantity is None:
        raise ValidationError("quantity is required")
    if quantity < 0:
        raise ValidationError("quantity must be >= 0")
    if quantity > MAX_QUANTITY:
        raise ValidationError(f"quantity cannot exceed {MAX_QUANTITY}")
    if quantity == 0 and patch.get("type") != StockMovementType.COUNT_ADJUSTMENT:
        raise ValidationError("quantity must be > 0 for in/out movements")


def validate_transaction_payload(payload: dict) -> dict:
    """
    Validate a createTransaction request body.

    Shape:
        {
          "items": [{"product_id", "quantity", "unit_price_cents", "is_digital_sale"?}, ...],
          "payment_method": "cash" | "digital",
          "payment_received_cents": int | null,
          "notes": str | null
        }
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    allowed = {"items", "payment_method", "payment_received_cents", "notes"}
    for k in payload.keys():
        if k not in allowed:
            raise ValidationError(f"Field not allowed: {k}")

    raw_items = payload.get("items")
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items = []
    for index, raw in enumerate(raw_items):
        prefix = f"items[{index}]"
        if not isinstance(raw, dict):
            raise ValidationError(f"{prefix} must be an object")
        for field in ("product_id", "quantity", "unit_price_cents"):
            if raw.get(field) is None:
                raise ValidationError(f"{prefix}.{field} is required")

        quantity = coerce_int(f"{prefix}.quantity", raw["quantity"])
        if quantity <= 0:
            raise ValidationError(f"{prefix}.quantity must be > 0")
        if quantity > MAX_QUANTITY:
            raise ValidationError(f"{prefix}.quantity cannot exceed {MAX_QUANTITY}")

        unit_price = coerce_int(f"{prefix}.unit_price_cents", raw["unit_price_cents"])
        if unit_price <= 0:
            raise ValidationError(f"{prefix}.unit_price_cents must be > 0")
        if unit_price > MAX_PRICE_CENTS:
            raise ValidationError(f"{prefix}.unit_price_cents cannot exceed {MAX_PRICE_CENTS}")
        if quantity * unit_price > MAX_AMOUNT_CENTS:
            raise ValidationError(f"{prefix} total cannot exceed {MAX_AMOUNT_CENTS}")

        items.append({
            "product_id": coerce_int(f"{prefix}.product_id", raw["product_id"]),
            "quantity": quantity,
            "unit_price_cents": unit_price,
            "is_digital_sale": coerce_bool(f"{prefix}.is_digital_sale", raw.get("is_digital_sale", False)),
        })

    if payload.get("payment_method") is None:
        raise ValidationError("payment_method is required")
    payment_method = coerce_enum("payment_method", PaymentMethod, payload["payment_method"])

    payment_received = payload.get("payment_received_cents")
    if payment_received is not None:
        payment_received = coerce_int("payment_received_cents", payment_received)
        if payment_received <= 0:
            raise ValidationError("payment_received_cents must be > 0")
        if payment_received > MAX_AMOUNT_CENTS:
            raise ValidationError(f"payment_received_cents cannot exceed {MAX_AMOUNT_CENTS}")

    notes = payload.get("notes")
    if notes is not None:
        if not isinstance(notes, str):
            raise ValidationError("notes must be a string")
        notes = notes.strip() or None

    return {
        "items": items,
        "payment_method": payment_method,
        "payment_received_cents": payment_received,
        "notes": notes,
    }
