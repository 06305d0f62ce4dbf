# Overview: Flask API routes for digital balances; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import KasirError, NotFoundError, error_body, http_status_for
from ..models import DigitalBalance
from ..services import digital_balance_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_digital_balance,
    validate_payload,
)

BALANCE_POLICY = ModelValidationPolicy(
    writable_fields={"balance_cents"},
    required_on_create={"balance_cents"},
)

digital_balances_bp = Blueprint("digital_balances", __name__, url_prefix="/api/digital-balances")


@digital_balances_bp.get("")
def list_balances():
    balances = digital_balance_service.list_balances()
    return jsonify({"items": [b.to_dict() for b in balances], "count": len(balances)}), 200


@digital_balances_bp.get("/<int:product_id>")
def get_balance(product_id: int):
    balance = digital_balance_service.get_by_product(product_id)
    if balance is None:
        e = NotFoundError(
            f"Digital balance for product {product_id} not found",
            details={"product_id": product_id},
        )
        return jsonify(error_body(e)), 404
    return jsonify(balance.to_dict()), 200


@digital_balances_bp.put("/<int:product_id>")
def set_balance_route(product_id: int):
    """Explicitly set the balance of a digital product."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=DigitalBalance, payload=payload, policy=BALANCE_POLICY, partial=False)
        enforce_rules_digital_balance(patch)
        balance = digital_balance_service.set_balance(
            product_id=product_id,
            balance_cents=patch["balance_cents"],
        )
    except (ValidationError, KasirError) as e:
        return jsonify(error_body(e)), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to set digital balance")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(balance.to_dict()), 200
