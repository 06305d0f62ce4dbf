# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import with_acting_user
from ..errors import KasirError, error_body, http_status_for
from ..models import StockMovement
from ..services import inventory_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_stock_movement,
    validate_payload,
)

STOCK_MOVEMENT_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "type", "quantity", "notes"},
    required_on_create={"product_id", "type", "quantity"},
)

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/movements")
@with_acting_user
def create_stock_movement_route():
    """
    Record a stock movement.

    Body: {"product_id", "type": "in"|"out"|"count_adjustment", "quantity", "notes"?}
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=StockMovement, payload=payload, policy=STOCK_MOVEMENT_POLICY, partial=False
        )
        enforce_rules_stock_movement(patch)
        movement = inventory_service.create_stock_movement(
            product_id=patch["product_id"],
            movement_type=patch["type"],
            quantity=patch["quantity"],
            notes=patch.get("notes"),
            user_id=g.acting_user_id,
        )
    except (ValidationError, KasirError) as e:
        return jsonify(error_body(e)), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(movement.to_dict()), 201


@inventory_bp.get("/movements")
def list_stock_movements():
    """
    Query params:
    - product_id: int (optional) - movements of one product
    """
    product_id = request.args.get("product_id", type=int)
    movements = inventory_service.list_stock_movements(product_id=product_id)
    return jsonify({"items": [m.to_dict() for m in movements], "count": len(movements)}), 200
