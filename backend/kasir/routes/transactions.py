# Overview: Flask API routes for point-of-sale transactions; parses input and returns JSON responses.

# backend/kasir/routes/transactions.py
"""Checkout API. The acting user is injected by @with_acting_user."""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import with_acting_user
from ..errors import KasirError, error_body, http_status_for
from ..services import transaction_service
from ..validation import ValidationError, validate_transaction_payload

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("")
@with_acting_user
def create_transaction_route():
    """
    Create a transaction from a cart.

    400: malformed cart or insufficient cash
    404: unknown product
    409: insufficient stock or digital balance
    """
    try:
        data = validate_transaction_payload(request.get_json(silent=True))
        transaction = transaction_service.create_transaction(
            items=data["items"],
            payment_method=data["payment_method"],
            payment_received_cents=data["payment_received_cents"],
            notes=data["notes"],
            user_id=g.acting_user_id,
        )
    except (ValidationError, KasirError) as e:
        return jsonify(error_body(e)), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"transaction": transaction.to_dict(include_items=True)}), 201


@transactions_bp.get("")
def list_transactions():
    transactions = transaction_service.list_transactions()
    return jsonify({
        "items": [t.to_dict() for t in transactions],
        "count": len(transactions),
    }), 200


@transactions_bp.get("/<int:transaction_id>")
def get_transaction(transaction_id: int):
    try:
        transaction = transaction_service.get_transaction(transaction_id)
    except KasirError as e:
        return jsonify(error_body(e)), http_status_for(e)
    return jsonify({"transaction": transaction.to_dict(include_items=True)}), 200
