# Overview: Flask API routes for the cash drawer ledger; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import with_acting_user
from ..errors import error_body
from ..models import CashDrawerEntry
from ..services import cash_drawer_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_cash_drawer,
    validate_payload,
)

CASH_DRAWER_POLICY = ModelValidationPolicy(
    writable_fields={"type", "amount_cents", "description"},
    required_on_create={"type", "amount_cents", "description"},
)

cash_drawer_bp = Blueprint("cash_drawer", __name__, url_prefix="/api/cash-drawer")


@cash_drawer_bp.post("/entries")
@with_acting_user
def create_entry_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=CashDrawerEntry, payload=payload, policy=CASH_DRAWER_POLICY, partial=False
        )
        enforce_rules_cash_drawer(patch)
        entry = cash_drawer_service.create_entry(
            entry_type=patch["type"],
            amount_cents=patch["amount_cents"],
            description=patch["description"],
            user_id=g.acting_user_id,
        )
    except ValidationError as e:
        return jsonify(error_body(e)), 400
    except Exception:
        current_app.logger.exception("Failed to create cash drawer entry")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(entry.to_dict()), 201


@cash_drawer_bp.get("/entries")
def list_entries():
    entries = cash_drawer_service.list_entries()
    return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)}), 200


@cash_drawer_bp.get("/balance")
def get_balance():
    return jsonify({"balance_cents": cash_drawer_service.get_balance()}), 200
