# Overview: Flask API routes for user management; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..errors import KasirError, error_body, http_status_for
from ..models import User
from ..services import users_service
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_user,
    validate_payload,
)

USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "full_name", "role", "is_active"},
    required_on_create={"username", "full_name", "password", "role"},
    extra_fields={"password"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
def list_users():
    users = users_service.list_users()
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)}), 200


@users_bp.get("/<int:user_id>")
def get_user(user_id: int):
    try:
        user = users_service.get_user(user_id)
    except KasirError as e:
        return jsonify(error_body(e)), http_status_for(e)
    return jsonify(user.to_dict()), 200


@users_bp.post("")
def create_user_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
        enforce_rules_user(patch, creating=True)
        user = users_service.create_user(patch=patch)
    except (ValidationError, ConflictError) as e:
        return jsonify(error_body(e)), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(user.to_dict()), 201


@users_bp.put("/<int:user_id>")
def update_user_route(user_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
        enforce_rules_user(patch, creating=False)
        user = users_service.update_user(user_id=user_id, patch=patch)
    except (ValidationError, ConflictError, KasirError) as e:
        return jsonify(error_body(e)), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(user.to_dict()), 200
