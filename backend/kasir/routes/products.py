# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/kasir/routes/products.py
"""
Product catalog routes.

stock_quantity is accepted on create only; afterwards stock changes go
through /api/inventory/movements or a transaction.
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import KasirError, error_body, http_status_for
from ..models import Product
from ..services import products_service
from ..validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "sku", "barcode", "type", "category",
        "cost_price_cents", "selling_price_cents",
        "stock_quantity", "min_stock_alert", "is_active",
    },
    required_on_create={"name", "type", "cost_price_cents", "selling_price_cents"},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "sku", "barcode", "type", "category",
        "cost_price_cents", "selling_price_cents",
        "min_stock_alert", "is_active",
    },
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _items(products) -> dict:
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("")
def list_products():
    return jsonify(_items(products_service.list_products())), 200


@products_bp.get("/search")
def search_products():
    """
    Query params:
    - q: str (optional) - matches name, sku or barcode; blank lists all active products
    """
    return jsonify(_items(products_service.search_products(request.args.get("q", "")))), 200


@products_bp.get("/low-stock")
def low_stock_products():
    return jsonify(_items(products_service.list_low_stock_products())), 200


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except KasirError as e:
        return jsonify(error_body(e)), http_status_for(e)
    return jsonify(product.to_dict()), 200


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
        enforce_rules_product(patch)
        product = products_service.create_product(patch=patch)
    except ValidationError as e:
        return jsonify(error_body(e)), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(product.to_dict()), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
        enforce_rules_product(patch)
        product = products_service.update_product(product_id=product_id, patch=patch)
    except (ValidationError, KasirError) as e:
        return jsonify(error_body(e)), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(product.to_dict()), 200
