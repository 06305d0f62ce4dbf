from flask import Blueprint, jsonify, request

from ..errors import error_body
from ..services import reporting_service
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _period_args() -> dict:
    return {
        "start_date": request.args.get("start_date"),
        "end_date": request.args.get("end_date"),
    }


@reports_bp.get("/sales")
def sales_report():
    try:
        rows = reporting_service.sales_report(**_period_args())
    except ValidationError as exc:
        return jsonify(error_body(exc)), 400
    return jsonify({"rows": rows}), 200


@reports_bp.get("/profit")
def profit_report():
    try:
        report = reporting_service.profit_report(**_period_args())
    except ValidationError as exc:
        return jsonify(error_body(exc)), 400
    return jsonify(report), 200


@reports_bp.get("/top-products")
def top_products_report():
    limit = request.args.get("limit", type=int)
    try:
        rows = reporting_service.top_products(**_period_args(), limit=limit)
    except ValidationError as exc:
        return jsonify(error_body(exc)), 400
    return jsonify({"rows": rows}), 200
