# Overview: Service-layer operations for reporting; read-only aggregates over transactions.

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import case, func

from kasir.extensions import db
from kasir.models import Product, Transaction, TransactionItem
from kasir.time_utils import day_range, parse_calendar_date
from kasir.validation import ValidationError


def _parse_period(start_date: str | None, end_date: str | None) -> tuple[datetime, datetime]:
    """
    Calendar dates (YYYY-MM-DD) -> inclusive bounds
    [start_date 00:00:00, end_date 23:59:59.999999].
    """
    try:
        start = parse_calendar_date(start_date)
    except ValueError:
        raise ValidationError("start_date must be a YYYY-MM-DD date")
    try:
        end = parse_calendar_date(end_date)
    except ValueError:
        raise ValidationError("end_date must be a YYYY-MM-DD date")
    if start > end:
        raise ValidationError("start_date must be on or before end_date")
    return day_range(start, end)


def _line_cost_expr():
    return TransactionItem.quantity * Product.cost_price_cents


def _period_filter(query, start_dt: datetime, end_dt: datetime):
    return query.filter(
        Transaction.created_at >= start_dt,
        Transaction.created_at <= end_dt,
    )


def _as_date_string(value) -> str:
    # SQLite returns 'YYYY-MM-DD' text; Postgres returns a date
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def profit_margin_percent(profit_cents: int, revenue_cents: int) -> float:
    """profit / revenue * 100, rounded half-up to 2 decimals; 0 when revenue is 0."""
    if revenue_cents == 0:
        return 0.0
    margin = Decimal(profit_cents) * 100 / Decimal(revenue_cents)
    return float(margin.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def sales_report(*, start_date: str | None, end_date: str | None) -> list[dict]:
    """Per-day revenue, profit and physical/digital split within the range."""
    start_dt, end_dt = _parse_period(start_date, end_date)

    day = func.date(Transaction.created_at)

    query = db.session.query(
        day.label("date"),
        func.count(func.distinct(Transaction.id)).label("total_transactions"),
        func.coalesce(func.sum(TransactionItem.total_price_cents), 0).label("total_revenue_cents"),
        func.coalesce(
            func.sum(TransactionItem.total_price_cents - _line_cost_expr()), 0
        ).label("total_profit_cents"),
        func.coalesce(
            func.sum(case(
                (TransactionItem.is_digital_sale.is_(False), TransactionItem.total_price_cents),
                else_=0,
            )), 0
        ).label("physical_sales_cents"),
        func.coalesce(
            func.sum(case(
                (TransactionItem.is_digital_sale.is_(True), TransactionItem.total_price_cents),
                else_=0,
            )), 0
        ).label("digital_sales_cents"),
    ).select_from(Transaction).join(
        TransactionItem, TransactionItem.transaction_id == Transaction.id
    ).join(
        Product, Product.id == TransactionItem.product_id
    )

    rows = _period_filter(query, start_dt, end_dt).group_by(day).order_by(day).all()
    return [
        {
            "date": _as_date_string(row.date),
            "total_transactions": int(row.total_transactions or 0),
            "total_revenue_cents": int(row.total_revenue_cents or 0),
            "total_profit_cents": int(row.total_profit_cents or 0),
            "physical_sales_cents": int(row.physical_sales_cents or 0),
            "digital_sales_cents": int(row.digital_sales_cents or 0),
        }
        for row in rows
    ]


def profit_report(*, start_date: str | None, end_date: str | None) -> dict:
    """
    Revenue, profit and margin within the range.

    Profit per line = total_price_cents - quantity * product.cost_price_cents.
    """
    start_dt, end_dt = _parse_period(start_date, end_date)

    query = db.session.query(
        func.coalesce(func.sum(TransactionItem.total_price_cents), 0).label("revenue"),
        func.coalesce(func.sum(_line_cost_expr()), 0).label("cost"),
    ).select_from(TransactionItem).join(
        Transaction, Transaction.id == TransactionItem.transaction_id
    ).join(
        Product, Product.id == TransactionItem.product_id
    )

    row = _period_filter(query, start_dt, end_dt).one()
    revenue = int(row.revenue or 0)
    profit = revenue - int(row.cost or 0)

    return {
        "total_profit_cents": profit,
        "total_revenue_cents": revenue,
        "profit_margin": profit_margin_percent(profit, revenue),
    }


def top_products(
    *,
    start_date: str | None,
    end_date: str | None,
    limit: int | None = None,
) -> list[dict]:
    """Products ranked by quantity sold within the range."""
    start_dt, end_dt = _parse_period(start_date, end_date)
    if limit is not None and limit <= 0:
        raise ValidationError("limit must be > 0")

    total_quantity = func.sum(TransactionItem.quantity)

    query = db.session.query(
        TransactionItem.product_id.label("product_id"),
        Product.name.label("product_name"),
        total_quantity.label("total_quantity"),
        func.sum(TransactionItem.total_price_cents).label("total_revenue_cents"),
    ).select_from(TransactionItem).join(
        Product, Product.id == TransactionItem.product_id
    ).join(
        Transaction, Transaction.id == TransactionItem.transaction_id
    )

    query = (
        _period_filter(query, start_dt, end_dt)
        .group_by(TransactionItem.product_id, Product.name)
        .order_by(total_quantity.desc(), TransactionItem.product_id.asc())
    )
    if limit is not None:
        query = query.limit(limit)

    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "total_quantity": int(row.total_quantity or 0),
            "total_revenue_cents": int(row.total_revenue_cents or 0),
        }
        for row in query.all()
    ]
