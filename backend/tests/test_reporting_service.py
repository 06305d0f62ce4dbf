"""
Reporting tests.

Verifies:
- Profit = revenue - quantity x current cost, margin rounded to 2 decimals
- Inclusive calendar-day date ranges
- Physical/digital split and top products ranking
"""

from datetime import datetime, timedelta

import pytest

from kasir.extensions import db
from kasir.models import PaymentMethod, ProductType
from kasir.services import reporting_service
from kasir.services.transaction_service import create_transaction
from kasir.time_utils import utcnow
from kasir.validation import ValidationError


def _today():
    return utcnow().date().isoformat()


def _sell(user, *lines, created_at=None):
    trx = create_transaction(
        items=[
            {
                "product_id": product.id,
                "quantity": quantity,
                "unit_price_cents": product.selling_price_cents,
                "is_digital_sale": product.type == ProductType.DIGITAL,
            }
            for product, quantity in lines
        ],
        payment_method=PaymentMethod.DIGITAL,
        user_id=user.id,
    )
    if created_at is not None:
        trx.created_at = created_at
        db.session.commit()
    return trx


@pytest.fixture
def two_products(make_product):
    cheap = make_product(name="Teh Botol", cost_price_cents=1000, selling_price_cents=1500)
    dear = make_product(name="Kopi Kapal Api", cost_price_cents=2000, selling_price_cents=2500)
    return cheap, dear


class TestProfitMargin:

    def test_rounds_half_up_to_two_decimals(self):
        assert reporting_service.profit_margin_percent(2500, 9500) == 26.32
        assert reporting_service.profit_margin_percent(1, 8) == 12.5

    def test_zero_revenue_gives_zero_margin(self):
        assert reporting_service.profit_margin_percent(0, 0) == 0.0


class TestProfitReport:

    def test_profit_and_margin(self, acting_user, two_products):
        cheap, dear = two_products
        _sell(acting_user, (cheap, 3), (dear, 2))

        report = reporting_service.profit_report(start_date=_today(), end_date=_today())

        assert report == {
            "total_profit_cents": 2500,
            "total_revenue_cents": 9500,
            "profit_margin": 26.32,
        }

    def test_empty_range(self, acting_user, two_products):
        report = reporting_service.profit_report(start_date="2001-01-01", end_date="2001-01-31")
        assert report == {"total_profit_cents": 0, "total_revenue_cents": 0, "profit_margin": 0.0}

    def test_range_is_inclusive_of_whole_days(self, acting_user, two_products):
        cheap, _ = two_products
        _sell(acting_user, (cheap, 1), created_at=datetime(2024, 1, 14, 23, 59, 59))
        _sell(acting_user, (cheap, 2), created_at=datetime(2024, 1, 15, 0, 0, 0))
        _sell(acting_user, (cheap, 4), created_at=datetime(2024, 1, 15, 23, 59, 59, 500000))
        _sell(acting_user, (cheap, 8), created_at=datetime(2024, 1, 16, 0, 0, 0))

        report = reporting_service.profit_report(start_date="2024-01-15", end_date="2024-01-15")

        assert report["total_revenue_cents"] == 6 * 1500

    @pytest.mark.parametrize(
        "start_date,end_date",
        [
            ("2024-01-16", "2024-01-15"),
            ("15/01/2024", "2024-01-15"),
            ("2024-01-15", None),
            ("2024-02-30", "2024-03-01"),
        ],
    )
    def test_invalid_period_rejected(self, db_session, start_date, end_date):
        with pytest.raises(ValidationError):
            reporting_service.profit_report(start_date=start_date, end_date=end_date)


class TestSalesReport:

    def test_daily_rows_with_physical_digital_split(self, acting_user, physical_product, digital_product):
        _sell(acting_user, (physical_product, 3), (digital_product, 1))
        _sell(acting_user, (physical_product, 1))

        rows = reporting_service.sales_report(start_date=_today(), end_date=_today())

        assert rows == [{
            "date": _today(),
            "total_transactions": 2,
            "total_revenue_cents": 4 * 1500 + 11000,
            "total_profit_cents": 4 * 500 + 1000,
            "physical_sales_cents": 4 * 1500,
            "digital_sales_cents": 11000,
        }]

    def test_one_row_per_day_in_order(self, acting_user, physical_product):
        day_one = datetime(2024, 3, 1, 9, 0)
        _sell(acting_user, (physical_product, 1), created_at=day_one + timedelta(days=1))
        _sell(acting_user, (physical_product, 2), created_at=day_one)

        rows = reporting_service.sales_report(start_date="2024-03-01", end_date="2024-03-31")

        assert [r["date"] for r in rows] == ["2024-03-01", "2024-03-02"]
        assert [r["total_revenue_cents"] for r in rows] == [3000, 1500]

    def test_no_sales_returns_empty_list(self, db_session):
        assert reporting_service.sales_report(start_date="2024-01-01", end_date="2024-12-31") == []


class TestTopProducts:

    def test_ranked_by_quantity(self, acting_user, two_products):
        cheap, dear = two_products
        _sell(acting_user, (cheap, 2), (dear, 5))
        _sell(acting_user, (cheap, 1))

        rows = reporting_service.top_products(start_date=_today(), end_date=_today())

        assert [(r["product_name"], r["total_quantity"]) for r in rows] == [
            ("Kopi Kapal Api", 5),
            ("Teh Botol", 3),
        ]
        assert rows[0]["total_revenue_cents"] == 5 * 2500

    def test_limit(self, acting_user, two_products):
        cheap, dear = two_products
        _sell(acting_user, (cheap, 2), (dear, 5))

        rows = reporting_service.top_products(start_date=_today(), end_date=_today(), limit=1)

        assert len(rows) == 1
        assert rows[0]["product_id"] == dear.id

    def test_non_positive_limit_rejected(self, db_session):
        with pytest.raises(ValidationError):
            reporting_service.top_products(start_date="2024-01-01", end_date="2024-01-02", limit=0)
