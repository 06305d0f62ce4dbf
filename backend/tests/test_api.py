"""
HTTP API tests.

Verifies:
- Request validation answers 400 with {"error", "details"}
- Missing entities answer 404, business conflicts 409
- Writes are attributed to the configured acting user
"""

import pytest

from kasir.extensions import db
from kasir.models import Transaction


def _checkout(client, *items, method="cash", received=None):
    body = {"items": list(items), "payment_method": method}
    if received is not None:
        body["payment_received_cents"] = received
    return client.post("/api/transactions", json=body)


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.get_json()["database"]["status"] == "healthy"

    def test_cors_allowed_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    def test_cors_unknown_origin(self, client, db_session):
        resp = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestTransactionsApi:

    def test_create_cash_transaction(self, client, acting_user, physical_product):
        resp = _checkout(
            client,
            {"product_id": physical_product.id, "quantity": 2, "unit_price_cents": 1500},
            received=5000,
        )

        assert resp.status_code == 201
        trx = resp.get_json()["transaction"]
        assert trx["total_amount_cents"] == 3000
        assert trx["change_amount_cents"] == 2000
        assert trx["user_id"] == 1
        assert len(trx["items"]) == 1

        fetched = client.get(f"/api/transactions/{trx['id']}")
        assert fetched.status_code == 200
        assert fetched.get_json()["transaction"]["transaction_number"] == trx["transaction_number"]

        listed = client.get("/api/transactions").get_json()
        assert listed["count"] == 1

    def test_digital_payment_nulls(self, client, acting_user, physical_product):
        resp = _checkout(
            client,
            {"product_id": physical_product.id, "quantity": 1, "unit_price_cents": 1500},
            method="digital",
            received=9999,
        )
        trx = resp.get_json()["transaction"]
        assert trx["payment_received_cents"] is None
        assert trx["change_amount_cents"] is None

    def test_insufficient_stock_is_409(self, client, acting_user, physical_product):
        resp = _checkout(
            client,
            {"product_id": physical_product.id, "quantity": 150, "unit_price_cents": 1500},
            received=1000000,
        )

        assert resp.status_code == 409
        body = resp.get_json()
        assert body["details"] == {"product_id": physical_product.id, "available": 100, "required": 150}
        assert db.session.query(Transaction).count() == 0

    def test_insufficient_balance_is_409(self, client, acting_user, digital_product):
        resp = _checkout(
            client,
            {"product_id": digital_product.id, "quantity": 10, "unit_price_cents": 11000, "is_digital_sale": True},
            method="digital",
        )
        assert resp.status_code == 409
        assert resp.get_json()["details"]["available_cents"] == 100000

    def test_unknown_product_is_404(self, client, acting_user):
        resp = _checkout(
            client,
            {"product_id": 31337, "quantity": 1, "unit_price_cents": 100},
            method="digital",
        )
        assert resp.status_code == 404

    def test_unknown_transaction_is_404(self, client, db_session):
        assert client.get("/api/transactions/5").status_code == 404

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"items": [], "payment_method": "cash"},
            {"items": [{"product_id": 1, "quantity": 0, "unit_price_cents": 100}], "payment_method": "cash"},
            {"items": [{"product_id": 1, "quantity": 1, "unit_price_cents": 1.5}], "payment_method": "cash"},
            {"items": [{"product_id": 1, "quantity": 1, "unit_price_cents": 100}], "payment_method": "bitcoin"},
            {"items": [{"product_id": 1, "quantity": 1, "unit_price_cents": 100}], "payment_method": "cash",
             "discount": 5},
        ],
    )
    def test_malformed_cart_is_400(self, client, acting_user, body):
        resp = client.post("/api/transactions", json=body)
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    @pytest.mark.parametrize(
        "item,received",
        [
            ({"quantity": 10**19, "unit_price_cents": 100}, None),
            ({"quantity": 1_000_001, "unit_price_cents": 100}, None),
            ({"quantity": 1_000_000, "unit_price_cents": 999_999_999}, None),
            ({"quantity": 1, "unit_price_cents": 10**19}, None),
            ({"quantity": 1, "unit_price_cents": 1500}, 10**19),
        ],
    )
    def test_out_of_range_numbers_are_400(self, client, acting_user, physical_product, item, received):
        resp = _checkout(client, {"product_id": physical_product.id, **item}, received=received)

        assert resp.status_code == 400
        assert db.session.query(Transaction).count() == 0
        assert physical_product.stock_quantity == 100

    def test_out_of_range_product_id_is_400(self, client, acting_user):
        resp = _checkout(
            client,
            {"product_id": 10**19, "quantity": 1, "unit_price_cents": 100},
            method="digital",
        )
        assert resp.status_code == 400

    def test_underpaid_cash_is_400(self, client, acting_user, physical_product):
        resp = _checkout(
            client,
            {"product_id": physical_product.id, "quantity": 2, "unit_price_cents": 1500},
            received=2000,
        )
        assert resp.status_code == 400


class TestProductsApi:

    def test_create_and_get(self, client, db_session):
        resp = client.post("/api/products", json={
            "name": "Sampoerna Mild",
            "type": "physical",
            "cost_price_cents": 28000,
            "selling_price_cents": 31000,
            "stock_quantity": 12,
        })
        assert resp.status_code == 201
        product = resp.get_json()

        fetched = client.get(f"/api/products/{product['id']}").get_json()
        assert fetched["stock_quantity"] == 12
        assert fetched["type"] == "physical"

    def test_create_digital_creates_balance(self, client, db_session):
        resp = client.post("/api/products", json={
            "name": "Pulsa XL 5k",
            "type": "digital",
            "cost_price_cents": 5100,
            "selling_price_cents": 6000,
        })
        product_id = resp.get_json()["id"]

        balance = client.get(f"/api/digital-balances/{product_id}")
        assert balance.status_code == 200
        assert balance.get_json()["balance_cents"] == 0

    @pytest.mark.parametrize(
        "body",
        [
            {"name": "X", "type": "physical", "cost_price_cents": 100},
            {"name": "X", "type": "service", "cost_price_cents": 100, "selling_price_cents": 200},
            {"name": "X", "type": "physical", "cost_price_cents": 100, "selling_price_cents": 0},
            {"name": "X", "type": "physical", "cost_price_cents": -1, "selling_price_cents": 200},
            {"name": "X", "type": "physical", "cost_price_cents": "12.50", "selling_price_cents": 200},
            {"name": "  ", "type": "physical", "cost_price_cents": 100, "selling_price_cents": 200},
        ],
    )
    def test_invalid_product_is_400(self, client, db_session, body):
        assert client.post("/api/products", json=body).status_code == 400

    def test_switch_to_digital_with_stock_is_400(self, client, physical_product):
        resp = client.put(f"/api/products/{physical_product.id}", json={"type": "digital"})

        assert resp.status_code == 400
        fetched = client.get(f"/api/products/{physical_product.id}").get_json()
        assert (fetched["type"], fetched["stock_quantity"]) == ("physical", 100)

    @pytest.mark.parametrize(
        "field,value",
        [("stock_quantity", 10**19), ("stock_quantity", 1_000_001), ("min_stock_alert", 1_000_001)],
    )
    def test_out_of_range_stock_is_400(self, client, db_session, field, value):
        body = {"name": "X", "type": "physical", "cost_price_cents": 100, "selling_price_cents": 200}
        body[field] = value
        assert client.post("/api/products", json=body).status_code == 400

    def test_update_rejects_stock_quantity(self, client, physical_product):
        resp = client.put(f"/api/products/{physical_product.id}", json={"stock_quantity": 5})
        assert resp.status_code == 400

    def test_update(self, client, physical_product):
        resp = client.put(f"/api/products/{physical_product.id}", json={"selling_price_cents": 1600})
        assert resp.status_code == 200
        assert resp.get_json()["selling_price_cents"] == 1600

    def test_update_unknown_is_404(self, client, db_session):
        assert client.put("/api/products/999", json={"name": "Nope"}).status_code == 404

    def test_search_and_low_stock(self, client, make_product):
        make_product(name="Gula Pasir", stock_quantity=3, min_stock_alert=5)
        make_product(name="Kecap Manis", stock_quantity=50, min_stock_alert=5)

        found = client.get("/api/products/search?q=gula").get_json()
        assert [p["name"] for p in found["items"]] == ["Gula Pasir"]

        low = client.get("/api/products/low-stock").get_json()
        assert [p["name"] for p in low["items"]] == ["Gula Pasir"]

        assert client.get("/api/products").get_json()["count"] == 2


class TestDigitalBalancesApi:

    def test_set_balance(self, client, digital_product):
        resp = client.put(f"/api/digital-balances/{digital_product.id}", json={"balance_cents": 250000})
        assert resp.status_code == 200
        assert resp.get_json()["balance_cents"] == 250000

        listed = client.get("/api/digital-balances").get_json()
        assert listed["items"][0]["balance_cents"] == 250000

    def test_set_balance_on_physical_is_400(self, client, physical_product):
        resp = client.put(f"/api/digital-balances/{physical_product.id}", json={"balance_cents": 1})
        assert resp.status_code == 400

    def test_missing_balance_is_404(self, client, physical_product):
        assert client.get(f"/api/digital-balances/{physical_product.id}").status_code == 404


class TestInventoryApi:

    def test_record_movement(self, client, acting_user, physical_product):
        resp = client.post("/api/inventory/movements", json={
            "product_id": physical_product.id,
            "type": "count_adjustment",
            "quantity": 0,
            "notes": "Stock opname",
        })

        assert resp.status_code == 201
        movement = resp.get_json()
        assert (movement["previous_stock"], movement["new_stock"]) == (100, 0)
        assert movement["user_id"] == 1

        listed = client.get(f"/api/inventory/movements?product_id={physical_product.id}").get_json()
        assert listed["count"] == 1

    @pytest.mark.parametrize("quantity", [10**19, 1_000_001])
    def test_out_of_range_quantity_is_400(self, client, acting_user, physical_product, quantity):
        resp = client.post("/api/inventory/movements", json={
            "product_id": physical_product.id, "type": "in", "quantity": quantity,
        })
        assert resp.status_code == 400
        assert physical_product.stock_quantity == 100

    def test_out_beyond_stock_is_409(self, client, acting_user, physical_product):
        resp = client.post("/api/inventory/movements", json={
            "product_id": physical_product.id, "type": "out", "quantity": 500,
        })
        assert resp.status_code == 409

    def test_invalid_type_is_400(self, client, acting_user, physical_product):
        resp = client.post("/api/inventory/movements", json={
            "product_id": physical_product.id, "type": "shrinkage", "quantity": 1,
        })
        assert resp.status_code == 400


class TestCashDrawerApi:

    def test_entries_and_balance(self, client, acting_user):
        for body in (
            {"type": "opening_balance", "amount_cents": 50000, "description": "Saldo awal"},
            {"type": "in", "amount_cents": 25075, "description": "Setoran"},
            {"type": "out", "amount_cents": 10025, "description": "Beli galon"},
            {"type": "in", "amount_cents": 5000, "description": "Setoran"},
        ):
            assert client.post("/api/cash-drawer/entries", json=body).status_code == 201

        assert client.get("/api/cash-drawer/balance").get_json() == {"balance_cents": 70050}
        assert client.get("/api/cash-drawer/entries").get_json()["count"] == 4

    def test_empty_balance(self, client, db_session):
        assert client.get("/api/cash-drawer/balance").get_json() == {"balance_cents": 0}

    @pytest.mark.parametrize("amount_cents", [10**19, 1_000_000_000_000])
    def test_out_of_range_amount_is_400(self, client, acting_user, amount_cents):
        resp = client.post("/api/cash-drawer/entries", json={
            "type": "in", "amount_cents": amount_cents, "description": "Setoran",
        })
        assert resp.status_code == 400

    def test_zero_amount_is_400(self, client, acting_user):
        resp = client.post("/api/cash-drawer/entries", json={
            "type": "in", "amount_cents": 0, "description": "Nol",
        })
        assert resp.status_code == 400


class TestReportsApi:

    def test_bad_dates_are_400(self, client, db_session):
        resp = client.get("/api/reports/profit?start_date=2024-02-01&end_date=2024-01-01")
        assert resp.status_code == 400
        assert client.get("/api/reports/sales").status_code == 400

    def test_reports(self, client, acting_user, physical_product):
        _checkout(
            client,
            {"product_id": physical_product.id, "quantity": 3, "unit_price_cents": 1500},
            method="digital",
        )
        day = db.session.query(Transaction).one().created_at.date().isoformat()
        period = f"start_date={day}&end_date={day}"

        profit = client.get(f"/api/reports/profit?{period}").get_json()
        assert profit == {"total_profit_cents": 1500, "total_revenue_cents": 4500, "profit_margin": 33.33}

        sales = client.get(f"/api/reports/sales?{period}").get_json()
        assert sales["rows"][0]["physical_sales_cents"] == 4500

        top = client.get(f"/api/reports/top-products?{period}&limit=5").get_json()
        assert top["rows"][0]["total_quantity"] == 3


class TestUsersApi:

    def test_create_list_update(self, client, acting_user):
        resp = client.post("/api/users", json={
            "username": "kasir2",
            "full_name": "Kasir Dua",
            "password": "rahasia2",
            "role": "cashier",
        })
        assert resp.status_code == 201
        user = resp.get_json()
        assert "password" not in user and "password_hash" not in user

        updated = client.put(f"/api/users/{user['id']}", json={"is_active": False})
        assert updated.get_json()["is_active"] is False

        assert client.get("/api/users").get_json()["count"] == 2
        assert client.get(f"/api/users/{user['id']}").status_code == 200

    def test_duplicate_username_is_409(self, client, acting_user):
        resp = client.post("/api/users", json={
            "username": "admin", "full_name": "Admin Lagi", "password": "rahasia1", "role": "admin",
        })
        assert resp.status_code == 409

    def test_short_password_is_400(self, client, db_session):
        resp = client.post("/api/users", json={
            "username": "budi", "full_name": "Budi", "password": "123", "role": "cashier",
        })
        assert resp.status_code == 400

    def test_unknown_user_is_404(self, client, db_session):
        assert client.get("/api/users/99").status_code == 404
        assert client.put("/api/users/99", json={"full_name": "Siapa"}).status_code == 404
