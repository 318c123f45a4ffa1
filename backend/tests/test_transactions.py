# Overview: Pytest coverage for distribution visits, settlement and payments.

import pytest

from sijuk.models import Transaction
from sijuk.time_utils import utcnow


def _set_stock(client, headers, warung_id, stock):
    resp = client.put(f"/api/warungs/{warung_id}/stock", json={"current_stock": stock}, headers=headers)
    assert resp.status_code == 200


def _produce(client, headers, price_cents, packs):
    """One batch consuming 1 unit of a fresh material, giving HPP price_cents / packs."""
    material = client.post("/api/materials", json={
        "name": "Bahan", "unit": "kg", "buy_price_cents": price_cents, "stock": "5",
    }, headers=headers).json
    resp = client.post("/api/production", json={
        "quantity_produced": packs,
        "items": [{"material_id": material["id"], "quantity_used": "1"}],
    }, headers=headers)
    assert resp.status_code == 201
    return resp.json["hpp_per_unit_cents"]


def _visit(client, headers, warung_id, remaining, **extra):
    return client.post("/api/transactions", json={
        "warung_id": warung_id,
        "remaining_stock": remaining,
        **extra,
    }, headers=headers)


class TestCreateVisit:

    def test_net_scheme_settlement(self, client, owner_headers, net_warung):
        hpp = _produce(client, owner_headers, 1_200_000, 10)
        assert hpp == 120_000
        _set_stock(client, owner_headers, net_warung["id"], 20)

        resp = _visit(client, owner_headers, net_warung["id"], 5, restock_amount=10)
        assert resp.status_code == 201

        calc = resp.json["calculations"]
        assert calc["initial_stock"] == 20
        assert calc["sold"] == 15
        assert calc["total_bill_cents"] == 3_000_000
        assert calc["commission_cents"] == 0
        assert calc["hpp_cents_at_time"] == 120_000
        assert calc["profit_cents"] == 1_200_000
        assert calc["margin_percent"] == 40.0
        assert calc["is_low_margin"] is False
        assert calc["new_warung_stock"] == 15

        tx = resp.json["transaction"]
        assert tx["price_scheme_at_time"] == "net"
        assert tx["unit_price_cents_at_time"] == 200_000
        assert tx["payment_status"] == "unpaid"
        assert tx["warung_name"] == "Warung Bu Tini"

        warung = client.get(f"/api/warungs/{net_warung['id']}", headers=owner_headers).json
        assert warung["current_stock"] == 15

    def test_commission_scheme_settlement(self, client, owner_headers, commission_warung):
        _set_stock(client, owner_headers, commission_warung["id"], 10)

        resp = _visit(client, owner_headers, commission_warung["id"], 0)
        assert resp.status_code == 201

        calc = resp.json["calculations"]
        assert calc["gross_cents"] == 2_500_000
        assert calc["commission_cents"] == 500_000
        assert calc["total_bill_cents"] == 2_000_000
        # No production yet: HPP counts as zero
        assert calc["hpp_cents_at_time"] == 0
        assert calc["profit_cents"] == 2_000_000
        assert resp.json["transaction"]["commission_bps_at_time"] == 2000

    def test_low_margin_flag(self, client, owner_headers, net_warung):
        _produce(client, owner_headers, 1_900_000, 10)
        _set_stock(client, owner_headers, net_warung["id"], 10)

        calc = _visit(client, owner_headers, net_warung["id"], 0).json["calculations"]
        assert calc["margin_percent"] == 5.0
        assert calc["is_low_margin"] is True

    def test_first_visit_only_restocks(self, client, owner_headers, net_warung):
        resp = _visit(client, owner_headers, net_warung["id"], 0, restock_amount=30)
        assert resp.status_code == 201
        assert resp.json["calculations"]["sold"] == 0
        assert resp.json["transaction"]["total_bill_cents"] == 0
        assert resp.json["calculations"]["new_warung_stock"] == 30

    def test_chained_visits_use_previous_stock(self, client, owner_headers, net_warung):
        _visit(client, owner_headers, net_warung["id"], 0, restock_amount=30)
        resp = _visit(client, owner_headers, net_warung["id"], 12, restock_amount=8)
        calc = resp.json["calculations"]
        assert calc["initial_stock"] == 30
        assert calc["sold"] == 18
        assert calc["new_warung_stock"] == 20

    def test_paid_on_the_spot(self, client, owner_headers, net_warung):
        _set_stock(client, owner_headers, net_warung["id"], 10)
        full = _visit(client, owner_headers, net_warung["id"], 5, paid_amount_cents=1_000_000)
        assert full.json["transaction"]["payment_status"] == "paid"

        partial = _visit(client, owner_headers, net_warung["id"], 0, paid_amount_cents=100)
        assert partial.json["transaction"]["payment_status"] == "partial"

    def test_remaining_above_initial_rejected(self, client, owner_headers, net_warung, db_session):
        _set_stock(client, owner_headers, net_warung["id"], 5)

        resp = _visit(client, owner_headers, net_warung["id"], 6)
        assert resp.status_code == 400
        assert resp.json["details"] == {"initial_stock": 5, "remaining_stock": 6}
        assert db_session.query(Transaction).count() == 0

        warung = client.get(f"/api/warungs/{net_warung['id']}", headers=owner_headers).json
        assert warung["current_stock"] == 5

    def test_inactive_warung_rejected(self, client, owner_headers, net_warung):
        client.delete(f"/api/warungs/{net_warung['id']}", headers=owner_headers)
        resp = _visit(client, owner_headers, net_warung["id"], 0)
        assert resp.status_code == 400

    def test_missing_warung(self, client, owner_headers):
        assert _visit(client, owner_headers, 9999, 0).status_code == 404

    @pytest.mark.parametrize(
        "payload",
        [
            {"remaining_stock": 0},
            {"warung_id": 1},
            {"warung_id": 1, "remaining_stock": -1},
            {"warung_id": 1, "remaining_stock": 1.5},
            {"warung_id": 1, "remaining_stock": 0, "restock_amount": -2},
            {"warung_id": 1, "remaining_stock": 0, "paid_amount_cents": -1},
        ],
    )
    def test_invalid_input(self, client, owner_headers, payload):
        resp = client.post("/api/transactions", json=payload, headers=owner_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("body", [[], [1], "visit"])
    def test_non_object_body_rejected(self, client, owner_headers, body):
        resp = client.post("/api/transactions", json=body, headers=owner_headers)
        assert resp.status_code == 400

    def test_hpp_snapshot_is_kept(self, client, owner_headers, net_warung):
        _produce(client, owner_headers, 1_000_000, 10)
        _set_stock(client, owner_headers, net_warung["id"], 10)
        tx = _visit(client, owner_headers, net_warung["id"], 5).json["transaction"]

        _produce(client, owner_headers, 1_500_000, 10)
        again = client.get(f"/api/transactions/{tx['id']}", headers=owner_headers).json["transaction"]
        assert again["hpp_cents_at_time"] == 100_000


class TestVisitQueries:

    def test_list_and_filter_by_warung(self, client, owner_headers, net_warung, commission_warung):
        _visit(client, owner_headers, net_warung["id"], 0, restock_amount=5)
        _visit(client, owner_headers, commission_warung["id"], 0, restock_amount=5)

        everything = client.get("/api/transactions", headers=owner_headers).json
        assert everything["count"] == 2

        one = client.get(f"/api/transactions?warung_id={net_warung['id']}", headers=owner_headers).json
        assert one["count"] == 1
        assert one["items"][0]["warung_id"] == net_warung["id"]

    def test_last_transaction(self, client, owner_headers, net_warung):
        _visit(client, owner_headers, net_warung["id"], 0, restock_amount=10)
        second = _visit(client, owner_headers, net_warung["id"], 4).json["transaction"]

        resp = client.get(f"/api/warungs/{net_warung['id']}/last-transaction", headers=owner_headers)
        assert resp.json["transaction"]["id"] == second["id"]
        assert resp.json["transaction"]["remaining_stock"] == 4

    def test_get_missing(self, client, owner_headers):
        assert client.get("/api/transactions/9999", headers=owner_headers).status_code == 404

    def test_summary(self, client, owner_headers, net_warung):
        _set_stock(client, owner_headers, net_warung["id"], 10)
        _visit(client, owner_headers, net_warung["id"], 4, paid_amount_cents=500_000)

        resp = client.get("/api/transactions/summary", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["total_sold"] == 6
        assert resp.json["total_bill_cents"] == 1_200_000
        assert resp.json["total_paid_cents"] == 500_000
        assert resp.json["transaction_count"] == 1

    def test_summary_date_range_excludes(self, client, owner_headers, net_warung):
        _set_stock(client, owner_headers, net_warung["id"], 10)
        _visit(client, owner_headers, net_warung["id"], 4)

        resp = client.get("/api/transactions/summary?start=2000-01-01&end=2000-12-31", headers=owner_headers)
        assert resp.json["transaction_count"] == 0
        assert resp.json["total_bill_cents"] == 0

    def test_summary_same_day_range(self, client, owner_headers, net_warung):
        _set_stock(client, owner_headers, net_warung["id"], 10)
        _visit(client, owner_headers, net_warung["id"], 4)
        today = utcnow().date().isoformat()

        resp = client.get(f"/api/transactions/summary?start={today}&end={today}", headers=owner_headers)
        assert resp.json["transaction_count"] == 1
        assert resp.json["total_sold"] == 6

    def test_summary_date_only_end_includes_that_day(self, client, owner_headers, net_warung):
        _set_stock(client, owner_headers, net_warung["id"], 10)
        _visit(client, owner_headers, net_warung["id"], 4)
        today = utcnow().date().isoformat()

        resp = client.get(f"/api/transactions/summary?start=2000-01-01&end={today}", headers=owner_headers)
        assert resp.json["transaction_count"] == 1

    @pytest.mark.parametrize("warung_id", ["abc", "1.5"])
    def test_list_rejects_malformed_warung_filter(self, client, owner_headers, net_warung, warung_id):
        resp = client.get(f"/api/transactions?warung_id={warung_id}", headers=owner_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("query", ["start=not-a-date", "start=2026-02-01&end=2026-01-01"])
    def test_summary_bad_range(self, client, owner_headers, query):
        resp = client.get(f"/api/transactions/summary?{query}", headers=owner_headers)
        assert resp.status_code == 400


class TestPayments:

    @pytest.fixture
    def visit(self, client, owner_headers, net_warung):
        _set_stock(client, owner_headers, net_warung["id"], 10)
        # 10 sold at 2.000 = 20.000
        return _visit(client, owner_headers, net_warung["id"], 0).json["transaction"]

    @pytest.mark.parametrize(
        "paid,status",
        [(0, "unpaid"), (1_000_000, "partial"), (2_000_000, "paid"), (2_500_000, "paid")],
    )
    def test_status_follows_amount(self, client, owner_headers, visit, paid, status):
        resp = client.put(f"/api/transactions/{visit['id']}/payment", json={"paid_amount_cents": paid}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["transaction"]["paid_amount_cents"] == paid
        assert resp.json["transaction"]["payment_status"] == status

    def test_client_cannot_set_status(self, client, owner_headers, visit):
        resp = client.put(f"/api/transactions/{visit['id']}/payment", json={
            "paid_amount_cents": 0, "payment_status": "paid",
        }, headers=owner_headers)
        assert resp.json["transaction"]["payment_status"] == "unpaid"

    def test_amount_required(self, client, owner_headers, visit):
        resp = client.put(f"/api/transactions/{visit['id']}/payment", json={}, headers=owner_headers)
        assert resp.status_code == 400

    def test_non_object_body_rejected(self, client, owner_headers, visit):
        resp = client.put(f"/api/transactions/{visit['id']}/payment", json=[2_000_000], headers=owner_headers)
        assert resp.status_code == 400

    def test_negative_rejected(self, client, owner_headers, visit):
        resp = client.put(f"/api/transactions/{visit['id']}/payment", json={"paid_amount_cents": -1}, headers=owner_headers)
        assert resp.status_code == 400

    def test_missing_transaction(self, client, owner_headers):
        resp = client.put("/api/transactions/9999/payment", json={"paid_amount_cents": 1}, headers=owner_headers)
        assert resp.status_code == 404
