# Overview: Pytest coverage for operating expenses.

import pytest


def _expense(client, headers, category="fuel", amount=5_000_000, date="2026-06-10T09:00:00Z", **extra):
    return client.post("/api/expenses", json={
        "category": category,
        "amount_cents": amount,
        "date": date,
        **extra,
    }, headers=headers)


class TestExpenseCrud:

    def test_create(self, client, owner_headers):
        resp = _expense(client, owner_headers, description="Bensin motor")
        assert resp.status_code == 201
        assert resp.json["category"] == "fuel"
        assert resp.json["date"] == "2026-06-10T09:00:00Z"

    @pytest.mark.parametrize(
        "payload",
        [
            {"amount_cents": 100, "date": "2026-06-10"},
            {"category": "fuel", "date": "2026-06-10"},
            {"category": "fuel", "amount_cents": 100},
            {"category": "rent", "amount_cents": 100, "date": "2026-06-10"},
            {"category": "fuel", "amount_cents": 0, "date": "2026-06-10"},
            {"category": "fuel", "amount_cents": -100, "date": "2026-06-10"},
            {"category": "fuel", "amount_cents": 100, "date": "tomorrow"},
        ],
    )
    def test_create_rejects_invalid(self, client, owner_headers, payload):
        assert client.post("/api/expenses", json=payload, headers=owner_headers).status_code == 400

    def test_update(self, client, owner_headers):
        expense = _expense(client, owner_headers).json
        resp = client.put(f"/api/expenses/{expense['id']}", json={
            "category": "parking", "amount_cents": 200_000,
        }, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["category"] == "parking"
        assert resp.json["amount_cents"] == 200_000

    def test_update_rejects_bad_category(self, client, owner_headers):
        expense = _expense(client, owner_headers).json
        resp = client.put(f"/api/expenses/{expense['id']}", json={"category": "rent"}, headers=owner_headers)
        assert resp.status_code == 400

    def test_delete(self, client, owner_headers):
        expense = _expense(client, owner_headers).json
        assert client.delete(f"/api/expenses/{expense['id']}", headers=owner_headers).status_code == 200
        assert client.get(f"/api/expenses/{expense['id']}", headers=owner_headers).status_code == 404

    def test_list_newest_first(self, client, owner_headers):
        older = _expense(client, owner_headers, date="2026-06-01T00:00:00Z").json
        newer = _expense(client, owner_headers, date="2026-06-20T00:00:00Z").json

        resp = client.get("/api/expenses", headers=owner_headers)
        assert [e["id"] for e in resp.json["items"]] == [newer["id"], older["id"]]


class TestExpenseReports:

    @pytest.fixture
    def june(self, client, owner_headers):
        _expense(client, owner_headers, "fuel", 5_000_000, "2026-06-02T08:00:00Z")
        _expense(client, owner_headers, "fuel", 3_000_000, "2026-06-15T08:00:00Z")
        _expense(client, owner_headers, "meals", 2_500_000, "2026-06-15T12:00:00Z")
        _expense(client, owner_headers, "parking", 200_000, "2026-07-01T08:00:00Z")

    def test_list_in_range(self, client, owner_headers, june):
        resp = client.get("/api/expenses?start=2026-06-01&end=2026-06-30", headers=owner_headers)
        assert resp.json["count"] == 3

    def test_summary(self, client, owner_headers, june):
        resp = client.get("/api/expenses/summary?start=2026-06-01&end=2026-06-30", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["total_expenses_cents"] == 10_500_000

    def test_summary_unbounded(self, client, owner_headers, june):
        resp = client.get("/api/expenses/summary", headers=owner_headers)
        assert resp.json["total_expenses_cents"] == 10_700_000
        assert resp.json["start"] is None

    def test_by_category_zero_fills(self, client, owner_headers, june):
        resp = client.get("/api/expenses/by-category?start=2026-06-01&end=2026-06-30", headers=owner_headers)
        totals = {row["category"]: row["total_cents"] for row in resp.json["rows"]}
        assert totals == {"fuel": 8_000_000, "meals": 2_500_000, "parking": 0, "other": 0}

    def test_date_only_end_covers_whole_last_day(self, client, owner_headers):
        _expense(client, owner_headers, "fuel", 1_000, "2026-06-30T08:00:00Z")
        _expense(client, owner_headers, "meals", 2_000, "2026-06-30T23:30:00Z")

        resp = client.get("/api/expenses/summary?start=2026-06-01&end=2026-06-30", headers=owner_headers)
        assert resp.json["total_expenses_cents"] == 3_000

    def test_same_day_range(self, client, owner_headers, june):
        resp = client.get("/api/expenses?start=2026-06-15&end=2026-06-15", headers=owner_headers)
        assert resp.json["count"] == 2

        resp = client.get("/api/expenses/by-category?start=2026-06-15&end=2026-06-15", headers=owner_headers)
        totals = {row["category"]: row["total_cents"] for row in resp.json["rows"]}
        assert totals["fuel"] == 3_000_000
        assert totals["meals"] == 2_500_000

    def test_end_with_time_is_exact(self, client, owner_headers, june):
        resp = client.get("/api/expenses/summary?start=2026-06-15&end=2026-06-15T10:00:00Z", headers=owner_headers)
        assert resp.json["total_expenses_cents"] == 3_000_000

    def test_bad_range(self, client, owner_headers):
        resp = client.get("/api/expenses/summary?start=2026-07-01&end=2026-06-01", headers=owner_headers)
        assert resp.status_code == 400
