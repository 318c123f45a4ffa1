# Overview: Pytest coverage for warung management.

import pytest


class TestWarungCrud:

    def test_create_net(self, client, owner_headers):
        resp = client.post("/api/warungs", json={
            "name": "Warung Pojok",
            "price_scheme": "net",
            "net_price_cents": 180_000,
        }, headers=owner_headers)
        assert resp.status_code == 201
        assert resp.json["current_stock"] == 0
        assert resp.json["is_active"] is True
        assert resp.json["commission_bps"] is None

    def test_create_commission(self, client, commission_warung):
        assert commission_warung["price_scheme"] == "commission"
        assert commission_warung["commission_bps"] == 2000

    @pytest.mark.parametrize(
        "payload",
        [
            {"price_scheme": "net", "net_price_cents": 100},
            {"name": "X"},
            {"name": "X", "price_scheme": "barter"},
            {"name": "X", "price_scheme": "net"},
            {"name": "X", "price_scheme": "commission", "selling_price_cents": 100},
            {"name": "X", "price_scheme": "commission", "commission_bps": 1000},
            {"name": "X", "price_scheme": "commission", "selling_price_cents": 100, "commission_bps": 10_001},
            {"name": "X", "price_scheme": "net", "net_price_cents": -5},
            {"name": "X", "price_scheme": "net", "net_price_cents": 100, "current_stock": 50},
        ],
    )
    def test_create_rejects_invalid(self, client, owner_headers, payload):
        resp = client.post("/api/warungs", json=payload, headers=owner_headers)
        assert resp.status_code == 400

    def test_list_and_search(self, client, owner_headers, net_warung, commission_warung):
        resp = client.get("/api/warungs", headers=owner_headers)
        assert resp.json["count"] == 2

        by_name = client.get("/api/warungs?search=tini", headers=owner_headers).json
        assert [w["id"] for w in by_name["items"]] == [net_warung["id"]]

        by_address = client.get("/api/warungs?search=pasar", headers=owner_headers).json
        assert [w["id"] for w in by_address["items"]] == [commission_warung["id"]]

    def test_update_switches_scheme(self, client, owner_headers, net_warung):
        resp = client.put(f"/api/warungs/{net_warung['id']}", json={
            "price_scheme": "commission",
            "selling_price_cents": 300_000,
            "commission_bps": 1500,
        }, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["price_scheme"] == "commission"

    def test_update_incomplete_scheme_rejected(self, client, owner_headers, net_warung):
        resp = client.put(f"/api/warungs/{net_warung['id']}", json={"price_scheme": "commission"}, headers=owner_headers)
        assert resp.status_code == 400

        current = client.get(f"/api/warungs/{net_warung['id']}", headers=owner_headers).json
        assert current["price_scheme"] == "net"

    def test_update_non_object_body_rejected(self, client, owner_headers, net_warung):
        resp = client.put(f"/api/warungs/{net_warung['id']}", json=[], headers=owner_headers)
        assert resp.status_code == 400

    def test_soft_delete(self, client, owner_headers, net_warung):
        resp = client.delete(f"/api/warungs/{net_warung['id']}", headers=owner_headers)
        assert resp.status_code == 200

        listing = client.get("/api/warungs", headers=owner_headers).json
        assert listing["count"] == 0

        # Still reachable directly, for its visit history
        direct = client.get(f"/api/warungs/{net_warung['id']}", headers=owner_headers)
        assert direct.status_code == 200
        assert direct.json["is_active"] is False

    def test_get_missing(self, client, owner_headers):
        assert client.get("/api/warungs/9999", headers=owner_headers).status_code == 404


class TestWarungStock:

    def test_set_stock(self, client, owner_headers, net_warung):
        resp = client.put(f"/api/warungs/{net_warung['id']}/stock", json={"current_stock": 25}, headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["current_stock"] == 25

    @pytest.mark.parametrize("value", [-1, 2.5, "abc"])
    def test_set_stock_invalid(self, client, owner_headers, net_warung, value):
        resp = client.put(f"/api/warungs/{net_warung['id']}/stock", json={"current_stock": value}, headers=owner_headers)
        assert resp.status_code == 400

    def test_set_stock_required(self, client, owner_headers, net_warung):
        resp = client.put(f"/api/warungs/{net_warung['id']}/stock", json={}, headers=owner_headers)
        assert resp.status_code == 400

    def test_set_stock_non_object_body_rejected(self, client, owner_headers, net_warung):
        resp = client.put(f"/api/warungs/{net_warung['id']}/stock", json=["current_stock"], headers=owner_headers)
        assert resp.status_code == 400

    def test_last_transaction_empty(self, client, owner_headers, net_warung):
        resp = client.get(f"/api/warungs/{net_warung['id']}/last-transaction", headers=owner_headers)
        assert resp.status_code == 200
        assert resp.json["transaction"] is None
