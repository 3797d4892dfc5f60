"""
HTTP API tests: catalog, draft, ledger edit flow and analytics through the
Flask test client on an in-memory database.
"""

import pytest

from stockbook.services.store_service import SqlStore


def _create_item(client, **overrides):
    body = {"name": "Shirt", "category": "Tops", "price": "29.90", "quantity": "10"}
    body.update(overrides)
    response = client.post("/api/items/", json=body)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["item"]


def _sell(client, item_id, quantity=1):
    assert client.post("/api/draft/lines", json={"item_id": item_id}).status_code == 201
    if quantity > 1:
        index = len(client.get("/api/draft/").get_json()["draft"]["items"]) - 1
        assert client.patch(f"/api/draft/lines/{index}", json={"delta": quantity - 1}).status_code == 200
    response = client.post("/api/draft/commit")
    assert response.status_code == 201, response.get_json()
    return response.get_json()["sale"]


class TestSystem:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["checks"]["store"]["status"] == "healthy"

    def test_version(self, client):
        data = client.get("/version").get_json()
        assert data["store_backend"] == "sql"


class TestItems:
    def test_create_list_and_search(self, client):
        shirt = _create_item(client)
        _create_item(client, name="Cap", category="Accessories", price="15", quantity="3")

        assert shirt["id"] == 1
        assert shirt["price"] == "29.90"
        data = client.get("/api/items/").get_json()
        assert data["count"] == 2
        found = client.get("/api/items/?q=acc").get_json()["items"]
        assert [item["name"] for item in found] == ["Cap"]

    def test_create_persists_to_database(self, client, app):
        _create_item(client)
        items, _ = SqlStore().load()
        assert [(item.id, item.quantity) for item in items] == [(1, 10)]

    def test_validation_error(self, client):
        response = client.post("/api/items/", json={"name": "Shirt", "category": "Tops", "price": "x", "quantity": "1"})
        assert response.status_code == 400
        assert response.get_json()["details"]["field"] == "price"

    def test_oversized_quantity_is_rejected_and_saving_keeps_working(self, client):
        response = client.post("/api/items/", json={
            "name": "Bolt", "category": "Hardware", "price": "1", "quantity": "99999999999999999999999",
        })
        assert response.status_code == 400
        assert response.get_json()["details"]["field"] == "quantity"
        assert client.get("/api/items/").get_json()["count"] == 0

        response = client.post("/api/items/", json={"name": "Nut", "category": "Hardware", "price": "1", "quantity": "3"})
        assert response.status_code == 201
        assert response.get_json()["saved"] is True

    def test_oversized_delta_is_rejected(self, client):
        _create_item(client)
        client.post("/api/draft/lines", json={"item_id": 1})
        response = client.patch("/api/draft/lines/0", json={"delta": "99999999999999999999999"})
        assert response.status_code == 400

    def test_unknown_item_404_carries_details(self, client):
        response = client.get("/api/items/9")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Item not found", "details": {"item_id": 9}}

    def test_update_and_delete(self, client):
        _create_item(client)
        response = client.put("/api/items/1", json={"name": "Polo", "category": "Tops", "price": "35", "quantity": "2"})
        assert response.status_code == 200
        assert response.get_json()["item"]["name"] == "Polo"

        assert client.delete("/api/items/1").get_json() == {"deleted": True, "saved": True}
        assert client.get("/api/items/1").status_code == 404

    def test_update_unknown_item(self, client):
        response = client.put("/api/items/9", json={"name": "Polo", "category": "Tops", "price": "35", "quantity": "2"})
        assert response.status_code == 404

    def test_available_quantity(self, client):
        _create_item(client)
        assert client.get("/api/items/1/available").get_json()["available_quantity"] == 10
        assert client.get("/api/items/2/available").get_json()["available_quantity"] == 0


class TestDraftAndSales:
    def test_draft_scenario(self, client):
        _create_item(client)
        client.post("/api/draft/lines", json={"item_id": 1})
        response = client.patch("/api/draft/lines/0", json={"delta": 3})
        assert response.get_json()["draft"]["total"] == "119.60"

        response = client.patch("/api/draft/lines/0", json={"delta": 7})
        assert response.status_code == 400
        assert client.get("/api/draft/").get_json()["draft"]["items"][0]["quantity"] == 4

        response = client.post("/api/draft/commit")
        assert response.status_code == 201
        assert client.get("/api/items/1/available").get_json()["available_quantity"] == 6

    def test_out_of_stock_and_empty_commit(self, client):
        _create_item(client, quantity="0")
        assert client.post("/api/draft/lines", json={"item_id": 1}).status_code == 400
        assert client.post("/api/draft/lines", json={"item_id": 5}).status_code == 404
        response = client.post("/api/draft/commit")
        assert response.status_code == 400
        assert "at least one item" in response.get_json()["error"]

    def test_set_date_and_reset(self, client):
        response = client.put("/api/draft/date", json={"date": "2024-01-02"})
        assert response.get_json()["draft"]["date"] == "2024-01-02"
        response = client.post("/api/draft/reset")
        assert response.get_json()["draft"]["date"] == "2024-05-17"

    def test_edit_commit_flow(self, client):
        _create_item(client)
        sale = _sell(client, 1, quantity=4)

        response = client.post(f"/api/sales/{sale['id']}/edit")
        assert response.status_code == 200
        assert response.get_json()["draft"]["editing_sale_id"] == sale["id"]
        assert client.get("/api/items/1/available").get_json()["available_quantity"] == 10

        client.patch("/api/draft/lines/0", json={"delta": -2})
        response = client.post("/api/sales/edit/commit")
        assert response.status_code == 200
        assert response.get_json()["sale"]["total"] == "59.80"
        assert client.get("/api/items/1/available").get_json()["available_quantity"] == 8
        assert client.get("/api/sales/").get_json()["count"] == 1

    def test_failed_edit_commit_keeps_sale(self, client):
        _create_item(client)
        sale = _sell(client, 1, quantity=4)
        client.post(f"/api/sales/{sale['id']}/edit")
        client.delete("/api/draft/lines/0")

        response = client.post("/api/sales/edit/commit")
        assert response.status_code == 400
        assert client.get("/api/items/1/available").get_json()["available_quantity"] == 10
        assert client.get(f"/api/sales/{sale['id']}").get_json()["sale"]["total"] == "119.60"

        client.post("/api/sales/edit/cancel")
        assert client.get("/api/items/1/available").get_json()["available_quantity"] == 6

    def test_delete_sale(self, client):
        _create_item(client)
        sale = _sell(client, 1, quantity=2)

        response = client.delete(f"/api/sales/{sale['id']}")
        assert response.status_code == 200
        assert client.get("/api/items/1/available").get_json()["available_quantity"] == 10
        assert client.delete(f"/api/sales/{sale['id']}").status_code == 404

    def test_unknown_sale_404_carries_details(self, client):
        response = client.get("/api/sales/9")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Sale not found", "details": {"sale_id": 9}}

    def test_list_sales_by_range(self, client):
        _create_item(client)
        client.put("/api/draft/date", json={"date": "2024-01-10"})
        _sell(client, 1)
        _sell(client, 1)

        sales = client.get("/api/sales/?start=2024-05-01&end=2024-05-31").get_json()["sales"]
        assert [sale["date"] for sale in sales] == ["2024-05-17"]
        assert client.get("/api/sales/?start=tomorrow").status_code == 400


class TestAnalytics:
    @pytest.fixture(autouse=True)
    def _seed(self, client):
        _create_item(client)
        _create_item(client, name="Cap", category="Accessories", price="15", quantity="3")
        _sell(client, 1, quantity=2)
        _sell(client, 2, quantity=1)

    def test_revenue_and_summary(self, client):
        series = client.get("/api/analytics/revenue?mode=monthly&date=2024-05-01").get_json()["series"]
        assert series == [{"bucket": "2024-05", "revenue": "74.80"}]

        summary = client.get("/api/analytics/summary?mode=daily&date=2024-05-17").get_json()
        assert (summary["count"], summary["total_revenue"], summary["total_units"]) == (2, "74.80", 3)

    def test_revenue_sentinel(self, client):
        series = client.get("/api/analytics/revenue?mode=daily&date=2000-01-01").get_json()["series"]
        assert series == [{"bucket": "no data", "revenue": "0"}]

    def test_top_lists(self, client):
        rows = client.get("/api/analytics/top-products?n=1").get_json()["rows"]
        assert rows == [{"name": "Shirt", "quantity": 2}]
        rows = client.get("/api/analytics/top-stock").get_json()["rows"]
        assert [(row["item"]["name"], row["quantity"]) for row in rows] == [("Shirt", 8), ("Cap", 2)]

    def test_dashboard(self, client):
        report = client.get("/api/analytics/dashboard?mode=yearly").get_json()
        assert report["date"] == "2024-05-17"
        assert report["summary"]["count"] == 2

    def test_bad_mode(self, client):
        assert client.get("/api/analytics/revenue?mode=hourly").status_code == 400
