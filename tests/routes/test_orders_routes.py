"""Tests for the order endpoints"""

from flask_app.models import Order


def _order_payload(client_id, *items):
    return {"clientId": client_id, "items": list(items)}


class TestCreateOrder:
    def test_order_numbers_are_sequential(self, client, client_factory, product_factory):
        buyer = client_factory()
        product = product_factory(code="P1", price=10.0)

        first = client.post("/api/orders", json=_order_payload(buyer.id, {"productId": product.id, "quantity": 2}))
        second = client.post("/api/orders", json=_order_payload(buyer.id, {"productId": product.id, "quantity": 1}))

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.get_json()["order"]["orderNumber"] == 1
        assert second.get_json()["order"]["orderNumber"] == 2

    def test_invalid_lines_are_skipped(self, client, client_factory, product_factory):
        buyer = client_factory()
        product = product_factory(code="P1", price=12.5)

        response = client.post(
            "/api/orders",
            json=_order_payload(
                buyer.id,
                {"productId": product.id, "quantity": 2},
                {"productId": 999, "quantity": 1},
                {"productId": product.id, "quantity": 0},
                {"quantity": 3},
                "garbage",
            ),
        )

        order = response.get_json()["order"]
        assert [(item["code"], item["quantity"], item["price"]) for item in order["items"]] == [("P1", 2, 12.5)]
        assert order["total"] == 25.0
        assert order["client"] == "ABC123"

    def test_price_is_copied_at_creation(self, client, client_factory, product_factory):
        buyer = client_factory()
        product = product_factory(code="P1", price=10.0)
        client.post("/api/orders", json=_order_payload(buyer.id, {"productId": product.id, "quantity": 1}))

        client.put(f"/api/products/{product.id}", json={"price": "99"})

        assert Order.query.one().items[0].price == 10.0

    def test_bad_requests(self, client, client_factory, product_factory):
        buyer = client_factory()
        product_factory(code="P1")

        missing_items = client.post("/api/orders", json={"clientId": buyer.id})
        unknown_client = client.post("/api/orders", json=_order_payload(999, {"productId": 1, "quantity": 1}))
        no_valid_lines = client.post("/api/orders", json=_order_payload(buyer.id, {"productId": 999, "quantity": 1}))

        assert missing_items.status_code == 400
        assert missing_items.get_json()["message"] == "Incomplete or invalid order data."
        assert unknown_client.status_code == 404
        assert no_valid_lines.status_code == 400
        assert no_valid_lines.get_json()["message"] == "The order contains no valid products."
        assert Order.query.count() == 0


class TestListOrders:
    def test_list_filters_by_client(self, client, client_factory, product_factory):
        first = client_factory()
        second = client_factory(cod_client="DEF456", identiftri="27123456784")
        product = product_factory(code="P1")
        for buyer in (first, second, first):
            client.post("/api/orders", json=_order_payload(buyer.id, {"productId": product.id, "quantity": 1}))

        everything = client.get("/api/orders").get_json()["items"]
        only_first = client.get(f"/api/orders?clientId={first.id}").get_json()["items"]

        assert [order["orderNumber"] for order in everything] == [3, 2, 1]
        assert [order["orderNumber"] for order in only_first] == [3, 1]

    def test_get_order(self, client, client_factory, product_factory):
        buyer = client_factory()
        product = product_factory(code="P1")
        created = client.post("/api/orders", json=_order_payload(buyer.id, {"productId": product.id, "quantity": 1}))
        order_id = created.get_json()["order"]["id"]

        assert client.get(f"/api/orders/{order_id}").get_json()["order"]["orderNumber"] == 1
        assert client.get("/api/orders/999").status_code == 404
