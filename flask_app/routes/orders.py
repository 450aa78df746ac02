# flask_app/routes/orders.py

"""
Order endpoints
"""

from http import HTTPStatus

from flask import current_app, jsonify, request

from flask_app.importer.pipeline.normalize import normalize_reference_id
from flask_app.models import Client, Order, OrderCounter, OrderItem, Product, db
from flask_app.utils.error_handler import ApiError

from .helpers import get_json_object, get_or_404


def _valid_items(raw_items):
    """
    Yield ``(product, quantity)`` for the usable lines of an order request.

    Lines without a product, with a non-positive quantity or pointing at an
    unknown product are skipped.
    """
    product_ids = {normalize_reference_id(item.get("productId")) for item in raw_items if isinstance(item, dict)}
    product_ids.discard(None)
    products = {product.id: product for product in Product.query.filter(Product.id.in_(product_ids)).all()}

    for item in raw_items:
        if not isinstance(item, dict):
            continue
        product = products.get(normalize_reference_id(item.get("productId")))
        quantity = normalize_reference_id(item.get("quantity"))
        if product is None or not quantity:
            continue
        yield product, quantity


def register_order_routes(app):
    """Register order routes"""

    @app.route("/api/orders", methods=["POST"])
    def create_order():
        """
        Create an order with a sequential order number.

        Item prices are copied from the products at creation time.
        """
        data = get_json_object()
        client_id = normalize_reference_id(data.get("clientId"))
        raw_items = data.get("items")
        if client_id is None or not isinstance(raw_items, list) or not raw_items:
            raise ApiError("Incomplete or invalid order data.", HTTPStatus.BAD_REQUEST)

        client = get_or_404(Client, client_id, "Client")
        lines = list(_valid_items(raw_items))
        if not lines:
            raise ApiError("The order contains no valid products.", HTTPStatus.BAD_REQUEST)

        order = Order(client_id=client.id, order_number=OrderCounter.next_value(), total=0.0)
        total = 0.0
        for product, quantity in lines:
            price = product.price or 0.0
            total += price * quantity
            order.items.append(OrderItem(product_id=product.id, quantity=quantity, price=price))
        order.total = round(total, 2)

        db.session.add(order)
        db.session.commit()
        current_app.logger.info(
            f"Order {order.order_number} created for client {client.cod_client} ({len(lines)} items)"
        )
        return jsonify({"message": "Order created successfully.", "order": order.to_dict()}), HTTPStatus.CREATED

    @app.route("/api/orders", methods=["GET"])
    def list_orders():
        query = Order.query
        client_id = normalize_reference_id(request.args.get("clientId"))
        if client_id is not None:
            query = query.filter(Order.client_id == client_id)
        orders = query.order_by(Order.order_number.desc()).all()
        return jsonify({"items": [order.to_dict() for order in orders]})

    @app.route("/api/orders/<int:order_id>", methods=["GET"])
    def get_order(order_id):
        order = get_or_404(Order, order_id, "Order")
        return jsonify({"order": order.to_dict()})
