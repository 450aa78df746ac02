# flask_app/models/order.py

from sqlalchemy import update

from .base import BaseModel, db

ORDER_NUMBER_COUNTER = "order_number"


class OrderCounter(db.Model):
    """Named monotonic sequence (one row per counter)."""

    __tablename__ = "order_counters"

    name = db.Column(db.String(50), primary_key=True)
    seq = db.Column(db.Integer, default=0, nullable=False)

    @staticmethod
    def next_value(name=ORDER_NUMBER_COUNTER):
        """
        Increment and return the named counter inside the current transaction.

        The increment is a single UPDATE so concurrent callers serialize on the
        counter row.
        """
        if db.session.get(OrderCounter, name) is None:
            db.session.add(OrderCounter(name=name, seq=0))
            db.session.flush()
        db.session.execute(update(OrderCounter).where(OrderCounter.name == name).values(seq=OrderCounter.seq + 1))
        counter = db.session.get(OrderCounter, name, populate_existing=True)
        return counter.seq


class Order(BaseModel):
    """Client order with a snapshot of item prices."""

    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.Integer, unique=True, nullable=False, index=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    total = db.Column(db.Float, nullable=False, default=0.0)

    client = db.relationship("Client", back_populates="orders")
    items = db.relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Order {self.order_number}>"

    def to_dict(self):
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "clientId": self.client_id,
            "client": self.client.cod_client if self.client else None,
            "items": [item.to_dict() for item in self.items],
            "total": self.total,
            "createdAt": self._isoformat(self.created_at),
        }


class OrderItem(db.Model):
    """One product line of an order."""

    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Float, nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    __table_args__ = (db.CheckConstraint("quantity >= 1", name="ck_order_item_quantity"),)

    def to_dict(self):
        return {
            "productId": self.product_id,
            "code": self.product.code if self.product else None,
            "quantity": self.quantity,
            "price": self.price,
        }
