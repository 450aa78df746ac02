# flask_app/models/catalog.py

from flask import current_app
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseModel, db


def compute_discount(medinor_price, public_price):
    """
    Discount of the house price against the public list price.

    ``medinor_price / public_price - 1`` rounded to four places, or ``0`` when
    either price is missing or the public price is zero.
    """
    if medinor_price is None or public_price is None or public_price == 0:
        return 0.0
    return round(float(medinor_price) / float(public_price) - 1, 4)


class Lab(BaseModel):
    """Laboratory (manufacturer) referenced by products."""

    __tablename__ = "labs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False, index=True)

    products = db.relationship("Product", back_populates="lab")

    def __repr__(self):
        return f"<Lab {self.name}>"

    @staticmethod
    def find_by_name(name):
        """Find lab by name with error handling"""
        try:
            return Lab.query.filter_by(name=name).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding lab by name {name}: {str(e)}")
            return None


class Category(BaseModel):
    """Product category."""

    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False, index=True)

    products = db.relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category {self.name}>"

    @staticmethod
    def find_by_name(name):
        """Find category by name with error handling"""
        try:
            return Category.query.filter_by(name=name).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding category by name {name}: {str(e)}")
            return None


class Product(BaseModel):
    """Catalog product, unique by code."""

    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    desc = db.Column(db.String(500), nullable=True)
    extra_desc = db.Column(db.String(500), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    medinor_price = db.Column(db.Float, nullable=True)
    public_price = db.Column(db.Float, nullable=True)
    price = db.Column(db.Float, nullable=True)
    iva = db.Column(db.Boolean, default=False, nullable=False)
    listed = db.Column(db.Boolean, default=True, nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    discount = db.Column(db.Float, default=0.0, nullable=False)

    lab_id = db.Column(db.Integer, db.ForeignKey("labs.id"), nullable=True, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    lab = db.relationship("Lab", back_populates="products")
    category = db.relationship("Category", back_populates="products")

    def __repr__(self):
        return f"<Product {self.code}>"

    def refresh_derived_fields(self):
        """Recompute image_url and discount from the stored prices and code."""
        if not self.image_url:
            self.image_url = self.code
        self.discount = compute_discount(self.medinor_price, self.public_price)

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "desc": self.desc,
            "extra_desc": self.extra_desc,
            "notes": self.notes,
            "medinor_price": self.medinor_price,
            "public_price": self.public_price,
            "price": self.price,
            "iva": self.iva,
            "listed": self.listed,
            "imageUrl": self.image_url,
            "discount": self.discount,
            "lab": self.lab.name if self.lab else None,
            "labId": self.lab_id,
            "category": self.category.name if self.category else None,
            "categoryId": self.category_id,
            "createdAt": self._isoformat(self.created_at),
            "updatedAt": self._isoformat(self.updated_at),
        }


@event.listens_for(Product, "before_insert")
@event.listens_for(Product, "before_update")
def _derive_product_fields(mapper, connection, target):  # pragma: no cover - exercised via ORM flushes
    target.refresh_derived_fields()
