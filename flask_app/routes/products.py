# flask_app/routes/products.py

"""
Product CRUD endpoints
"""

from http import HTTPStatus

from flask import current_app, jsonify

from flask_app.importer.pipeline.normalize import (
    normalize_flag,
    normalize_name,
    normalize_optional_text,
    normalize_price,
    normalize_reference_id,
)
from flask_app.models import Category, Lab, Product, db
from flask_app.utils.error_handler import ApiError

from .helpers import get_json_object, get_or_404

PRICE_FIELDS = ("medinor_price", "public_price", "price")
TEXT_FIELDS = ("desc", "extra_desc", "notes")


def _resolve_reference(model, data, id_key, name_key, label):
    """
    Find the referenced lab/category by id or by name.

    Returns ``(found, instance)``; ``found`` is False when the payload does not
    mention the reference at all.
    """
    ref_id = normalize_reference_id(data.get(id_key))
    if ref_id is not None:
        instance = db.session.get(model, ref_id)
        if instance is None:
            raise ApiError(f"{label} id {ref_id} does not exist.", HTTPStatus.BAD_REQUEST)
        return True, instance
    name = normalize_name(data.get(name_key))
    if name:
        instance = model.query.filter_by(name=name).first()
        if instance is None:
            raise ApiError(f"{label} '{name}' does not exist.", HTTPStatus.BAD_REQUEST)
        return True, instance
    return False, None


def _product_fields(data, *, partial=False):
    fields = {}
    if not partial or "code" in data:
        fields["code"] = normalize_optional_text(data.get("code"))
    for name in TEXT_FIELDS:
        if not partial or name in data:
            fields[name] = normalize_optional_text(data.get(name))
    for name in PRICE_FIELDS:
        if not partial or name in data:
            fields[name] = normalize_price(data.get(name))
    if not partial or "iva" in data:
        fields["iva"] = normalize_flag(data.get("iva"))
    if not partial or "listed" in data:
        fields["listed"] = normalize_flag(data.get("listed"), default=True)
    if not partial or "imageUrl" in data:
        fields["image_url"] = normalize_optional_text(data.get("imageUrl"))
    return fields


def register_product_routes(app):
    """Register product routes"""

    @app.route("/api/products", methods=["GET"])
    def list_products():
        products = Product.query.order_by(Product.code.asc()).all()
        return jsonify({"items": [product.to_dict() for product in products]})

    @app.route("/api/products/<int:product_id>", methods=["GET"])
    def get_product(product_id):
        product = get_or_404(Product, product_id, "Product")
        return jsonify({"product": product.to_dict()})

    @app.route("/api/products", methods=["POST"])
    def create_product():
        data = get_json_object()
        fields = _product_fields(data)
        has_lab, lab = _resolve_reference(Lab, data, "labId", "lab", "Laboratory")
        if not fields["code"] or not fields["desc"] or not has_lab:
            raise ApiError("Code, description and laboratory are required.", HTTPStatus.BAD_REQUEST)
        _, category = _resolve_reference(Category, data, "categoryId", "category", "Category")

        if Product.query.filter_by(code=fields["code"]).first() is not None:
            raise ApiError(f"A product with code '{fields['code']}' already exists.", HTTPStatus.CONFLICT)

        product, error = Product.safe_create(
            lab_id=lab.id, category_id=category.id if category else None, **fields
        )
        if error:
            raise ApiError("Could not create the product.", HTTPStatus.INTERNAL_SERVER_ERROR)
        current_app.logger.info(f"Product {product.code} created (id={product.id})")
        return jsonify({"message": "Product created successfully.", "product": product.to_dict()}), HTTPStatus.CREATED

    @app.route("/api/products/<int:product_id>", methods=["PUT"])
    def update_product(product_id):
        product = get_or_404(Product, product_id, "Product")
        data = get_json_object()
        fields = _product_fields(data, partial=True)
        if "code" in fields and not fields["code"]:
            raise ApiError("The product code cannot be empty.", HTTPStatus.BAD_REQUEST)
        if "desc" in fields and not fields["desc"]:
            raise ApiError("The product description cannot be empty.", HTTPStatus.BAD_REQUEST)

        has_lab, lab = _resolve_reference(Lab, data, "labId", "lab", "Laboratory")
        if has_lab:
            fields["lab_id"] = lab.id
        has_category, category = _resolve_reference(Category, data, "categoryId", "category", "Category")
        if has_category:
            fields["category_id"] = category.id

        code = fields.get("code")
        if code and code != product.code:
            in_use = Product.query.filter(Product.code == code, Product.id != product.id).first()
            if in_use is not None:
                raise ApiError(f"The code '{code}' is already used by another product.", HTTPStatus.CONFLICT)

        success, error = product.safe_update(**fields)
        if not success:
            raise ApiError("Could not update the product.", HTTPStatus.INTERNAL_SERVER_ERROR)
        current_app.logger.info(f"Product {product.id} updated")
        return jsonify({"message": "Product updated successfully.", "product": product.to_dict()})

    @app.route("/api/products/<int:product_id>", methods=["DELETE"])
    def delete_product(product_id):
        product = get_or_404(Product, product_id, "Product")
        success, error = product.safe_delete()
        if not success:
            raise ApiError("Could not delete the product.", HTTPStatus.INTERNAL_SERVER_ERROR)
        current_app.logger.info(f"Product {product_id} deleted")
        return jsonify({"message": "Product deleted successfully.", "id": product_id})
