# flask_app/routes/catalog.py

"""
Laboratory and category endpoints
"""

from http import HTTPStatus

from flask import current_app, jsonify

from flask_app.importer.pipeline.normalize import normalize_name
from flask_app.models import Category, Lab
from flask_app.utils.error_handler import ApiError

from .helpers import get_json_object


def _create_named(model, label, payload_key):
    name = normalize_name(get_json_object().get("name"))
    if not name:
        raise ApiError(f"No name was provided for the {label.lower()}.", HTTPStatus.BAD_REQUEST)
    if model.find_by_name(name) is not None:
        raise ApiError(f"The {label.lower()} '{name}' already exists.", HTTPStatus.CONFLICT)

    instance, error = model.safe_create(name=name)
    if error:
        raise ApiError(f"Could not create the {label.lower()}.", HTTPStatus.INTERNAL_SERVER_ERROR)
    current_app.logger.info(f"{label} '{name}' created (id={instance.id})")
    return (
        jsonify(
            {
                "message": f"{label} created successfully.",
                payload_key: {"id": instance.id, "name": instance.name},
            }
        ),
        HTTPStatus.CREATED,
    )


def register_catalog_routes(app):
    """Register laboratory and category routes"""

    @app.route("/api/labs", methods=["GET"])
    def list_labs():
        labs = Lab.query.order_by(Lab.name.asc()).all()
        return jsonify({"items": [{"id": lab.id, "lab": lab.name} for lab in labs]})

    @app.route("/api/labs", methods=["POST"])
    def create_lab():
        return _create_named(Lab, "Laboratory", "lab")

    @app.route("/api/categories", methods=["GET"])
    def list_categories():
        categories = Category.query.order_by(Category.name.asc()).all()
        return jsonify({"items": [{"id": category.id, "category": category.name} for category in categories]})

    @app.route("/api/categories", methods=["POST"])
    def create_category():
        return _create_named(Category, "Category", "category")
