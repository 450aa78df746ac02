# flask_app/routes/clients.py

"""
Client management endpoints (listing, single create/update, bulk update)
"""

import math
from http import HTTPStatus

from flask import current_app, jsonify, request
from sqlalchemy import or_
from werkzeug.security import generate_password_hash

from flask_app.importer.pipeline.clients import ClientRules
from flask_app.importer.pipeline.normalize import normalize_flag, normalize_optional_text
from flask_app.importer.pipeline.validation import (
    CLIENT_CODE_FIELD,
    CLIENT_NAME_FIELD,
    CLIENT_TAX_ID_FIELD,
    validate_client_row,
)
from flask_app.models import Client, db
from flask_app.utils.error_handler import ApiError

from .helpers import ListParams, get_json_object, get_or_404

SEARCHABLE_FIELDS = ("cod_client", "razon_soci", "identiftri", "username")
SORTABLE_FIELDS = ("cod_client", "razon_soci", "identiftri", "username", "active", "created_at", "updated_at")


def _find_clash(cod_client, identiftri, username, exclude_id=None):
    """Return a message describing the first unique field already taken by another client."""
    query = Client.query.filter(
        or_(Client.cod_client == cod_client, Client.identiftri == identiftri, Client.username == username)
    )
    if exclude_id is not None:
        query = query.filter(Client.id != exclude_id)
    duplicate = query.first()
    if duplicate is None:
        return None
    if duplicate.cod_client == cod_client:
        return f"A client with code '{cod_client}' already exists."
    if duplicate.identiftri == identiftri:
        return f"A client with tax id '{identiftri}' already exists."
    return f"The username '{username}' is already in use."


def _validated_fields(data, base=None):
    """
    Merge ``data`` over ``base`` and validate the client's identifying fields.

    Returns the normalized code, tax id and business name, or raises a 400.
    """
    base = base or {}
    candidate = {
        CLIENT_CODE_FIELD: data.get("cod_client", base.get("cod_client")),
        CLIENT_TAX_ID_FIELD: data.get("identiftri", base.get("identiftri")),
        CLIENT_NAME_FIELD: data.get("razon_soci", base.get("razon_soci")),
    }
    rules = ClientRules.from_config(current_app.config)
    outcome = validate_client_row(candidate, code_arity=rules.code_arity, tax_id_digits=rules.tax_id_digits)
    if not outcome.is_valid:
        raise ApiError("Invalid client data.", HTTPStatus.BAD_REQUEST, errors=list(outcome.errors))
    return outcome.record


def _apply_update(client, data):
    """Validate and apply ``data`` to ``client``; returns an error message on clash."""
    record = _validated_fields(data, base=client.to_dict())
    username = normalize_optional_text(data.get("username")) or client.username
    clash = _find_clash(record[CLIENT_CODE_FIELD], record[CLIENT_TAX_ID_FIELD], username, exclude_id=client.id)
    if clash:
        return clash

    client.cod_client = record[CLIENT_CODE_FIELD]
    client.identiftri = record[CLIENT_TAX_ID_FIELD]
    client.razon_soci = record[CLIENT_NAME_FIELD]
    client.username = username
    if "active" in data:
        client.active = normalize_flag(data.get("active"), default=client.active)
    if "must_change_password" in data:
        client.must_change_password = normalize_flag(data.get("must_change_password"), default=client.must_change_password)
    password = data.get("password")
    if password:
        client.password_hash = generate_password_hash(
            str(password), method=current_app.config.get("CLIENT_PASSWORD_HASH_METHOD", "scrypt")
        )
    return None


def register_client_routes(app):
    """Register client routes"""

    @app.route("/api/clients", methods=["GET"])
    def list_clients():
        """Paginated client listing with case-insensitive search over the identifying fields."""
        params = ListParams.from_request(SORTABLE_FIELDS)
        query = Client.query
        if params.search:
            term = f"%{params.search}%"
            query = query.filter(or_(*[getattr(Client, field).ilike(term) for field in SEARCHABLE_FIELDS]))

        total = query.count()
        if params.sort:
            column = getattr(Client, params.sort)
            query = query.order_by(column.desc() if params.descending else column.asc())
        else:
            query = query.order_by(Client.id.asc())

        clients = query.offset(params.offset).limit(params.limit).all()
        return jsonify(
            {
                "page": params.page,
                "totalPages": math.ceil(total / params.limit) if total else 0,
                "totalItems": total,
                "items": [client.to_dict() for client in clients],
            }
        )

    @app.route("/api/clients/all", methods=["GET"])
    def list_all_clients():
        clients = Client.query.order_by(Client.id.asc()).all()
        return jsonify({"items": [client.to_dict() for client in clients]})

    @app.route("/api/clients/<int:client_id>", methods=["GET"])
    def get_client(client_id):
        client = get_or_404(Client, client_id, "Client")
        return jsonify({"item": client.to_dict()})

    @app.route("/api/clients", methods=["POST"])
    def create_client():
        """
        Create a single client.

        Username and initial password default to the tax id.
        """
        data = get_json_object()
        record = _validated_fields(data)
        tax_id = record[CLIENT_TAX_ID_FIELD]
        username = normalize_optional_text(data.get("username")) or tax_id

        clash = _find_clash(record[CLIENT_CODE_FIELD], tax_id, username)
        if clash:
            raise ApiError(clash, HTTPStatus.CONFLICT)

        password = str(data.get("password") or tax_id)
        client, error = Client.safe_create(
            cod_client=record[CLIENT_CODE_FIELD],
            razon_soci=record[CLIENT_NAME_FIELD],
            identiftri=tax_id,
            username=username,
            password_hash=generate_password_hash(
                password, method=current_app.config.get("CLIENT_PASSWORD_HASH_METHOD", "scrypt")
            ),
            active=normalize_flag(data.get("active"), default=False),
        )
        if error:
            raise ApiError("Could not create the client.", HTTPStatus.INTERNAL_SERVER_ERROR)

        current_app.logger.info(f"Client {client.cod_client} created (id={client.id})")
        return jsonify({"item": client.to_dict()}), HTTPStatus.CREATED

    @app.route("/api/clients/<int:client_id>", methods=["PUT"])
    def update_client(client_id):
        client = get_or_404(Client, client_id, "Client")
        clash = _apply_update(client, get_json_object())
        if clash:
            db.session.rollback()
            raise ApiError(clash, HTTPStatus.CONFLICT)
        db.session.commit()
        current_app.logger.info(f"Client {client.id} updated")
        return jsonify({"item": client.to_dict()})

    @app.route("/api/clients", methods=["PUT"])
    def bulk_update_clients():
        """
        Update many clients in one request.

        Each item needs an ``id``. Items that fail are reported individually
        and the response is a 207; otherwise 200.
        """
        items = request.get_json(silent=True)
        if not isinstance(items, list) or not items:
            raise ApiError("Expected a non-empty array of clients to update.", HTTPStatus.BAD_REQUEST)

        updated = []
        errors = []
        for item in items:
            if not isinstance(item, dict) or item.get("id") is None:
                errors.append({"message": "Each client in a bulk update requires an id.", "client": item})
                continue
            client = db.session.get(Client, item["id"])
            if client is None:
                errors.append({"message": f"Client with id {item['id']} not found.", "client": item})
                continue
            try:
                clash = _apply_update(client, item)
            except ApiError as exc:
                db.session.rollback()
                errors.append({"message": exc.message, "errors": exc.extra_fields.get("errors", []), "client": item})
                continue
            if clash:
                db.session.rollback()
                errors.append({"message": clash, "client": item})
                continue
            db.session.commit()
            updated.append(client.to_dict())

        current_app.logger.info(f"Bulk client update: {len(updated)} updated, {len(errors)} failed")
        if errors:
            return (
                jsonify(
                    {
                        "message": "Some clients could not be updated.",
                        "updatedCount": len(updated),
                        "errors": errors,
                        "updatedItems": updated,
                    }
                ),
                HTTPStatus.MULTI_STATUS,
            )
        return jsonify(
            {"message": "All clients updated successfully.", "updatedCount": len(updated), "updatedItems": updated}
        )
