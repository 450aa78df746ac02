"""
Importer blueprint: two-phase analyze / make-migration endpoints per domain.
"""

from __future__ import annotations

import time
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from config.monitoring import ImporterMonitoring
from flask_app.utils.error_handler import ApiError

from .batch import BatchTooLargeError, EmptyBatchError, extract_rows
from .pipeline.clients import analyze_clients, commit_clients
from .pipeline.products import analyze_products, commit_products

importer_blueprint = Blueprint("importer", __name__, url_prefix="/api")

ANALYZE_MESSAGES = {
    "clients": "Analysis completed.",
    "products": "Product analysis completed. Review the results before confirming the migration.",
}


def _request_rows(key: str) -> list:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ApiError("Request body must be a JSON object.", HTTPStatus.BAD_REQUEST)
    try:
        return extract_rows(payload, key, max_rows=current_app.config.get("IMPORTER_MAX_BATCH_ROWS"))
    except EmptyBatchError as exc:
        raise ApiError(str(exc), HTTPStatus.BAD_REQUEST) from exc
    except BatchTooLargeError as exc:
        raise ApiError(str(exc), HTTPStatus.REQUEST_ENTITY_TOO_LARGE, limit=exc.limit) from exc


def _analyze(domain: str, key: str, analyze):
    started = time.perf_counter()
    status = "error"
    counts = None
    try:
        rows = _request_rows(key)
        report = analyze(rows)
        counts = report.disposition_counts()
        status = "success"
    finally:
        ImporterMonitoring.record_analyze(
            domain=domain, duration_seconds=time.perf_counter() - started, status=status, counts=counts
        )

    message = ANALYZE_MESSAGES[domain]
    if report.filtered_out:
        message += f" {report.filtered_out} rows were skipped because of their laboratory."
    current_app.logger.info(
        "Analyzed %s batch",
        domain,
        extra={"importer_domain": domain, "importer_summary": report.summary()},
    )
    return jsonify(report.to_dict(message)), HTTPStatus.OK


def _commit(domain: str, commit):
    started = time.perf_counter()
    status = "error"
    result = None
    try:
        records = _request_rows("data.newRecords")
        result = commit(records)
        status = "success"
    finally:
        ImporterMonitoring.record_commit(
            domain=domain,
            duration_seconds=time.perf_counter() - started,
            status=status,
            created=result.created_count if result else 0,
            duplicates=len(result.duplicates) if result else 0,
            invalid=len(result.invalid) if result else 0,
        )
    return jsonify(result.to_dict()), HTTPStatus.CREATED


@importer_blueprint.post("/clients/analyze")
def analyze_clients_endpoint():
    """Classify an uploaded client batch without writing anything."""
    return _analyze("clients", "clients", analyze_clients)


@importer_blueprint.post("/clients/make-migration")
def commit_clients_endpoint():
    return _commit("clients", commit_clients)


@importer_blueprint.post("/products/analyze")
def analyze_products_endpoint():
    """Classify an uploaded product batch; missing laboratories and categories are created."""
    return _analyze("products", "products", analyze_products)


@importer_blueprint.post("/products/make-migration")
def commit_products_endpoint():
    return _commit("products", commit_products)
