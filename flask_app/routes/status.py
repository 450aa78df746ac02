# flask_app/routes/status.py

"""
Health and Prometheus metrics endpoints
"""

from datetime import datetime, timezone
from http import HTTPStatus

from flask import Response, abort, current_app, jsonify
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from flask_app.models import db


def register_status_routes(app):
    """Register status routes"""

    @app.route("/api/status", methods=["GET"])
    def api_status():
        database_status = "ok"
        try:
            db.session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Status check could not reach the database: {str(e)}")
            database_status = "unavailable"

        importer_state = current_app.extensions.get("importer", {})
        payload = {
            "status": "ok" if database_status == "ok" else "degraded",
            "app": current_app.config.get("APP_NAME"),
            "version": current_app.config.get("APP_VERSION"),
            "time": datetime.now(timezone.utc).isoformat(),
            "database": database_status,
            "importer": {
                "enabled": importer_state.get("enabled", False),
                "domains": list(importer_state.get("domains", ())),
                "limits": importer_state.get("limits", {}),
            },
        }
        status_code = HTTPStatus.OK if database_status == "ok" else HTTPStatus.SERVICE_UNAVAILABLE
        return jsonify(payload), status_code

    @app.route(app.config.get("METRICS_ENDPOINT", "/metrics"), methods=["GET"])
    def metrics():
        # Checked per request so the flag can be flipped without re-registering
        if not current_app.config.get("MONITORING_ENABLED", False):
            abort(HTTPStatus.NOT_FOUND)
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
