import json
import logging
from unittest.mock import patch

from flask import Flask
from prometheus_client import REGISTRY
from sqlalchemy.exc import OperationalError

from config.validation import validate_environment
from flask_app.importer import init_importer
from flask_app.utils.logging_config import setup_logging


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestStatus:
    def test_status_reports_importer_state(self, client):
        response = client.get("/api/status")

        assert response.status_code == 200
        payload = response.get_json()
        assert payload["status"] == "ok"
        assert payload["database"] == "ok"
        assert payload["app"] == "Medinor API"
        assert payload["importer"]["enabled"] is True
        assert payload["importer"]["domains"] == ["clients", "products"]
        assert payload["importer"]["limits"] == {"maxBatchRows": 20000, "commitChunkSize": 500}

    def test_status_when_database_is_down(self, client):
        failure = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with patch("flask_app.routes.status.db.session.execute", side_effect=failure):
            response = client.get("/api/status")

        assert response.status_code == 503
        assert response.get_json()["database"] == "unavailable"

    def test_disabled_importer_is_reported(self, app, client):
        app.config["IMPORTER_ENABLED"] = False
        init_importer(app)

        payload = client.get("/api/status").get_json()

        assert payload["importer"]["enabled"] is False
        assert payload["importer"]["domains"] == []

    def test_metrics_hidden_unless_monitoring_enabled(self, client):
        assert client.get("/metrics").status_code == 404

    def test_metrics_exposition(self, app, client):
        app.config["MONITORING_ENABLED"] = True
        client.post("/api/clients/analyze", json={"clients": []})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.mimetype == "text/plain"
        assert b"importer_analyze_requests_total" in response.data


class TestJsonErrors:
    def test_unknown_endpoint(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        payload = response.get_json()
        assert payload["status"] == 404
        assert payload["method"] == "GET"
        assert payload["url"].endswith("/api/nope")

    def test_wrong_method(self, client):
        response = client.get("/api/clients/analyze")

        assert response.status_code == 405
        assert response.get_json()["method"] == "GET"


class TestImporterMetrics:
    def test_analyze_and_commit_are_counted(self, client):
        analyze_before = _sample("importer_analyze_requests_total", domain="clients", status="success")
        rejected_before = _sample("importer_analyze_requests_total", domain="clients", status="error")
        created_before = _sample("importer_commit_records_total", domain="clients", outcome="created")
        records = [{"COD_CLIENT": "ABC123", "IDENTIFTRI": "20123456783", "RAZON_SOCI": "ACME"}]

        client.post("/api/clients/analyze", json={"clients": records})
        client.post("/api/clients/analyze", json={"clients": []})
        client.post("/api/clients/make-migration", json={"data": {"newRecords": records}})

        assert _sample("importer_analyze_requests_total", domain="clients", status="success") == analyze_before + 1
        assert _sample("importer_analyze_requests_total", domain="clients", status="error") == rejected_before + 1
        assert _sample("importer_commit_records_total", domain="clients", outcome="created") == created_before + 1


class TestEnvironmentValidation:
    def test_only_production_is_checked(self, monkeypatch):
        monkeypatch.delenv("SECRET_KEY", raising=False)

        assert validate_environment("development") == (True, [])

    def test_production_requires_secret_and_database(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "your-secret-key")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("IMPORTER_MAX_BATCH_ROWS", "lots")
        monkeypatch.delenv("IMPORTER_COMMIT_CHUNK_SIZE", raising=False)
        monkeypatch.delenv("CLIENT_TAX_ID_DIGITS", raising=False)

        is_valid, errors = validate_environment("production")

        assert is_valid is False
        assert len(errors) == 3
        assert any("IMPORTER_MAX_BATCH_ROWS" in error for error in errors)

    def test_production_with_valid_settings(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "a-real-secret")
        monkeypatch.setenv("DATABASE_URL", "postgresql://medinor@localhost/medinor")
        monkeypatch.delenv("IMPORTER_MAX_BATCH_ROWS", raising=False)
        monkeypatch.delenv("IMPORTER_COMMIT_CHUNK_SIZE", raising=False)
        monkeypatch.delenv("CLIENT_TAX_ID_DIGITS", raising=False)

        assert validate_environment("production") == (True, [])


class TestLogging:
    def test_json_file_logging(self, tmp_path):
        logging_app = Flask("logging-check")
        logging_app.config.update(
            APP_NAME="Medinor API",
            LOG_LEVEL="INFO",
            LOG_FORMAT="json",
            LOG_DIR=str(tmp_path),
            ENABLE_FILE_LOGGING=True,
            ENABLE_CONSOLE_LOGGING=False,
        )

        logger = setup_logging(logging_app)
        logger.info("Analyzed clients batch", extra={"importer_domain": "clients"})
        for handler in logger.handlers:
            handler.flush()

        line = (tmp_path / "app.log").read_text(encoding="utf-8").strip().splitlines()[-1]
        record = json.loads(line)
        assert record["message"] == "Analyzed clients batch"
        assert record["importer_domain"] == "clients"
        assert record["level"] == "INFO"
        assert record["app"] == "Medinor API"

    def test_setup_is_idempotent(self):
        logging_app = Flask("logging-repeat")
        logging_app.config.update(LOG_FORMAT="text", ENABLE_CONSOLE_LOGGING=True, ENABLE_FILE_LOGGING=False)

        setup_logging(logging_app)
        logger = setup_logging(logging_app)

        assert len([h for h in logger.handlers if getattr(h, "_medinor_handler", False)]) == 1
        assert logger.level == logging.INFO
