# app.py

import logging
import os

from dotenv import load_dotenv
from flask import Flask
from sqlalchemy import event

# .env must be loaded before config classes read the environment
load_dotenv()

from config import DevelopmentConfig, ProductionConfig, TestingConfig  # noqa: E402
from config.monitoring import (  # noqa: E402
    DevelopmentMonitoringConfig,
    ProductionMonitoringConfig,
    TestingMonitoringConfig,
)
from config.validation import validate_and_exit  # noqa: E402
from flask_app.importer import init_importer  # noqa: E402
from flask_app.models import db  # noqa: E402
from flask_app.routes import init_routes  # noqa: E402
from flask_app.utils.error_handler import init_error_handlers  # noqa: E402
from flask_app.utils.logging_config import setup_logging  # noqa: E402

logger = logging.getLogger(__name__)

CONFIG_BY_ENV = {
    "production": (ProductionConfig, ProductionMonitoringConfig),
    "testing": (TestingConfig, TestingMonitoringConfig),
    "development": (DevelopmentConfig, DevelopmentMonitoringConfig),
}

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=5000",
)


def _sqlite_connect_hook(*, enable_foreign_keys):
    """Connection hook applying ``SQLITE_PRAGMAS`` on every new connection."""
    statements = SQLITE_PRAGMAS + (("PRAGMA foreign_keys=ON",) if enable_foreign_keys else ())

    def _apply_pragmas(dbapi_connection, connection_record):  # pragma: no cover - instrumentation
        cursor = dbapi_connection.cursor()
        try:
            for statement in statements:
                cursor.execute(statement)
        except Exception as exc:
            logger.warning("Failed to apply SQLite PRAGMAs: %s", exc)
        finally:
            cursor.close()

    return _apply_pragmas


flask_env = os.environ.get("FLASK_ENV", "development")
if flask_env == "production":
    validate_and_exit(flask_env)

app = Flask(__name__)
app_config, monitoring_config = CONFIG_BY_ENV.get(flask_env, CONFIG_BY_ENV["development"])
app.config.from_object(app_config)
app.config.from_object(monitoring_config)

db.init_app(app)
setup_logging(app)
init_error_handlers(app)

with app.app_context():
    engine = db.engine
    if engine.url.drivername.startswith("sqlite") and not getattr(engine, "_medinor_pragmas", False):
        event.listen(engine, "connect", _sqlite_connect_hook(enable_foreign_keys=not app.config.get("TESTING")))
        engine._medinor_pragmas = True  # type: ignore[attr-defined]
    # Tests build and drop the schema themselves
    if not app.config.get("TESTING", False):
        db.create_all()

init_importer(app)
init_routes(app)


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
