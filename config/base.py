# config/base.py
import os
import warnings

_CONFIG_DIR = os.path.dirname(os.path.abspath(__file__))
_PROJECT_ROOT = os.path.dirname(_CONFIG_DIR)

DEV_SECRET_KEY = "dev-secret-key-change-in-production"
TEST_SECRET_KEY = "test-secret-key-for-testing-only"


def _coerce_bool(value, default=False):
    """Convert environment-style truthy/falsey values to bool."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    token = str(value).strip().lower()
    if token in {"1", "true", "yes", "on"}:
        return True
    if token in {"0", "false", "no", "off"}:
        return False
    return default


def _coerce_int(value, default, *, minimum=None, maximum=None):
    """
    Parse an integer setting, falling back to ``default`` on garbage and
    clamping to the optional bounds.
    """
    try:
        number = int(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        number = default
    if minimum is not None:
        number = max(number, minimum)
    if maximum is not None:
        number = min(number, maximum)
    return number


def _env_int(name, default, **bounds):
    return _coerce_int(os.environ.get(name), default, **bounds)


def _resolve_secret_key(flask_env):
    """
    SECRET_KEY from the environment.

    Production refuses to start without one; development falls back to a
    fixed key with a warning, tests to a fixed key silently.
    """
    secret_key = os.environ.get("SECRET_KEY")
    if secret_key:
        return secret_key
    if flask_env == "production":
        raise ValueError(
            "SECRET_KEY environment variable is required in production. "
            'Generate with: python -c "import secrets; print(secrets.token_hex(32))"'
        )
    if flask_env == "testing":
        return TEST_SECRET_KEY
    warnings.warn(
        "SECRET_KEY not set; using the development key. Set SECRET_KEY before deploying.",
        UserWarning,
    )
    return DEV_SECRET_KEY


def _sqlite_engine_options(uri):
    if not uri or not uri.startswith("sqlite"):
        return {}
    return {"connect_args": {"check_same_thread": False, "timeout": 5}}


def _development_database_uri():
    instance_path = os.path.join(_PROJECT_ROOT, "instance")
    os.makedirs(instance_path, exist_ok=True)
    # sqlite:///absolute/path (three slashes before an absolute path)
    db_path = os.path.join(instance_path, "medinor_dev.db").replace("\\", "/")
    return os.environ.get("DATABASE_URL", f"sqlite:///{db_path}")


def _production_database_uri():
    uri = os.environ.get("DATABASE_URL")
    # Heroku-style URLs use the scheme SQLAlchemy 2 no longer accepts
    if uri and uri.startswith("postgres://"):
        uri = uri.replace("postgres://", "postgresql://", 1)
    return uri


class Config:
    SECRET_KEY = _resolve_secret_key(os.environ.get("FLASK_ENV", "development"))

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SQLALCHEMY_ECHO = False

    # Request bodies carry whole spreadsheet exports
    MAX_CONTENT_LENGTH = _env_int("MAX_CONTENT_LENGTH_MB", 5, minimum=1) * 1024 * 1024

    # Importer
    IMPORTER_ENABLED = _coerce_bool(os.environ.get("IMPORTER_ENABLED"), default=True)
    IMPORTER_MAX_BATCH_ROWS = _env_int("IMPORTER_MAX_BATCH_ROWS", 20000, minimum=1)
    IMPORTER_COMMIT_CHUNK_SIZE = _env_int("IMPORTER_COMMIT_CHUNK_SIZE", 500, minimum=1, maximum=5000)

    # Client natural key shapes
    CLIENT_CODE_LETTERS = _env_int("CLIENT_CODE_LETTERS", 3, minimum=0)
    CLIENT_CODE_DIGITS = _env_int("CLIENT_CODE_DIGITS", 3, minimum=0)
    CLIENT_TAX_ID_DIGITS = _env_int("CLIENT_TAX_ID_DIGITS", 11, minimum=1)

    # Passed to werkzeug.security.generate_password_hash
    CLIENT_PASSWORD_HASH_METHOD = os.environ.get("CLIENT_PASSWORD_HASH_METHOD", "scrypt")

    # Products whose laboratory normalizes to this name are dropped before analysis
    PRODUCT_FILTERED_LAB = os.environ.get("PRODUCT_FILTERED_LAB", "BAJA").strip().upper()

    API_DEFAULT_PAGE_SIZE = _env_int("API_DEFAULT_PAGE_SIZE", 25, minimum=1)
    API_MAX_PAGE_SIZE = _env_int("API_MAX_PAGE_SIZE", 200, minimum=1)


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _development_database_uri()
    SQLALCHEMY_ECHO = _coerce_bool(os.environ.get("SQLALCHEMY_ECHO"), default=False)
    SQLALCHEMY_ENGINE_OPTIONS = _sqlite_engine_options(SQLALCHEMY_DATABASE_URI)


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get("SECRET_KEY", TEST_SECRET_KEY)
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = _sqlite_engine_options(SQLALCHEMY_DATABASE_URI)
    # Cheap hashes keep the commit tests fast
    CLIENT_PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"


class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _production_database_uri()
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
