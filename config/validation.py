# config/validation.py

"""
Startup checks for the environment variables the Medinor API depends on.

Only production is checked: development and tests run on built-in defaults.
"""

import os
import sys
from typing import List, Tuple

PLACEHOLDER_SECRET_KEYS = frozenset({"your-secret-key", "your_secret_key", "changeme"})

# Integer settings that silently fall back to defaults when unparsable
INTEGER_SETTINGS = (
    "IMPORTER_COMMIT_CHUNK_SIZE",
    "IMPORTER_MAX_BATCH_ROWS",
    "CLIENT_TAX_ID_DIGITS",
)


def _secret_key_errors() -> List[str]:
    secret_key = os.environ.get("SECRET_KEY", "")
    if secret_key and secret_key not in PLACEHOLDER_SECRET_KEYS:
        return []
    return [
        "SECRET_KEY is required in production and must not be a placeholder value. "
        'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
    ]


def _database_errors() -> List[str]:
    if os.environ.get("DATABASE_URL"):
        return []
    return ["DATABASE_URL is required in production. Point it at the PostgreSQL database."]


def _integer_setting_errors() -> List[str]:
    errors = []
    for name in INTEGER_SETTINGS:
        raw = os.environ.get(name)
        if raw is not None and not raw.strip().isdigit():
            errors.append(f"{name} must be a positive integer (got '{raw}').")
    return errors


def validate_environment(flask_env: str = None) -> Tuple[bool, List[str]]:
    """
    Validate the environment for ``flask_env``.

    Args:
        flask_env: development, testing or production. Read from FLASK_ENV
            when omitted.

    Returns:
        ``(is_valid, errors)``
    """
    if flask_env is None:
        flask_env = os.environ.get("FLASK_ENV", "development")
    if flask_env != "production":
        return True, []

    errors = _secret_key_errors() + _database_errors() + _integer_setting_errors()
    return not errors, errors


def validate_and_exit(flask_env: str = None) -> None:
    """Print a readable report to stderr and exit(1) when validation fails."""
    is_valid, errors = validate_environment(flask_env)
    if is_valid:
        return

    rule = "=" * 80
    lines = [rule, "ENVIRONMENT VALIDATION FAILED", rule, "", "Fix the following settings:", ""]
    lines.extend(f"{number}. {error}" for number, error in enumerate(errors, 1))
    lines.extend(["", rule])
    print("\n".join(lines), file=sys.stderr)
    sys.exit(1)
