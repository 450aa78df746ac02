"""
Config accessors for the importer, usable with or without an explicit app.
"""

from __future__ import annotations

from flask import current_app


def _config(app=None):
    return (app or current_app).config


def is_importer_enabled(app=None) -> bool:
    return bool(_config(app).get("IMPORTER_ENABLED", False))


def get_importer_limits(app=None) -> dict[str, int]:
    """Batch limits, keyed the way the status endpoint reports them."""
    config = _config(app)
    return {
        "maxBatchRows": int(config.get("IMPORTER_MAX_BATCH_ROWS", 0)),
        "commitChunkSize": int(config.get("IMPORTER_COMMIT_CHUNK_SIZE", 0)),
    }
