# flask_app/utils/logging_config.py

"""
Logging setup for the Flask application.

Handlers are attached to ``app.logger`` according to the monitoring config:
console and/or rotating file output, as JSON lines or plain text.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(module)s %(funcName)s %(message)s"

_HANDLER_MARKER = "_medinor_handler"


class RequestAwareJsonFormatter(JsonFormatter):
    """JSON formatter that tags each record with the app name and a level field."""

    def __init__(self, *args, app_name=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.app_name = app_name

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        if self.app_name:
            log_record.setdefault("app", self.app_name)


def _build_formatter(app):
    if str(app.config.get("LOG_FORMAT", "json")).lower() == "json":
        return RequestAwareJsonFormatter(JSON_FORMAT, app_name=app.config.get("APP_NAME"))
    return logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _resolve_level(app):
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(app):
    """
    (Re)configure ``app.logger``.

    Safe to call repeatedly: handlers installed by a previous call are removed
    first, so tests can re-run it after changing the config.
    """
    logger = app.logger
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    level = _resolve_level(app)
    logger.setLevel(level)
    formatter = _build_formatter(app)

    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        setattr(console_handler, _HANDLER_MARKER, True)
        logger.addHandler(console_handler)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, "app.log"),
            maxBytes=int(app.config.get("LOG_FILE_MAX_BYTES", 10485760)),
            backupCount=int(app.config.get("LOG_FILE_BACKUP_COUNT", 10)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    logger.debug(
        "Logging configured",
        extra={"log_level": logging.getLevelName(level), "log_format": app.config.get("LOG_FORMAT")},
    )
    return logger
