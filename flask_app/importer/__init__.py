"""
Bulk importer for clients and products.

``init_importer`` mounts the analyze / make-migration endpoints and the
``flask importer`` command group when ``IMPORTER_ENABLED`` is set, and a
stub command group explaining how to turn it on otherwise.
"""

from __future__ import annotations

from flask import Flask

from flask_app.utils.importer import get_importer_limits, is_importer_enabled

from .cli import get_disabled_importer_group, importer_cli
from .views import importer_blueprint

IMPORTER_EXTENSION_KEY = "importer"
IMPORTER_DOMAINS = ("clients", "products")

__all__ = ["init_importer", "IMPORTER_EXTENSION_KEY", "IMPORTER_DOMAINS"]


def _importer_state(app: Flask) -> dict:
    return app.extensions.setdefault(IMPORTER_EXTENSION_KEY, {"enabled": False, "domains": (), "limits": {}})


def _install_command_group(app: Flask, group) -> None:
    # init_importer runs again in tests after the flag flips
    app.cli.commands.pop(group.name, None)
    app.cli.add_command(group)


def _mount_blueprint(app: Flask) -> None:
    if importer_blueprint.name in app.blueprints:
        return
    if getattr(app, "_got_first_request", False):
        app.logger.warning("Importer endpoints not mounted: the app has already served its first request.")
        return
    app.register_blueprint(importer_blueprint)


def init_importer(app: Flask) -> None:
    """
    Wire the importer into ``app`` according to ``IMPORTER_ENABLED``.

    The resulting state (enabled flag, domains, batch limits) is kept in
    ``app.extensions['importer']`` for the status endpoint.
    """
    state = _importer_state(app)
    state["enabled"] = is_importer_enabled(app)

    if not state["enabled"]:
        state["domains"] = ()
        _install_command_group(app, get_disabled_importer_group())
        app.logger.info("Importer disabled via IMPORTER_ENABLED; endpoints and commands not mounted.")
        return

    state["domains"] = IMPORTER_DOMAINS
    state["limits"] = get_importer_limits(app)
    _mount_blueprint(app)
    _install_command_group(app, importer_cli)
    app.logger.info("Importer enabled for domains: %s", ", ".join(IMPORTER_DOMAINS))
