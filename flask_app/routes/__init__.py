# flask_app/routes/__init__.py
"""
Application routes package
"""

from .catalog import register_catalog_routes
from .clients import register_client_routes
from .orders import register_order_routes
from .products import register_product_routes
from .status import register_status_routes


def init_routes(app):
    """Initialize all application routes"""
    register_status_routes(app)
    register_client_routes(app)
    register_product_routes(app)
    register_catalog_routes(app)
    register_order_routes(app)
