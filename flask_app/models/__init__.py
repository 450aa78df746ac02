# flask_app/models/__init__.py
"""
Database models package
"""

from .base import BaseModel, db
from .catalog import Category, Lab, Product, compute_discount
from .client import CLIENT_ROLE, Client
from .order import Order, OrderCounter, OrderItem

__all__ = [
    "db",
    "BaseModel",
    "Client",
    "CLIENT_ROLE",
    "Lab",
    "Category",
    "Product",
    "compute_discount",
    "Order",
    "OrderItem",
    "OrderCounter",
]
