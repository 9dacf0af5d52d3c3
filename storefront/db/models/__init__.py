"""SQLAlchemy models - import all for Alembic and relationships."""

from storefront.db.base import Base
from storefront.db.models.user import User
from storefront.db.models.product import Product
from storefront.db.models.order import Order

__all__ = [
    "Base",
    "User",
    "Product",
    "Order",
]
