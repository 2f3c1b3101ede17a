# ------ shop/model/__init__.py ------

from .user import User
from .product import Product, ProductTag, Variant, ProductImage, ProductOption
from .order import Order, OrderItem
from .types import GUID

__all__ = [
    "User",
    "Product",
    "ProductTag",
    "Variant",
    "ProductImage",
    "ProductOption",
    "Order",
    "OrderItem",
    "GUID",
]
