# ------ storefront/model/__init__.py ------

from .product import Product
from .cart import CartItem
from .receipt import Receipt

__all__ = [
    "Product",
    "CartItem",
    "Receipt",
]
