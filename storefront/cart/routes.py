# storefront/cart/routes.py
from __future__ import annotations
from flask import current_app, request

from ..services.cart_service import CartService
from ..utils.api import ok, err
from ..utils.money import to_float
from . import bp

def _cart() -> CartService:
    return current_app.extensions["cart_service"]

# ---- endpoints -------------------------------------------------------------

@bp.get("")
def get_cart():
    cart = _cart().get_cart_items()
    items = [i.as_api() for i in cart["items"]]
    msg = "Cart items retrieved successfully" if items else "Cart is empty"
    return ok(msg, {"items": items, "total": to_float(cart["total"])})

@bp.post("")
def add_item():
    """
    Body: { "productId": int, "qty": int }
    """
    svc = _cart()
    item = svc.add_to_cart(request.get_json(silent=True) or {})
    return ok("Item added to cart successfully", item.as_api(), status=201, total=to_float(svc.total()))

@bp.put("/<int:item_id>")
def update_item(item_id: int):
    """
    Body: { "qty": int }
    Reprices the line at the product's current price.
    """
    svc = _cart()
    item = svc.update_cart_item(item_id, request.get_json(silent=True) or {})
    if item is None:
        return err("Cart item not found", 404, total=to_float(svc.total()))
    return ok("Cart item updated successfully", item.as_api(), total=to_float(svc.total()))

@bp.delete("/<int:item_id>")
def remove_item(item_id: int):
    svc = _cart()
    if not svc.remove_from_cart(item_id):
        return err("Cart item not found", 404, total=to_float(svc.total()))
    return ok("Item removed from cart successfully", None, total=to_float(svc.total()))

# ---- clear all items -------------------------------------------------------
@bp.delete("")
def clear_cart():
    deleted = _cart().clear_cart()
    msg = "Cart cleared successfully" if deleted else "Cart was already empty"
    return ok(msg, {"deletedCount": deleted}, total=0)
