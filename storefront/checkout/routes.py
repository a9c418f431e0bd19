# storefront/checkout/routes.py
from flask import current_app, request

from ..services.checkout_service import CheckoutService
from ..utils.api import ok, err
from . import bp

def _checkout() -> CheckoutService:
    return current_app.extensions["checkout_service"]

@bp.post("")
def process_checkout():
    """
    Body: { "name": str, "email": str, "cartItems"?: [{ "productId", "qty", "subtotal"? }] }
    """
    receipt = _checkout().process_checkout(request.get_json(silent=True) or {})
    return ok("Checkout completed successfully", receipt.as_api(), status=201, key="receipt")

@bp.get("/receipt/<receipt_id>")
def get_receipt(receipt_id: str):
    r = _checkout().get_receipt(receipt_id)
    if not r:
        return err("Receipt not found", 404, key="receipt")
    return ok("Receipt retrieved successfully", r.as_api(), key="receipt")

@bp.get("/receipts")
def list_receipts():
    return ok("Receipts retrieved successfully", _checkout().get_all_receipts(), key="receipts")
