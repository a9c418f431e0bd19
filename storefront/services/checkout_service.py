"""Checkout: turn the live cart into an immutable receipt and empty the cart."""
from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone

from ..errors import CartMismatchError, EmptyCartError, ValidationError
from ..model import Receipt
from ..utils.money import MAX_MONEY, ZERO, round_money
from ..utils.validators import FieldErrors, is_email, parse_decimal, parse_positive_int

logger = logging.getLogger(__name__)


def _validate_checkout_payload(data: dict):
    errors = FieldErrors()

    name = data.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        errors.add("name", "Name is required")
    elif len(name) < 2:
        errors.add("name", "Name must be at least 2 characters long")
    elif len(name) > 100:
        errors.add("name", "Name must not exceed 100 characters")

    email = data.get("email")
    email = email.strip() if isinstance(email, str) else ""
    if not email:
        errors.add("email", "Email is required")
    elif not is_email(email):
        errors.add("email", "Valid email address is required")

    manifest = None
    raw = data.get("cartItems")
    if raw is not None:
        if not isinstance(raw, list):
            errors.add("cartItems", "Cart items must be an array")
        else:
            manifest = []
            for i, entry in enumerate(raw):
                if not isinstance(entry, dict):
                    errors.add(f"cartItems.{i}", "Cart item must be an object")
                    continue
                pid = parse_positive_int(entry.get("productId"))
                qty = parse_positive_int(entry.get("qty"))
                if pid is None:
                    errors.add(f"cartItems.{i}.productId", "productId must be a positive integer")
                if qty is None:
                    errors.add(f"cartItems.{i}.qty", "qty must be a positive integer")
                if "subtotal" in entry:
                    sub = parse_decimal(entry.get("subtotal"))
                    if sub is None or sub <= 0:
                        errors.add(f"cartItems.{i}.subtotal", "subtotal must be a positive number")
                manifest.append({"productId": pid, "qty": qty})

    errors.raise_if_any()
    return name, email, manifest


class CheckoutService:
    def __init__(self, cart_service, id_prefix="RCP"):
        self.cart = cart_service
        self.id_prefix = id_prefix

    # ---- helpers ----
    def generate_receipt_id(self) -> str:
        millis = int(time.time() * 1000)
        token = uuid.uuid4().hex[:8].upper()
        return f"{self.id_prefix}-{millis}-{token}"

    @staticmethod
    def calculate_grand_total(lines):
        return round_money(sum((line.subtotal_dec() for line in lines), ZERO))

    @staticmethod
    def validate_cart_items(live_lines, manifest):
        if len(live_lines) != len(manifest):
            raise CartMismatchError("Cart items validation failed: Item count mismatch")
        by_product = {line.product_id: line for line in live_lines}
        for entry in manifest:
            pid = entry["productId"]
            live = by_product.get(pid)
            if live is None:
                raise CartMismatchError(
                    f"Cart items validation failed: Product {pid} not found in cart", product_id=pid
                )
            if live.qty != entry["qty"]:
                raise CartMismatchError(
                    f"Cart items validation failed: Quantity mismatch for product {pid}", product_id=pid
                )

    # ---- operations ----
    def process_checkout(self, data: dict) -> Receipt:
        name, email, manifest = _validate_checkout_payload(data if isinstance(data, dict) else {})

        with self.cart.transaction():
            lines = self.cart.get_cart_items()["items"]
            if not lines:
                raise EmptyCartError("Cart is empty")

            if manifest:
                self.validate_cart_items(lines, manifest)

            total = self.calculate_grand_total(lines)
            if total > MAX_MONEY:
                raise ValidationError(f"Order total cannot exceed {MAX_MONEY}")

            receipt = Receipt.create(
                session=self.cart.session,
                receipt_id=self.generate_receipt_id(),
                name=name,
                email=email,
                total=total,
                cart_items=[line.as_snapshot() for line in lines],
                timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            )
            self.cart.clear_cart()

        self._log_transaction(receipt)
        return receipt

    def get_receipt(self, receipt_id: str) -> Receipt | None:
        if not receipt_id:
            return None
        return Receipt.find_by_receipt_id(receipt_id, session=self.cart.session)

    def get_all_receipts(self) -> list[dict]:
        return [r.as_summary() for r in Receipt.find_all(session=self.cart.session)]

    def _log_transaction(self, receipt: Receipt):
        logger.info(
            "checkout completed: receipt=%s customer=%s <%s> total=%s items=%d",
            receipt.receipt_id, receipt.name, receipt.email, receipt.total, len(receipt.cart_items),
        )
        for n, line in enumerate(receipt.cart_items, 1):
            logger.debug("  %d. %s x %s = %.2f", n, line.get("productName"), line.get("qty"), line.get("subtotal") or 0)
