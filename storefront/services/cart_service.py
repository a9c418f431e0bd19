"""Cart store and the business rules that keep it consistent.

The cart is one global resource (the ``CartItems`` table). Every mutation runs
inside :meth:`CartService.transaction`, which serializes writers behind a single
re-entrant lock and commits or rolls back the whole read-modify-write sequence.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError, StorageError, ValidationError
from ..model import CartItem, Product
from ..utils.money import MAX_MONEY, ZERO, D, line_subtotal, round_money
from ..utils.validators import MAX_INT, FieldErrors, parse_positive_int

logger = logging.getLogger(__name__)

# one writer at a time across every CartService bound to this process
_CART_LOCK = threading.RLock()


def _require_positive_int(errors: FieldErrors, field: str, value, label: str):
    n = parse_positive_int(value)
    if n is None:
        errors.add(field, f"{label} must be a positive integer")
    return n


def _check_line_limits(qty: int, unit_price):
    if qty > MAX_INT:
        raise ValidationError(
            "Quantity exceeds the maximum allowed",
            errors=[{"field": "qty", "message": f"Cart quantity cannot exceed {MAX_INT}"}],
        )
    if line_subtotal(qty, unit_price) > MAX_MONEY:
        raise ValidationError(
            "Line subtotal exceeds the maximum allowed",
            errors=[{"field": "qty", "message": f"Line subtotal cannot exceed {MAX_MONEY}"}],
        )


class CartService:
    def __init__(self, session, lock=None):
        self.session = session
        self.lock = lock or _CART_LOCK
        self._depth = 0

    # ---- transactional boundary ----------------------------------------------
    @contextmanager
    def transaction(self):
        """Run the block atomically. Nested blocks join the outermost one."""
        with self.lock:
            outermost = self._depth == 0
            self._depth += 1
            try:
                yield self.session
                if outermost:
                    self.session.commit()
            except SQLAlchemyError as e:
                if outermost:
                    self.session.rollback()
                    logger.exception("cart transaction rolled back")
                    raise StorageError(f"Storage operation failed: {e.__class__.__name__}") from e
                raise
            except BaseException:
                if outermost:
                    self.session.rollback()
                raise
            finally:
                self._depth -= 1

    # ---- queries (caller decides on the transaction) --------------------------
    def lines(self) -> list[CartItem]:
        stmt = select(CartItem).order_by(CartItem.created_at.desc(), CartItem.id.desc())
        return list(self.session.execute(stmt).unique().scalars().all())

    def find_line(self, item_id: int) -> CartItem | None:
        return self.session.get(CartItem, item_id)

    def find_line_by_product(self, product_id: int) -> CartItem | None:
        stmt = select(CartItem).where(CartItem.product_id == product_id).with_for_update(of=CartItem)
        return self.session.execute(stmt).unique().scalar_one_or_none()

    def count_items(self) -> int:
        return self.session.execute(select(func.count(CartItem.id))).scalar_one()

    def total(self):
        value = self.session.execute(select(func.coalesce(func.sum(CartItem.subtotal), 0))).scalar_one()
        return round_money(D(value))

    # ---- operations -----------------------------------------------------------
    def get_cart_items(self) -> dict:
        with self.transaction():
            items = self.lines()
            total = round_money(sum((it.subtotal_dec() for it in items), ZERO))
        return {"items": items, "total": total}

    def add_to_cart(self, data: dict) -> CartItem:
        data = data if isinstance(data, dict) else {}
        errors = FieldErrors()
        product_id = _require_positive_int(
            errors, "productId", data.get("productId", data.get("product_id")), "Product ID"
        )
        qty = _require_positive_int(errors, "qty", data.get("qty", data.get("quantity")), "Quantity")
        errors.raise_if_any("Valid productId and qty are required")

        with self.transaction():
            product = self.session.get(Product, product_id)
            if product is None:
                raise NotFoundError("Product not found")

            item = self.find_line_by_product(product_id)
            if item:
                _check_line_limits(item.qty + qty, product.price)
                item.reprice(item.qty + qty)
            else:
                _check_line_limits(qty, product.price)
                item = CartItem(product=product, qty=qty, subtotal=line_subtotal(qty, product.price))
                self.session.add(item)
            self.session.flush()
            logger.info("cart: product %s qty now %s (subtotal %s)", product_id, item.qty, item.subtotal)
        return item

    def update_cart_item(self, item_id, data: dict) -> CartItem | None:
        """Set the quantity of a line and reprice it at the current product price.

        Returns None when the line does not exist.
        """
        data = data if isinstance(data, dict) else {}
        errors = FieldErrors()
        item_id = _require_positive_int(errors, "id", item_id, "Cart item ID")
        qty = _require_positive_int(errors, "qty", data.get("qty", data.get("quantity")), "Quantity")
        errors.raise_if_any("Valid quantity greater than 0 is required")

        with self.transaction():
            item = self.find_line(item_id)
            if item is None:
                return None
            _check_line_limits(qty, item.product.price)
            item.reprice(qty)
            self.session.flush()
            logger.info("cart: line %s set to qty %s (subtotal %s)", item_id, qty, item.subtotal)
        return item

    def remove_from_cart(self, item_id) -> bool:
        errors = FieldErrors()
        item_id = _require_positive_int(errors, "id", item_id, "Cart item ID")
        errors.raise_if_any("Valid cart item ID is required")

        with self.transaction():
            item = self.find_line(item_id)
            if item is None:
                return False
            self.session.delete(item)
            self.session.flush()
        logger.info("cart: line %s removed", item_id)
        return True

    def clear_cart(self) -> int:
        with self.transaction():
            deleted = self.session.query(CartItem).delete(synchronize_session="fetch")
        logger.info("cart: cleared %s line(s)", deleted)
        return deleted
