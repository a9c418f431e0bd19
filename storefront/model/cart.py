# storefront/model/cart.py
from __future__ import annotations
from decimal import Decimal
from sqlalchemy.sql import func
from ..extensions import db
from ..utils.money import D, line_subtotal, round_money, to_float


class CartItem(db.Model):
    """One cart line: a product, a quantity and the subtotal priced at the
    last mutation. There is a single global cart, so the table *is* the cart.
    """
    __tablename__ = "CartItems"
    __table_args__ = (
        db.CheckConstraint("qty > 0", name="ck_cart_items_qty_positive"),
        db.CheckConstraint("subtotal >= 0", name="ck_cart_items_subtotal_nonnegative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("Products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    qty = db.Column(db.Integer, nullable=False, default=1)
    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    product = db.relationship("Product", back_populates="cart_items", lazy="joined")

    # ---- price helpers ----
    def reprice(self, qty: int | None = None) -> Decimal:
        """Set qty (optionally) and recompute subtotal from the current product price."""
        if qty is not None:
            self.qty = qty
        self.subtotal = line_subtotal(self.qty, self.product.price)
        return self.subtotal

    def subtotal_dec(self) -> Decimal:
        return round_money(D(self.subtotal))

    def as_api(self):
        p = self.product
        return {
            "id": self.id,
            "productId": self.product_id,
            "qty": self.qty,
            "subtotal": to_float(self.subtotal),
            "productName": p.name if p else None,
            "productDescription": p.description if p else None,
            "productPrice": to_float(p.price) if p else None,
            "productImageUrl": p.image_url if p else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    # snapshot stored on receipts; same shape as the API line
    as_snapshot = as_api
