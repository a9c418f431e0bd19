# storefront/model/receipt.py
from datetime import datetime
from ..extensions import db
from ..utils.money import to_float

class Receipt(db.Model):
    __tablename__ = "Receipts"
    id = db.Column(db.Integer, primary_key=True)
    receipt_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(254), nullable=False)
    total = db.Column(db.Numeric(12, 2), nullable=False)
    cart_items = db.Column(db.JSON, nullable=False)  # by-value snapshot of the cart lines at checkout
    timestamp = db.Column(db.String(40), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    # ---- append-only store ----
    @classmethod
    def create(cls, *, receipt_id, name, email, total, cart_items, timestamp, session=None):
        if session is None:
            session = db.session
        r = cls(
            receipt_id=receipt_id,
            name=name,
            email=email,
            total=total,
            cart_items=[dict(line) for line in cart_items],
            timestamp=timestamp,
        )
        session.add(r)
        # flush so a duplicate receipt_id fails here, inside the caller's transaction
        session.flush()
        return r

    @classmethod
    def find_by_receipt_id(cls, receipt_id, session=None):
        return (db.session if session is None else session).execute(
            db.select(cls).filter_by(receipt_id=receipt_id)
        ).scalar_one_or_none()

    @classmethod
    def find_all(cls, session=None):
        return (db.session if session is None else session).execute(
            db.select(cls).order_by(cls.timestamp.desc(), cls.id.desc())
        ).scalars().all()

    def as_api(self):
        return {
            "receiptId": self.receipt_id,
            "total": to_float(self.total),
            "timestamp": self.timestamp,
            "name": self.name,
            "email": self.email,
            "items": list(self.cart_items or []),
        }

    def as_summary(self):
        return {
            "receiptId": self.receipt_id,
            "total": to_float(self.total),
            "timestamp": self.timestamp,
            "name": self.name,
            "email": self.email,
            "itemsCount": len(self.cart_items or []),
        }
