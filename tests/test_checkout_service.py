"""Tests for checkout: receipts, manifest checks and atomicity."""
import re
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from storefront.errors import CartMismatchError, EmptyCartError, StorageError, ValidationError
from storefront.extensions import db
from storefront.model import Receipt

CUSTOMER = {"name": "Jane", "email": "j@x.com"}


def _receipt_count():
    return db.session.query(Receipt).count()


def test_empty_cart_cannot_be_checked_out(checkout):
    with pytest.raises(EmptyCartError):
        checkout.process_checkout(CUSTOMER)
    assert _receipt_count() == 0


def test_full_purchase_scenario(cart, checkout, make_product):
    a = make_product("A", "10.00")

    cart.add_to_cart({"productId": a.id, "qty": 2})
    line = cart.add_to_cart({"productId": a.id, "qty": 3})
    assert (line.qty, line.subtotal) == (5, Decimal("50.00"))
    line = cart.update_cart_item(line.id, {"qty": 1})
    assert line.subtotal == Decimal("10.00")

    receipt = checkout.process_checkout(CUSTOMER)

    assert receipt.total == Decimal("10.00")
    assert receipt.name == "Jane"
    assert receipt.email == "j@x.com"
    after = cart.get_cart_items()
    assert after["items"] == []
    assert after["total"] == Decimal("0")


def test_receipt_total_matches_live_subtotals(cart, checkout, make_product):
    cart.add_to_cart({"productId": make_product("A", "19.99").id, "qty": 3})
    cart.add_to_cart({"productId": make_product("B", "0.50").id, "qty": 1})

    receipt = checkout.process_checkout(CUSTOMER)

    assert receipt.total == Decimal("60.47")
    assert sum(item["subtotal"] for item in receipt.cart_items) == pytest.approx(60.47)
    assert cart.count_items() == 0


def test_receipt_is_a_snapshot(cart, checkout, make_product):
    a = make_product("A", "5.00")
    b = make_product("B", "7.00")
    cart.add_to_cart({"productId": a.id, "qty": 2})
    receipt_id = checkout.process_checkout(CUSTOMER).receipt_id

    cart.add_to_cart({"productId": a.id, "qty": 9})
    cart.add_to_cart({"productId": b.id, "qty": 1})

    stored = checkout.get_receipt(receipt_id)
    assert [(i["productId"], i["qty"], i["subtotal"]) for i in stored.cart_items] == [(a.id, 2, 10.0)]
    assert stored.cart_items[0]["productName"] == "A"


def test_receipt_id_format(cart, checkout, make_product):
    cart.add_to_cart({"productId": make_product().id, "qty": 1})

    receipt = checkout.process_checkout(CUSTOMER)

    assert re.fullmatch(r"RCP-\d{13}-[0-9A-F]{8}", receipt.receipt_id)
    assert receipt.timestamp.endswith("Z")


class TestManifest:

    def test_unknown_product_in_manifest(self, cart, checkout, make_product):
        p = make_product()
        cart.add_to_cart({"productId": p.id, "qty": 1})
        bogus = p.id + 6

        with pytest.raises(CartMismatchError) as exc:
            checkout.process_checkout({**CUSTOMER, "cartItems": [{"productId": bogus, "qty": 2}]})

        assert exc.value.product_id == bogus
        assert str(bogus) in exc.value.message
        assert cart.count_items() == 1
        assert _receipt_count() == 0

    def test_quantity_mismatch(self, cart, checkout, make_product):
        p = make_product()
        cart.add_to_cart({"productId": p.id, "qty": 3})

        with pytest.raises(CartMismatchError, match="Quantity mismatch"):
            checkout.process_checkout({**CUSTOMER, "cartItems": [{"productId": p.id, "qty": 2}]})

    def test_line_count_mismatch(self, cart, checkout, make_product):
        a, b = make_product("A"), make_product("B")
        cart.add_to_cart({"productId": a.id, "qty": 1})
        cart.add_to_cart({"productId": b.id, "qty": 1})

        with pytest.raises(CartMismatchError, match="Item count mismatch"):
            checkout.process_checkout({**CUSTOMER, "cartItems": [{"productId": a.id, "qty": 1}]})

    def test_matching_manifest_passes(self, cart, checkout, make_product):
        p = make_product(price="4.00")
        cart.add_to_cart({"productId": p.id, "qty": 2})

        receipt = checkout.process_checkout(
            {**CUSTOMER, "cartItems": [{"productId": p.id, "qty": 2, "subtotal": 8}]}
        )

        assert receipt.total == Decimal("8.00")

    def test_client_subtotal_never_drives_the_total(self, cart, checkout, make_product):
        p = make_product(price="4.00")
        cart.add_to_cart({"productId": p.id, "qty": 2})

        receipt = checkout.process_checkout(
            {**CUSTOMER, "cartItems": [{"productId": p.id, "qty": 2, "subtotal": 1}]}
        )

        assert receipt.total == Decimal("8.00")


@pytest.mark.parametrize("payload", [
    {"name": "J", "email": "j@x.com"},
    {"name": "Jane", "email": "not-an-email"},
    {"email": "j@x.com"},
    {"name": "Jane", "email": "j@x.com", "cartItems": "nope"},
    {"name": "Jane", "email": "j@x.com", "cartItems": [{"productId": -1, "qty": 1}]},
])
def test_invalid_checkout_payload(cart, checkout, make_product, payload):
    cart.add_to_cart({"productId": make_product().id, "qty": 1})

    with pytest.raises(ValidationError):
        checkout.process_checkout(payload)

    assert cart.count_items() == 1
    assert _receipt_count() == 0


def test_order_total_past_money_limit_is_rejected(cart, checkout, make_product):
    cart.add_to_cart({"productId": make_product("A", "6000000000.00").id, "qty": 1})
    cart.add_to_cart({"productId": make_product("B", "6000000000.00").id, "qty": 1})

    with pytest.raises(ValidationError):
        checkout.process_checkout(CUSTOMER)

    assert cart.count_items() == 2
    assert _receipt_count() == 0


def test_receipt_is_written_through_the_cart_session(cart, checkout, make_product, monkeypatch):
    seen = []
    original = Receipt.create.__func__

    def recording_create(cls, **kwargs):
        seen.append(kwargs["session"])
        return original(cls, **kwargs)

    monkeypatch.setattr(Receipt, "create", classmethod(recording_create))
    cart.add_to_cart({"productId": make_product().id, "qty": 1})

    checkout.process_checkout(CUSTOMER)

    assert seen == [cart.session]
    assert _receipt_count() == 1


def test_storage_failure_leaves_cart_and_receipts_untouched(cart, checkout, make_product, monkeypatch):
    cart.add_to_cart({"productId": make_product().id, "qty": 2})

    def broken_create(cls, **kwargs):
        raise OperationalError("INSERT INTO Receipts", {}, Exception("disk I/O error"))

    monkeypatch.setattr(Receipt, "create", classmethod(broken_create))

    with pytest.raises(StorageError):
        checkout.process_checkout(CUSTOMER)

    assert cart.count_items() == 1
    assert _receipt_count() == 0


def test_duplicate_receipt_id_fails_loudly(cart, checkout, make_product, monkeypatch):
    p = make_product()
    monkeypatch.setattr(checkout, "generate_receipt_id", lambda: "RCP-1-DEADBEEF")
    cart.add_to_cart({"productId": p.id, "qty": 1})
    first = checkout.process_checkout(CUSTOMER)
    cart.add_to_cart({"productId": p.id, "qty": 4})

    with pytest.raises(StorageError):
        checkout.process_checkout(CUSTOMER)

    assert checkout.get_receipt("RCP-1-DEADBEEF").total == first.total
    assert cart.get_cart_items()["items"][0].qty == 4
    assert _receipt_count() == 1


def test_receipt_lookup_and_listing(cart, checkout, make_product):
    a, b = make_product("A", "1.00"), make_product("B", "2.00")
    cart.add_to_cart({"productId": a.id, "qty": 1})
    first = checkout.process_checkout(CUSTOMER)
    cart.add_to_cart({"productId": a.id, "qty": 1})
    cart.add_to_cart({"productId": b.id, "qty": 1})
    second = checkout.process_checkout({"name": "Sam", "email": "sam@example.com"})

    summaries = checkout.get_all_receipts()

    assert [s["receiptId"] for s in summaries] == [second.receipt_id, first.receipt_id]
    assert summaries[0]["itemsCount"] == 2
    assert "items" not in summaries[0]
    assert checkout.get_receipt("RCP-0-MISSING") is None
