from datetime import timedelta

import pytest

from ktv_shared.datetime_utils import venue_now
from ktv_shared.services import (
    approval_service,
    fb_order_service,
    inventory_service,
    room_service,
    transaction_service,
)
from ktv_shared.validation import ConflictError, PermissionDeniedError, ValidationError


@pytest.fixture
def open_room(room):
    room_service.start_session(room["id"], started_at=venue_now() - timedelta(hours=2, minutes=30))
    return room


def _discount(requested_by, room_id=None, transaction_id=None, amount=20000):
    return approval_service.create_request(
        requested_by,
        {
            "request_type": "discount",
            "room_id": room_id,
            "transaction_id": transaction_id,
            "amount_type": "fixed",
            "amount": amount,
            "reason": "Member card",
        },
    )


def test_checkout_bills_hours_orders_and_approved_discount(open_room, product, make_user):
    waiter = make_user("waiter")
    cashier = make_user("cashier")
    manager = make_user("manager")

    order = fb_order_service.create_order(
        open_room["id"], [{"product_id": product["id"], "quantity": 2}], waiter.id
    )
    assert order["total_amount"] == 30000
    # ordering only reserves; stock moves at checkout
    assert inventory_service.get_product(product["id"])["stock_quantity"] == 20

    request = _discount(cashier.id, room_id=open_room["id"])
    approval_service.approve_request(request["id"], manager.id)

    quote = transaction_service.quote_checkout(open_room["id"])
    assert quote["duration_hours"] == 3
    assert quote["room_cost"] == 300000
    assert quote["items_cost"] == 30000
    assert quote["discount_amount"] == 20000
    assert quote["subtotal"] == 310000
    assert quote["tax_amount"] == 34100
    assert quote["final_amount"] == 344100

    tx = transaction_service.checkout_room(open_room["id"], "cash", cashier.id)
    assert tx["transaction_type"] == "room_rental"
    assert tx["final_amount"] == 344100
    assert tx["description"] == "Ruby - 3 hours"
    assert [(i["product_id"], i["quantity"]) for i in tx["items"]] == [(product["id"], 2)]

    assert inventory_service.get_product(product["id"])["stock_quantity"] == 18
    assert room_service.get_room(open_room["id"])["status"] == "available"
    assert fb_order_service.list_room_orders(open_room["id"])[0]["status"] == "served"
    approved = approval_service.list_requests(status="approved")[0]
    assert approved["transaction_id"] == tx["id"]


def test_short_session_is_billed_one_hour(room, make_user):
    room_service.start_session(room["id"], started_at=venue_now() - timedelta(minutes=10))
    tx = transaction_service.checkout_room(room["id"], "card", make_user("cashier").id)
    assert tx["duration_hours"] == 1
    assert tx["final_amount"] == 111000


def test_checkout_needs_an_open_session(room):
    with pytest.raises(ConflictError):
        transaction_service.quote_checkout(room["id"])


def test_unknown_payment_method(open_room):
    with pytest.raises(ValidationError):
        transaction_service.checkout_room(open_room["id"], "bitcoin", None)


def test_orders_only_for_occupied_rooms_and_within_stock(room, product, make_user):
    waiter = make_user("waiter")
    with pytest.raises(ConflictError):
        fb_order_service.create_order(room["id"], [{"product_id": product["id"], "quantity": 1}], waiter.id)

    room_service.start_session(room["id"])
    with pytest.raises(ConflictError):
        fb_order_service.create_order(room["id"], [{"product_id": product["id"], "quantity": 21}], waiter.id)


def test_order_status_transitions(open_room, product, make_user):
    order = fb_order_service.create_order(
        open_room["id"], [{"product_id": product["id"], "quantity": 1}], make_user("waiter").id
    )
    fb_order_service.update_order_status(order["id"], "preparing")
    fb_order_service.update_order_status(order["id"], "ready")
    with pytest.raises(ConflictError):
        fb_order_service.update_order_status(order["id"], "cancelled")
    assert fb_order_service.update_order_status(order["id"], "served")["status"] == "served"


def test_counter_sale_deducts_stock(product, make_user):
    cashier = make_user("cashier")
    tx = transaction_service.sell_items(
        [{"product_id": product["id"], "quantity": 1}, {"product_id": product["id"], "quantity": 1}],
        "ewallet",
        cashier.id,
    )
    assert tx["subtotal"] == 30000
    assert tx["final_amount"] == 33300
    assert len(tx["items"]) == 1
    assert inventory_service.get_product(product["id"])["stock_quantity"] == 18


def test_approval_applied_after_payment(product, make_user):
    cashier = make_user("cashier")
    manager = make_user("manager")
    tx = transaction_service.sell_items([{"product_id": product["id"], "quantity": 2}], "cash", cashier.id)

    request = _discount(cashier.id, transaction_id=tx["id"], amount=3000)
    assert transaction_service.apply_approval_to_transaction(request["id"]) is False

    approval_service.approve_request(request["id"], manager.id)
    assert transaction_service.apply_approval_to_transaction(request["id"]) is True
    updated = transaction_service.get_transaction(tx["id"])
    assert updated["discount_amount"] == 3000
    assert updated["final_amount"] == 29970

    assert transaction_service.apply_approval_to_transaction(request["id"]) is False


def test_only_management_decides_and_only_once(room, make_user):
    cashier = make_user("cashier")
    manager = make_user("manager")
    request = _discount(cashier.id, room_id=room["id"])

    with pytest.raises(PermissionDeniedError):
        approval_service.approve_request(request["id"], cashier.id)

    rejected = approval_service.reject_request(request["id"], manager.id)
    assert rejected["status"] == "rejected"
    with pytest.raises(ConflictError):
        approval_service.approve_request(request["id"], manager.id)


def test_other_income_is_untaxed(make_user):
    tx = transaction_service.record_transaction(50000, "transfer", make_user("cashier").id, "Corkage")
    assert tx["transaction_type"] == "other"
    assert tx["final_amount"] == 50000
    with pytest.raises(ValidationError):
        transaction_service.record_transaction(0, "cash", None)


def test_transactions_filter_by_type(product, make_user):
    cashier = make_user("cashier")
    transaction_service.record_transaction(50000, "cash", cashier.id)
    transaction_service.sell_items([{"product_id": product["id"], "quantity": 1}], "cash", cashier.id)
    rows = transaction_service.list_transactions(transaction_type="food_beverage")
    assert [r["transaction_type"] for r in rows] == ["food_beverage"]
    assert len(transaction_service.list_transactions(cashier_id=cashier.id)) == 2


def test_receipt_pdf_is_rendered(product, make_user):
    from ktv_shared.services.receipt_pdf_service import generate_receipt_pdf

    tx = transaction_service.sell_items([{"product_id": product["id"], "quantity": 1}], "cash", make_user("cashier").id)
    pdf_bytes, status, error = generate_receipt_pdf(tx["id"], "Test KTV")
    assert status == 200
    assert error is None
    assert pdf_bytes.startswith(b"%PDF")

    missing, status, error = generate_receipt_pdf(9999)
    assert missing is None
    assert status == 404
