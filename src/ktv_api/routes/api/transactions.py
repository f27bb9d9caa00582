"""
Transactions API - cashier checkout, direct sales, other income, receipts
and the bill calculator RPCs.
"""

from __future__ import annotations

from http import HTTPStatus
from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from ktv_api.decorators import cashier_required, finance_required, login_required
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.logging_config import get_logger
from ktv_shared.schemas import (
    CheckoutRequest,
    RecordTransactionRequest,
    SellItemsRequest,
    SplitBillRequest,
    TotalsRequest,
)
from ktv_shared.serializers import error_response, success_response
from ktv_shared.services import transaction_service
from ktv_shared.services.receipt_pdf_service import generate_receipt_pdf
from ktv_shared.services.tax_service import calculate_transaction_total

transactions_bp = Blueprint("transactions", __name__)
logger = get_logger(__name__)


@transactions_bp.get("/transactions")
@finance_required
def list_transactions():
    """
    Query params: from, to (YYYY-MM-DD), room_id, type, payment_method, cashier_id, limit
    """
    rows = transaction_service.list_transactions(
        date_from=request.args.get("from"),
        date_to=request.args.get("to"),
        room_id=request.args.get("room_id", type=int),
        transaction_type=request.args.get("type"),
        payment_method=request.args.get("payment_method"),
        cashier_id=request.args.get("cashier_id", type=int),
        limit=request.args.get("limit", default=200, type=int),
    )
    return jsonify(success_response(rows))


@transactions_bp.get("/transactions/<int:transaction_id>")
@login_required
def get_transaction(transaction_id: int):
    """Receipt data for a transaction, including its items."""
    return jsonify(success_response(transaction_service.get_transaction(transaction_id)))


@transactions_bp.get("/transactions/<int:transaction_id>/receipt.pdf")
@login_required
def receipt_pdf(transaction_id: int):
    pdf_bytes, status, error = generate_receipt_pdf(
        transaction_id, current_app.config["VENUE_NAME"]
    )
    if pdf_bytes is None:
        logger.warning(f"Receipt PDF for transaction {transaction_id} failed: {error}")
        return jsonify(error_response(error)), status
    return send_file(
        BytesIO(pdf_bytes),
        mimetype="application/pdf",
        download_name=f"receipt-{transaction_id}.pdf",
    )


@transactions_bp.get("/rooms/<int:room_id>/checkout")
@cashier_required
def quote_checkout(room_id: int):
    """The bill for an open room session, without closing it."""
    return jsonify(success_response(transaction_service.quote_checkout(room_id)))


@transactions_bp.post("/rooms/<int:room_id>/checkout")
@cashier_required
def checkout_room(room_id: int):
    """Body: {"payment_method": "cash" | "card" | "ewallet" | "transfer"}"""
    data = CheckoutRequest(**(request.get_json(silent=True) or {}))
    tx = transaction_service.checkout_room(room_id, data.payment_method, get_user_id())
    return jsonify(success_response(tx)), HTTPStatus.CREATED


@transactions_bp.post("/transactions/sell")
@cashier_required
def sell_items():
    data = SellItemsRequest(**(request.get_json(silent=True) or {}))
    tx = transaction_service.sell_items(
        [item.model_dump() for item in data.items],
        data.payment_method,
        get_user_id(),
        room_id=data.room_id,
    )
    return jsonify(success_response(tx)), HTTPStatus.CREATED


@transactions_bp.post("/transactions/other")
@cashier_required
def record_other():
    data = RecordTransactionRequest(**(request.get_json(silent=True) or {}))
    tx = transaction_service.record_transaction(
        data.amount,
        data.payment_method,
        get_user_id(),
        description=data.description,
        room_id=data.room_id,
    )
    return jsonify(success_response(tx)), HTTPStatus.CREATED


@transactions_bp.post("/rpc/calculate-transaction-total")
@login_required
def calculate_total():
    """Body: {"subtotal", "tax_rate"?, "service_charge_rate"?}"""
    data = TotalsRequest(**(request.get_json(silent=True) or {}))
    totals = calculate_transaction_total(data.subtotal, data.tax_rate, data.service_charge_rate)
    return jsonify(success_response({k: float(v) for k, v in totals.items()}))


@transactions_bp.post("/rpc/split-bill")
@cashier_required
def split_bill():
    data = SplitBillRequest(**(request.get_json(silent=True) or {}))
    shares = transaction_service.split_bill(data.total, data.parts, data.mode, data.amounts)
    return jsonify(success_response({"total": data.total, "parts": data.parts, "shares": shares}))


@transactions_bp.post("/approvals/<int:approval_id>/apply")
@cashier_required
def apply_approval(approval_id: int):
    applied = transaction_service.apply_approval_to_transaction(approval_id)
    return jsonify(success_response({"applied": applied}))
