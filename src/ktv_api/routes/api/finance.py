"""
Finance API - expenses, dashboards and report exports.
"""

from __future__ import annotations

from http import HTTPStatus
from io import BytesIO

from flask import Blueprint, jsonify, request, send_file

from ktv_api.decorators import finance_required, management_required
from ktv_shared.datetime_utils import venue_today
from ktv_shared.jwt_middleware import get_user_id
from ktv_shared.logging_config import get_logger
from ktv_shared.schemas import ExpenseRequest, ExpenseUpdateRequest
from ktv_shared.serializers import success_response
from ktv_shared.services import analytics_service, expense_service
from ktv_shared.services.report_export_service import ReportExportService

finance_bp = Blueprint("finance", __name__)
logger = get_logger(__name__)


# ==================== EXPENSES ====================


@finance_bp.get("/expenses")
@finance_required
def list_expenses():
    expenses = expense_service.list_expenses(
        date_from=request.args.get("from"), date_to=request.args.get("to")
    )
    return jsonify(success_response(expenses))


@finance_bp.post("/expenses")
@finance_required
def create_expense():
    data = ExpenseRequest(**(request.get_json(silent=True) or {}))
    expense = expense_service.create_expense(data.model_dump(), recorded_by=get_user_id())
    return jsonify(success_response(expense)), HTTPStatus.CREATED


@finance_bp.put("/expenses/<int:expense_id>")
@finance_required
def update_expense(expense_id: int):
    data = ExpenseUpdateRequest(**(request.get_json(silent=True) or {}))
    return jsonify(
        success_response(expense_service.update_expense(expense_id, data.model_dump(exclude_unset=True)))
    )


@finance_bp.delete("/expenses/<int:expense_id>")
@finance_required
def delete_expense(expense_id: int):
    expense_service.delete_expense(expense_id)
    return jsonify(success_response({"id": expense_id}))


# ==================== DASHBOARDS ====================


@finance_bp.get("/analytics/daily-revenue")
@finance_required
def daily_revenue():
    """Query params: date (YYYY-MM-DD, default today)"""
    return jsonify(success_response(analytics_service.daily_revenue(request.args.get("date"))))


@finance_bp.get("/analytics/revenue-by-day")
@finance_required
def revenue_by_day():
    days = request.args.get("days", default=7, type=int)
    return jsonify(success_response(analytics_service.revenue_by_day(days=max(1, min(days, 90)))))


@finance_bp.get("/analytics/best-sellers")
@finance_required
def best_sellers():
    products = analytics_service.best_sellers(
        limit=request.args.get("limit", default=10, type=int),
        date_from=request.args.get("from"),
    )
    return jsonify(success_response(products))


@finance_bp.get("/analytics/financial-summary")
@finance_required
def financial_summary():
    summary = analytics_service.financial_summary(
        date_from=request.args.get("from"), date_to=request.args.get("to")
    )
    return jsonify(success_response(summary))


@finance_bp.get("/analytics/overview")
@management_required
def overview():
    return jsonify(success_response(analytics_service.manager_overview()))


@finance_bp.get("/reports/transactions.csv")
@finance_required
def export_transactions():
    """Query params: start_date, end_date (YYYY-MM-DD, default today)"""
    start_date = request.args.get("start_date")
    end_date = request.args.get("end_date")
    content = ReportExportService.export_transactions_to_csv(start_date, end_date)
    label = end_date or venue_today().isoformat()
    logger.info(f"Exported transactions CSV ({len(content)} bytes) up to {label}")
    return send_file(
        BytesIO(content),
        mimetype="text/csv",
        as_attachment=True,
        download_name=f"transactions_{start_date or label}_{label}.csv",
    )
