"""
CSV export of transactions for the accountant.
"""

from __future__ import annotations

import csv
from datetime import date, datetime, time
from io import StringIO

from sqlalchemy import select

from ktv_shared.datetime_utils import parse_date, venue_today
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Transaction
from ktv_shared.validation import ValidationError

logger = get_logger(__name__)

TRANSACTION_COLUMNS = [
    "id",
    "created_at",
    "transaction_type",
    "payment_method",
    "room",
    "description",
    "subtotal",
    "discount_amount",
    "service_charge",
    "tax_amount",
    "final_amount",
    "cashier",
]


class ReportExportService:
    """Exports reports as CSV bytes ready for download."""

    @staticmethod
    def export_transactions_to_csv(
        start_date: date | str | None, end_date: date | str | None
    ) -> bytes:
        end = parse_date(end_date, "end_date") or venue_today()
        start = parse_date(start_date, "start_date") or end
        if start > end:
            raise ValidationError("start_date must not be after end_date")

        buffer = StringIO()
        writer = csv.writer(buffer)
        writer.writerow(TRANSACTION_COLUMNS)

        with get_session() as session:
            rows = (
                session.execute(
                    select(Transaction)
                    .where(
                        Transaction.created_at >= datetime.combine(start, time.min),
                        Transaction.created_at <= datetime.combine(end, time.max),
                    )
                    .order_by(Transaction.created_at, Transaction.id)
                )
                .scalars()
                .all()
            )
            for tx in rows:
                writer.writerow(
                    [
                        tx.id,
                        tx.created_at.strftime("%Y-%m-%d %H:%M:%S"),
                        tx.transaction_type,
                        tx.payment_method,
                        tx.room.room_name if tx.room else "",
                        tx.description or "",
                        f"{tx.subtotal or tx.amount:.0f}",
                        f"{tx.discount_amount or 0:.0f}",
                        f"{tx.service_charge or 0:.0f}",
                        f"{tx.tax_amount or 0:.0f}",
                        f"{tx.effective_amount:.0f}",
                        tx.cashier.full_name if tx.cashier else "",
                    ]
                )

        logger.info(f"Exported {len(rows)} transactions from {start} to {end}")
        return buffer.getvalue().encode("utf-8")
