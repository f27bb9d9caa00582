"""
Receipt PDF generation for the cashier.
Renders a paid transaction on 80mm thermal-printer paper.
"""

from __future__ import annotations

import io
from datetime import datetime
from http import HTTPStatus
from typing import Any

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ktv_shared.currency import format_idr
from ktv_shared.db import get_session
from ktv_shared.logging_config import get_logger
from ktv_shared.models import Transaction
from ktv_shared.serializers import serialize_transaction

logger = get_logger(__name__)

RECEIPT_WIDTH = 80 * mm
LABEL_WIDTH = 40 * mm
VALUE_WIDTH = 30 * mm

PAYMENT_LABELS = {
    "cash": "Cash",
    "card": "Card",
    "ewallet": "E-Wallet",
    "transfer": "Bank Transfer",
}


class ReceiptPDFService:
    """Builds receipt PDFs from serialized transactions."""

    def __init__(self, venue_name: str = "KTV"):
        self.venue_name = venue_name
        self.styles = getSampleStyleSheet()
        self._setup_styles()

    def _setup_styles(self):
        self.styles.add(
            ParagraphStyle(
                name="ReceiptHeader",
                parent=self.styles["Heading1"],
                fontSize=14,
                alignment=1,
                spaceAfter=6,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="ReceiptSubheader",
                parent=self.styles["Normal"],
                fontSize=9,
                alignment=1,
                spaceAfter=3,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="ReceiptLine",
                parent=self.styles["Normal"],
                fontSize=9,
            )
        )
        self.styles.add(
            ParagraphStyle(
                name="ReceiptFooter",
                parent=self.styles["Normal"],
                fontSize=8,
                alignment=1,
                textColor=colors.gray,
            )
        )

    def _two_column(self, rows: list[list[str]], font_size: int = 9, bold: bool = False) -> Table:
        table = Table(rows, colWidths=[LABEL_WIDTH, VALUE_WIDTH])
        style = [
            ("FONTSIZE", (0, 0), (-1, -1), font_size),
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("LEFTPADDING", (0, 0), (0, -1), 0),
            ("RIGHTPADDING", (1, 0), (1, -1), 0),
            ("TOPPADDING", (0, 0), (-1, -1), 1),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 1),
        ]
        if bold:
            style += [
                ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
                ("LINEABOVE", (0, 0), (-1, 0), 1, colors.black),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
            ]
        table.setStyle(TableStyle(style))
        return table

    def _separator(self) -> Table:
        separator = Table([["-" * 40]], colWidths=[70 * mm])
        separator.setStyle(
            TableStyle(
                [
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                    ("TEXTCOLOR", (0, 0), (-1, -1), colors.gray),
                ]
            )
        )
        return separator

    def generate_pdf(self, receipt: dict[str, Any]) -> bytes:
        """
        Render a receipt.

        ``receipt`` is a serialized transaction including its items.
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=(RECEIPT_WIDTH, A4[1]),
            leftMargin=5 * mm,
            rightMargin=5 * mm,
            topMargin=8 * mm,
            bottomMargin=8 * mm,
        )

        created_at = receipt.get("created_at")
        printed = (
            datetime.fromisoformat(created_at).strftime("%d/%m/%Y %H:%M")
            if created_at
            else ""
        )

        elements = [
            Paragraph(self.venue_name, self.styles["ReceiptHeader"]),
            Paragraph(printed, self.styles["ReceiptSubheader"]),
            Paragraph(f"<b>Receipt #{receipt['id']}</b>", self.styles["ReceiptSubheader"]),
        ]
        if receipt.get("cashier_name"):
            elements.append(
                Paragraph(f"Cashier: {receipt['cashier_name']}", self.styles["ReceiptSubheader"])
            )
        elements += [Spacer(1, 3 * mm), self._separator(), Spacer(1, 2 * mm)]

        if receipt.get("room_name") and receipt.get("duration_hours"):
            elements.append(Paragraph(f"<b>{receipt['room_name']}</b>", self.styles["ReceiptLine"]))
            hours = receipt["duration_hours"]
            elements.append(
                Paragraph(f"Duration: {hours:g} hour(s)", self.styles["ReceiptLine"])
            )
        elif receipt.get("description"):
            elements.append(Paragraph(receipt["description"], self.styles["ReceiptLine"]))

        lines = [
            [f"{item['quantity']}x {item.get('product_name') or 'Item'}", format_idr(item["subtotal"])]
            for item in receipt.get("items", [])
        ]
        if lines:
            elements.append(Spacer(1, 2 * mm))
            elements.append(self._two_column(lines))

        elements += [Spacer(1, 2 * mm), self._separator(), Spacer(1, 2 * mm)]

        totals = [["Subtotal:", format_idr(receipt.get("subtotal") or receipt.get("amount"))]]
        if receipt.get("discount_amount"):
            totals.append(["Discount:", f"-{format_idr(receipt['discount_amount'])}"])
        if receipt.get("service_charge"):
            totals.append(
                [f"Service ({receipt['service_charge_rate']:g}%):", format_idr(receipt["service_charge"])]
            )
        if receipt.get("tax_rate") is not None:
            totals.append([f"PPN ({receipt['tax_rate']:g}%):", format_idr(receipt.get("tax_amount"))])
        elements.append(self._two_column(totals))

        elements.append(Spacer(1, 2 * mm))
        final = receipt.get("final_amount")
        if final is None:
            final = receipt.get("amount")
        elements.append(self._two_column([["TOTAL:", format_idr(final)]], font_size=11, bold=True))

        method = receipt.get("payment_method")
        elements += [
            Spacer(1, 3 * mm),
            Paragraph(
                f"Paid by: {PAYMENT_LABELS.get(method, method)}", self.styles["ReceiptLine"]
            ),
            Spacer(1, 5 * mm),
            self._separator(),
            Paragraph("Terima kasih atas kunjungan Anda", self.styles["ReceiptFooter"]),
            Paragraph(self.venue_name, self.styles["ReceiptFooter"]),
        ]

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"Generated receipt PDF for transaction {receipt['id']} ({len(pdf_bytes)} bytes)")
        return pdf_bytes


def generate_receipt_pdf(
    transaction_id: int, venue_name: str = "KTV"
) -> tuple[bytes | None, int, str | None]:
    """
    Generate the receipt PDF for a transaction.

    Returns:
        Tuple of (pdf_bytes or None, HTTP status code, error message or None)
    """
    with get_session() as session:
        tx = session.get(Transaction, transaction_id)
        if tx is None:
            return None, HTTPStatus.NOT_FOUND, "Transaction not found"
        receipt = serialize_transaction(tx, include_items=True)

    pdf_bytes = ReceiptPDFService(venue_name).generate_pdf(receipt)
    if not pdf_bytes:
        return None, HTTPStatus.INTERNAL_SERVER_ERROR, "Receipt PDF is empty"
    return pdf_bytes, HTTPStatus.OK, None
