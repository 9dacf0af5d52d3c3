"""PDF invoices for orders."""

from __future__ import annotations

import io
import os
import uuid
from decimal import Decimal
from pathlib import Path

from reportlab.lib.pagesizes import LETTER
from reportlab.pdfgen import canvas
from sqlalchemy.orm import Session

from storefront.core.exceptions import ForbiddenError, NotFoundError
from storefront.db.models.order import Order
from storefront.services.checkout_service import order_total
from storefront.services.storage_service import invoice_path

MARGIN = 72
SEPARATOR = "-" * 38


def get_invoice_order(db: Session, order_id, user_id: uuid.UUID) -> Order:
    try:
        oid = uuid.UUID(str(order_id))
    except ValueError:
        raise NotFoundError("No order found.")
    order = db.get(Order, oid)
    if not order:
        raise NotFoundError("No order found.")
    if order.user_id != user_id:
        raise ForbiddenError("Unauthorized")
    return order


def _money(amount: Decimal) -> str:
    return f"${Decimal(amount):.2f}"


class _InvoiceWriter:
    """Writes lines top to bottom, starting a new page when the current one is full."""

    def __init__(self, buffer: io.BytesIO, title: str):
        self.pdf = canvas.Canvas(buffer, pagesize=LETTER)
        self.pdf.setTitle(title)
        self.width, self.height = LETTER
        self.y = self.height - MARGIN

    def line(self, text: str, size: int = 14, underline: bool = False) -> None:
        leading = size * 1.4
        if self.y - leading < MARGIN:
            self.pdf.showPage()
            self.y = self.height - MARGIN
        self.y -= leading
        self.pdf.setFont("Helvetica", size)
        self.pdf.drawString(MARGIN, self.y, text)
        if underline:
            text_width = self.pdf.stringWidth(text, "Helvetica", size)
            self.pdf.line(MARGIN, self.y - 2, MARGIN + text_width, self.y - 2)

    def finish(self) -> None:
        self.pdf.save()


def render_invoice(order: Order) -> bytes:
    buffer = io.BytesIO()
    writer = _InvoiceWriter(buffer, f"invoice-{order.id}")
    writer.line("Invoice", size=26, underline=True)
    writer.line(SEPARATOR)
    for entry in order.products:
        product = entry["product"]
        writer.line(f"{product['title']} - {entry['quantity']} x {_money(product['price'])}")
    writer.line(SEPARATOR)
    writer.line(f"Total: {_money(order_total(order))}", size=20)
    writer.finish()
    return buffer.getvalue()


def write_invoice(order: Order, storage_root: str) -> tuple[Path, bytes]:
    """Render the invoice and keep a copy under <storage_root>/invoices."""
    data = render_invoice(order)
    path = invoice_path(storage_root, order.id)
    os.makedirs(path.parent, exist_ok=True)
    path.write_bytes(data)
    return path, data
