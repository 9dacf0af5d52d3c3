"""Invoice download: authorization, PDF output, copy on disk."""

import io
import uuid
from pathlib import Path

import pytest
from conftest import login

from storefront.db.models import Order
from storefront.services.invoice_service import _InvoiceWriter, render_invoice


@pytest.fixture()
def order(db, user):
    order = Order(
        id=uuid.uuid4(),
        user_email=user.email,
        user_id=user.id,
        products=[
            {
                "product": {
                    "id": str(uuid.uuid4()),
                    "title": "Blue Mug",
                    "price": "9.99",
                    "description": "A sturdy blue mug",
                    "imageUrl": "images/mug.png",
                },
                "quantity": 2,
            }
        ],
    )
    db.add(order)
    db.commit()
    return order


def _invoice_file(settings, order_id) -> Path:
    return Path(settings.storage_root) / "invoices" / f"invoice-{order_id}.pdf"


class TestInvoiceDownload:
    def test_owner_gets_pdf(self, logged_in, order, settings):
        response = logged_in.get(f"/orders/{order.id}")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert (
            response.headers["content-disposition"]
            == f'attachment; filename="invoice-{order.id}.pdf"'
        )
        assert response.content.startswith(b"%PDF")

        stored = _invoice_file(settings, order.id)
        assert stored.read_bytes() == response.content

    def test_other_user_is_refused(self, client, order, other_user, settings):
        login(client, other_user.email)
        response = client.get(f"/orders/{order.id}")
        assert response.status_code == 403
        assert not _invoice_file(settings, order.id).exists()

    def test_unknown_order(self, logged_in):
        response = logged_in.get(f"/orders/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["view"] == "404"

    def test_malformed_order_id(self, logged_in):
        assert logged_in.get("/orders/not-a-uuid").status_code == 404

    def test_requires_login(self, client, order):
        response = client.get(f"/orders/{order.id}")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"


class TestRenderInvoice:
    def test_renders_pdf_bytes(self, order):
        assert render_invoice(order).startswith(b"%PDF")

    def test_long_orders_span_pages(self):
        writer = _InvoiceWriter(io.BytesIO(), "invoice-long")
        for n in range(120):
            writer.line(f"Item {n} - 1 x $1.00")
        assert writer.pdf.getPageNumber() > 1
        writer.finish()
