from decimal import Decimal
from urllib.parse import unquote

import pytest

from phoneshop.core.config import SellerIdentity
from phoneshop.services.invoice import BillLine, compute_invoice, money
from phoneshop.services.invoice_render import (
    build_share_url,
    render_invoice_html,
    render_invoice_pdf,
    render_share_message,
)

SELLER = SellerIdentity(
    name="TEST MOBILES",
    address_lines=("Shop 1, Main Road", "Pune-411001"),
    phone="9000000000",
    gstin="27ABCDE1234F1Z5",
    state="Maharashtra",
)


@pytest.fixture
def summary():
    return compute_invoice(
        [
            BillLine(name="Redmi 13C - SN123 (Black)", quantity=1, unit_price=Decimal("8999")),
            BillLine(name="Case <clear>", quantity=2, unit_price=Decimal("199.50"), discount_percent=Decimal("10")),
        ],
        invoice_number="INV4821",
        invoice_date="19/10/2026",
        customer_name="Asha & Co",
        customer_phone="+91 98200-12345",
    )


class TestShareMessage:
    def test_contains_items_and_totals(self, summary):
        message = render_share_message(summary, SELLER)
        assert "TAX INVOICE - TEST MOBILES" in message
        assert "Invoice No: INV4821" in message
        assert "1. Redmi 13C - SN123 (Black)" in message
        assert "Qty: 2 × ₹199.50 (10% off) + 18% GST" in message
        assert f"Subtotal (Before GST): ₹{money(summary.subtotal)}" in message
        assert f"*Total Amount: ₹{money(summary.grand_total)}*" in message
        assert "GSTIN: 27ABCDE1234F1Z5" in message

    def test_no_discount_note_without_discount(self, summary):
        message = render_share_message(summary, SELLER)
        assert "Qty: 1 × ₹8999.00 + 18% GST" in message

    def test_url_carries_escaped_message(self, summary):
        url = build_share_url(summary, SELLER, "https://wa.me/", "91")
        prefix = "https://wa.me/91919820012345?text="
        assert url.startswith(prefix)
        encoded = url[len(prefix):]
        assert " " not in encoded and "\n" not in encoded and "&" not in encoded
        assert unquote(encoded) == render_share_message(summary, SELLER)


class TestPrintableInvoice:
    def test_html_escapes_user_text(self, summary):
        html = render_invoice_html(summary, SELLER)
        assert "Asha &amp; Co" in html
        assert "Case &lt;clear&gt;" in html
        assert "<clear>" not in html

    def test_html_and_message_agree(self, summary):
        html = render_invoice_html(summary, SELLER)
        message = render_share_message(summary, SELLER)
        for figure in (summary.subtotal, summary.total_gst, summary.grand_total):
            assert money(figure) in html
            assert money(figure) in message
        assert "Authorized Signatory" in html

    def test_pdf_has_same_figures(self, summary):
        pdf = render_invoice_pdf(summary, SELLER)
        assert pdf.startswith(b"%PDF-1.4")
        assert pdf.rstrip().endswith(b"%%EOF")
        assert f"Total Amount: Rs. {money(summary.grand_total)}".encode() in pdf
        assert b"INV4821" in pdf

    def test_long_invoice_flows_onto_more_pages(self):
        long_summary = compute_invoice(
            [BillLine(name=f"Accessory {index:02d}", quantity=1, unit_price=Decimal("100")) for index in range(1, 41)],
            invoice_number="INV0040",
            invoice_date="19/10/2026",
            customer_name="Walk-in",
            customer_phone="9820012345",
        )
        pdf = render_invoice_pdf(long_summary, SELLER)

        assert b"/Count 2" in pdf
        assert pdf.count(b"/Type /Page /Parent") == 2
        for index in range(1, 41):
            assert f"Accessory {index:02d}".encode() in pdf
        assert b"Subtotal (Before GST): Rs. 4000.00" in pdf
        assert b"GST (18%): Rs. 720.00" in pdf
        assert b"Total Amount: Rs. 4720.00" in pdf
        assert b"Authorized Signatory" in pdf
