from html import escape
from urllib.parse import quote

from phoneshop.core.config import SellerIdentity
from phoneshop.services.documents import simple_pdf
from phoneshop.services.invoice import (
    GST_PERCENT_LABEL,
    InvoiceSummary,
    format_percent,
    money,
    phone_digits,
)

RUPEE = "₹"


def render_share_message(summary: InvoiceSummary, seller: SellerIdentity) -> str:
    parts = [
        f"\U0001f9fe *TAX INVOICE - {seller.name}*",
        "",
        "\U0001f4cb *Invoice Details:*",
        f"Invoice No: {summary.invoice_number}",
        f"Date: {summary.invoice_date}",
        "",
        "\U0001f464 *Customer Details:*",
        f"Name: {summary.customer_name}",
        f"Phone: {summary.customer_phone}",
        "",
        "\U0001f6cd️ *Items:*",
    ]
    for index, item in enumerate(summary.lines, start=1):
        qty_line = f"   Qty: {item.line.quantity} × {RUPEE}{money(item.line.unit_price)}"
        if item.line.discount_percent > 0:
            qty_line += f" ({format_percent(item.line.discount_percent)} off)"
        qty_line += f" + {GST_PERCENT_LABEL} GST"
        parts.extend(
            [
                f"{index}. {item.line.name}",
                qty_line,
                f"   Amount: {RUPEE}{money(item.line_final)}",
                "",
            ]
        )
    parts.extend(
        [
            "\U0001f4b0 *Bill Summary:*",
            f"Subtotal (Before GST): {RUPEE}{money(summary.subtotal)}",
            f"GST ({GST_PERCENT_LABEL}): {RUPEE}{money(summary.total_gst)}",
            f"*Total Amount: {RUPEE}{money(summary.grand_total)}*",
            "",
            f"\U0001f3ea *{seller.name}*",
            "\U0001f4cd " + ",\n".join(seller.address_lines),
            f"\U0001f4de {seller.phone}",
            f"\U0001f194 GSTIN: {seller.gstin}",
            "",
            "Thank you for your business! \U0001f64f",
        ]
    )
    return "\n".join(parts)


def build_share_url(summary: InvoiceSummary, seller: SellerIdentity, base_url: str, country_code: str) -> str:
    message = quote(render_share_message(summary, seller), safe="")
    return f"{base_url.rstrip('/')}/{country_code}{phone_digits(summary.customer_phone)}?text={message}"


_INVOICE_CSS = """
body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; margin: 0; padding: 20px; color: #333; }
.invoice-container { max-width: 800px; margin: 0 auto; border: 2px solid #2563eb; border-radius: 8px; }
.header { background: #2563eb; color: #fff; text-align: center; padding: 20px; }
.header h1 { margin: 0; font-size: 28px; letter-spacing: 1px; }
.content { padding: 30px; }
.company-details { text-align: center; margin-bottom: 30px; padding: 20px; background: #f8fafc; }
.company-details h2 { margin: 0 0 10px 0; color: #2563eb; }
.bill-details { display: grid; grid-template-columns: 1fr 1fr; gap: 30px; margin-bottom: 30px; }
.bill-section h3 { margin: 0 0 15px 0; color: #2563eb; border-bottom: 2px solid #2563eb; }
.products-table { width: 100%; border-collapse: collapse; margin-bottom: 30px; }
.products-table th { background: #2563eb; color: #fff; padding: 12px 8px; font-size: 12px; }
.products-table td { border: 1px solid #e2e8f0; padding: 10px 8px; text-align: center; font-size: 12px; }
.products-table td.item-name { text-align: left; }
.summary-section { padding: 20px; border: 1px solid #e2e8f0; margin-bottom: 30px; }
.summary-row { display: flex; justify-content: space-between; padding: 8px 0; }
.summary-row.total { font-weight: 700; font-size: 18px; color: #2563eb; border-top: 2px solid #2563eb; }
.footer-section { display: grid; grid-template-columns: 1fr 170px; gap: 30px; align-items: end; }
.stamp-area { width: 150px; height: 80px; border: 2px dashed #94a3b8; display: flex;
  align-items: center; justify-content: center; font-size: 12px; }
.signature-area { text-align: center; margin-top: 15px; font-size: 12px; }
@media print { body { padding: 10px; } .invoice-container { border: 1px solid #000; } }
"""


def render_invoice_html(summary: InvoiceSummary, seller: SellerIdentity) -> str:
    rows = []
    for index, item in enumerate(summary.lines, start=1):
        rows.append(
            "<tr>"
            f"<td>{index}</td>"
            f'<td class="item-name">{escape(item.line.name)}</td>'
            f"<td>{item.line.quantity}</td>"
            f"<td>{RUPEE}{money(item.line.unit_price)}</td>"
            f"<td>{format_percent(item.line.discount_percent)}</td>"
            f"<td>{GST_PERCENT_LABEL}</td>"
            f"<td><strong>{RUPEE}{money(item.line_final)}</strong></td>"
            "</tr>"
        )
    address = "<br>".join(escape(line) for line in seller.address_lines)
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Tax Invoice {escape(summary.invoice_number)}</title>
<style>{_INVOICE_CSS}</style>
</head>
<body>
<div class="invoice-container">
  <div class="header"><h1>TAX INVOICE</h1></div>
  <div class="content">
    <div class="company-details">
      <h2>{escape(seller.name)}</h2>
      <p><strong>{address}</strong></p>
      <p><strong>Phone:</strong> {escape(seller.phone)} | <strong>GSTIN:</strong> {escape(seller.gstin)} | <strong>State:</strong> {escape(seller.state)}</p>
    </div>
    <div class="bill-details">
      <div class="bill-section">
        <h3>Bill To</h3>
        <p><strong>Customer:</strong> {escape(summary.customer_name)}</p>
        <p><strong>Phone:</strong> {escape(summary.customer_phone)}</p>
      </div>
      <div class="bill-section">
        <h3>Invoice Details</h3>
        <p><strong>Invoice No:</strong> {escape(summary.invoice_number)}</p>
        <p><strong>Date:</strong> {escape(summary.invoice_date)}</p>
      </div>
    </div>
    <table class="products-table">
      <thead>
        <tr><th>#</th><th>Item Name</th><th>Qty</th><th>Price/Unit</th><th>Discount</th><th>GST</th><th>Amount</th></tr>
      </thead>
      <tbody>
        {"".join(rows)}
      </tbody>
    </table>
    <div class="summary-section">
      <div class="summary-row"><span>Subtotal (Before GST):</span><span>{RUPEE}{money(summary.subtotal)}</span></div>
      <div class="summary-row"><span>GST ({GST_PERCENT_LABEL}):</span><span>{RUPEE}{money(summary.total_gst)}</span></div>
      <div class="summary-row total"><span>Total Amount:</span><span>{RUPEE}{money(summary.grand_total)}</span></div>
    </div>
    <div class="footer-section">
      <div class="company-footer"><h4>Thank you for your business!</h4><p>For {escape(seller.name)}</p></div>
      <div>
        <div class="stamp-area">Company Stamp</div>
        <div class="signature-area"><p>_______________________</p><p>Authorized Signatory</p></div>
      </div>
    </div>
  </div>
</div>
</body>
</html>
"""


def render_invoice_pdf(summary: InvoiceSummary, seller: SellerIdentity) -> bytes:
    # Helvetica/WinAnsi has no rupee glyph.
    lines = [
        "TAX INVOICE",
        "",
        seller.name,
        *seller.address_lines,
        f"Phone: {seller.phone} | GSTIN: {seller.gstin} | State: {seller.state}",
        "",
        f"Invoice No: {summary.invoice_number}    Date: {summary.invoice_date}",
        f"Bill To: {summary.customer_name}    Phone: {summary.customer_phone}",
        "",
        f"{'#':<3} {'Item Name':<36} {'Qty':>4} {'Price/Unit':>11} {'Disc':>6} {'GST':>4} {'Amount':>12}",
        "-" * 82,
    ]
    for index, item in enumerate(summary.lines, start=1):
        lines.append(
            f"{index:<3} {item.line.name[:36]:<36} {item.line.quantity:>4} "
            f"{money(item.line.unit_price):>11} {format_percent(item.line.discount_percent):>6} "
            f"{GST_PERCENT_LABEL:>4} {money(item.line_final):>12}"
        )
    lines.extend(
        [
            "-" * 82,
            f"Subtotal (Before GST): Rs. {money(summary.subtotal)}",
            f"GST ({GST_PERCENT_LABEL}): Rs. {money(summary.total_gst)}",
            f"Total Amount: Rs. {money(summary.grand_total)}",
            "",
            "",
            "Company Stamp                                   Authorized Signatory",
            f"For {seller.name}",
        ]
    )
    return simple_pdf(lines)
