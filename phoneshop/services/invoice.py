"""GST invoice arithmetic.

All figures are kept as exact ``Decimal`` values; rounding to paise happens
only when a figure is rendered (``money``). Every renderer works from the
same ``InvoiceSummary`` so the share message, printable page and PDF cannot
disagree.
"""

import time
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from phoneshop.core.exceptions import ValidationError

GST_RATE = Decimal("0.18")
GST_PERCENT_LABEL = "18%"
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def money(value: Decimal) -> str:
    return str(Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def format_percent(value: Decimal) -> str:
    normalized = Decimal(value).normalize()
    text = format(normalized, "f")
    return f"{text}%"


@dataclass(frozen=True)
class BillLine:
    name: str
    quantity: int
    unit_price: Decimal
    discount_percent: Decimal = Decimal("0")


@dataclass(frozen=True)
class LineTotals:
    line: BillLine
    item_total: Decimal
    discount_amount: Decimal
    after_discount: Decimal
    gst_amount: Decimal
    line_final: Decimal


@dataclass(frozen=True)
class InvoiceSummary:
    invoice_number: str
    invoice_date: str
    customer_name: str
    customer_phone: str
    lines: tuple[LineTotals, ...]
    subtotal: Decimal
    total_gst: Decimal
    grand_total: Decimal


def validate_line_item(line: BillLine) -> None:
    if not line.name or not line.name.strip():
        raise ValidationError("Item name is required")
    if int(line.quantity) <= 0:
        raise ValidationError("Quantity must be at least 1")
    if Decimal(line.unit_price) < 0:
        raise ValidationError("Price cannot be negative")
    discount = Decimal(line.discount_percent)
    if discount < 0 or discount > HUNDRED:
        raise ValidationError("Discount must be between 0 and 100 percent")


def compute_line(line: BillLine) -> LineTotals:
    validate_line_item(line)
    item_total = Decimal(line.quantity) * Decimal(line.unit_price)
    discount_amount = item_total * Decimal(line.discount_percent) / HUNDRED
    after_discount = item_total - discount_amount
    gst_amount = after_discount * GST_RATE
    return LineTotals(
        line=line,
        item_total=item_total,
        discount_amount=discount_amount,
        after_discount=after_discount,
        gst_amount=gst_amount,
        line_final=after_discount + gst_amount,
    )


def compute_invoice(
    lines: list[BillLine],
    *,
    invoice_number: str,
    invoice_date: str,
    customer_name: str = "",
    customer_phone: str = "",
) -> InvoiceSummary:
    computed = tuple(compute_line(line) for line in lines)
    # GST is taken once on the GST-exclusive subtotal, not re-summed per line.
    subtotal = sum((item.after_discount for item in computed), Decimal("0"))
    total_gst = subtotal * GST_RATE
    return InvoiceSummary(
        invoice_number=invoice_number,
        invoice_date=invoice_date,
        customer_name=customer_name.strip(),
        customer_phone=customer_phone.strip(),
        lines=computed,
        subtotal=subtotal,
        total_gst=total_gst,
        grand_total=subtotal + total_gst,
    )


def validate_invoice(summary: InvoiceSummary, *, require_phone: bool = False) -> None:
    if not summary.lines:
        raise ValidationError("Add at least one item to the bill")
    if require_phone and not phone_digits(summary.customer_phone):
        raise ValidationError("Please enter customer phone number")


def phone_digits(phone: str) -> str:
    return "".join(ch for ch in phone if ch.isdigit())


def generate_invoice_number(now_ms: int | None = None) -> str:
    """``INV`` plus the last four digits of a millisecond timestamp.

    Not unique; acceptable for a single till issuing a handful of bills a day.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"INV{str(now_ms)[-4:]}"


def format_invoice_date(value: date | None = None) -> str:
    return (value or date.today()).strftime("%d/%m/%Y")


def summary_to_dict(summary: InvoiceSummary) -> dict[str, Any]:
    return {
        "invoice_number": summary.invoice_number,
        "invoice_date": summary.invoice_date,
        "customer_name": summary.customer_name,
        "customer_phone": summary.customer_phone,
        "lines": [
            {
                "name": item.line.name,
                "quantity": item.line.quantity,
                "unit_price": money(item.line.unit_price),
                "discount_percent": item.line.discount_percent,
                "item_total": money(item.item_total),
                "discount_amount": money(item.discount_amount),
                "after_discount": money(item.after_discount),
                "gst_amount": money(item.gst_amount),
                "line_final": money(item.line_final),
            }
            for item in summary.lines
        ],
        "subtotal": money(summary.subtotal),
        "total_gst": money(summary.total_gst),
        "grand_total": money(summary.grand_total),
    }
