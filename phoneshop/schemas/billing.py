from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from phoneshop.services.invoice import BillLine


class BillLineItemIn(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Item name is required")
        return stripped

    def to_line(self) -> BillLine:
        return BillLine(
            name=self.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount_percent=self.discount_percent,
        )


class InvoiceDraft(BaseModel):
    customer_name: str = Field(default="", max_length=160)
    customer_phone: str = Field(default="", max_length=32)
    invoice_number: str | None = Field(default=None, max_length=32)
    invoice_date: str | None = Field(default=None, max_length=32)
    items: list[BillLineItemIn] = Field(default_factory=list)


class InvoiceLineOut(BaseModel):
    name: str
    quantity: int
    unit_price: str
    discount_percent: Decimal
    item_total: str
    discount_amount: str
    after_discount: str
    gst_amount: str
    line_final: str


class InvoiceSummaryOut(BaseModel):
    invoice_number: str
    invoice_date: str
    customer_name: str
    customer_phone: str
    lines: list[InvoiceLineOut]
    subtotal: str
    total_gst: str
    grand_total: str


class NewInvoiceOut(BaseModel):
    invoice_number: str
    invoice_date: str


class ShareLinkOut(BaseModel):
    url: str
    message: str
    summary: InvoiceSummaryOut


class BillProductCreate(BaseModel):
    product_name: str = Field(min_length=1, max_length=160)
    serial_number: str = Field(min_length=1, max_length=128)
    color: str | None = Field(default=None, max_length=60)
    quantity: int = Field(default=1, gt=0)
    price: Decimal = Field(default=Decimal("0"), ge=0)

    @field_validator("product_name", "serial_number")
    @classmethod
    def strip_required(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class BillProductOut(BaseModel):
    id: int
    product_name: str
    serial_number: str
    color: str | None
    quantity: int
    price: Decimal
    created_by_user_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ScanRequest(BaseModel):
    payload: str = Field(min_length=1, max_length=256)


class ScanResultOut(BaseModel):
    status: Literal["added", "duplicate"]
    payload: str
    item: BillLineItemIn | None = None
    product: BillProductOut | None = None
