import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.responses import HTMLResponse
from sqlalchemy import func, select

from phoneshop.api.deps import get_store, require_permission
from phoneshop.core.config import settings
from phoneshop.models.inventory import BillProduct
from phoneshop.models.user import User
from phoneshop.schemas.billing import (
    BillLineItemIn,
    BillProductCreate,
    BillProductOut,
    InvoiceDraft,
    InvoiceSummaryOut,
    NewInvoiceOut,
    ScanRequest,
    ScanResultOut,
    ShareLinkOut,
)
from phoneshop.services.invoice import (
    InvoiceSummary,
    compute_invoice,
    format_invoice_date,
    generate_invoice_number,
    summary_to_dict,
    validate_invoice,
)
from phoneshop.services.invoice_render import (
    build_share_url,
    render_invoice_html,
    render_invoice_pdf,
    render_share_message,
)
from phoneshop.services.scanner import bill_item_name, scan_registry
from phoneshop.services.search import compose_catalog_search
from phoneshop.services.store import RecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


def _summarize(draft: InvoiceDraft) -> InvoiceSummary:
    return compute_invoice(
        [item.to_line() for item in draft.items],
        invoice_number=draft.invoice_number or generate_invoice_number(),
        invoice_date=draft.invoice_date or format_invoice_date(),
        customer_name=draft.customer_name,
        customer_phone=draft.customer_phone,
    )


def _find_by_serial(store: RecordStore, serial_number: str) -> BillProduct | None:
    return store.db.scalar(
        select(BillProduct).where(func.lower(BillProduct.serial_number) == serial_number.strip().lower())
    )


@router.get("/invoices/new", response_model=NewInvoiceOut)
def new_invoice(_: User = Depends(require_permission("billing:create"))):
    return NewInvoiceOut(invoice_number=generate_invoice_number(), invoice_date=format_invoice_date())


@router.post("/invoices/summary", response_model=InvoiceSummaryOut)
def invoice_summary(
    draft: InvoiceDraft,
    _: User = Depends(require_permission("billing:create")),
):
    return summary_to_dict(_summarize(draft))


@router.post("/invoices/share", response_model=ShareLinkOut)
def share_invoice(
    draft: InvoiceDraft,
    _: User = Depends(require_permission("billing:create")),
):
    summary = _summarize(draft)
    validate_invoice(summary, require_phone=True)
    return ShareLinkOut(
        url=build_share_url(summary, settings.seller, settings.share_base_url, settings.share_country_code),
        message=render_share_message(summary, settings.seller),
        summary=summary_to_dict(summary),
    )


@router.post("/invoices/print", response_class=HTMLResponse)
def print_invoice(
    draft: InvoiceDraft,
    _: User = Depends(require_permission("billing:create")),
):
    summary = _summarize(draft)
    validate_invoice(summary)
    return HTMLResponse(content=render_invoice_html(summary, settings.seller))


@router.post("/invoices/pdf")
def invoice_pdf(
    draft: InvoiceDraft,
    _: User = Depends(require_permission("billing:create")),
):
    summary = _summarize(draft)
    validate_invoice(summary)
    return Response(
        content=render_invoice_pdf(summary, settings.seller),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{summary.invoice_number}.pdf"'},
    )


@router.post("/scan", response_model=ScanResultOut)
def scan_barcode(
    payload: ScanRequest,
    current_user: User = Depends(require_permission("billing:create")),
    store: RecordStore = Depends(get_store),
):
    decoded = payload.payload.strip()
    if not scan_registry.for_user(current_user.id).accept(decoded):
        return ScanResultOut(status="duplicate", payload=decoded)

    product = _find_by_serial(store, decoded)
    if product is None:
        logger.info("scan %r matched no catalog entry", decoded)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    item = BillLineItemIn(
        name=bill_item_name(product.product_name, product.serial_number, product.color),
        quantity=1,
        unit_price=product.price,
    )
    return ScanResultOut(
        status="added",
        payload=decoded,
        item=item,
        product=BillProductOut.model_validate(product),
    )


@router.post("/scan/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset_scanner(current_user: User = Depends(require_permission("billing:create"))):
    scan_registry.reset(current_user.id)


@router.post("/catalog", response_model=BillProductOut, status_code=status.HTTP_201_CREATED)
def create_catalog_entry(
    payload: BillProductCreate,
    current_user: User = Depends(require_permission("billing:create")),
    store: RecordStore = Depends(get_store),
):
    if _find_by_serial(store, payload.serial_number) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Serial number already exists")
    return store.insert(BillProduct(**payload.model_dump(), created_by_user_id=current_user.id))


@router.get("/catalog/search", response_model=list[BillProductOut])
def search_catalog(
    q: str = Query(default=""),
    _: User = Depends(require_permission("billing:create")),
    store: RecordStore = Depends(get_store),
):
    query = compose_catalog_search(q)
    if query is None:
        return []
    return store.find(BillProduct, query)


@router.get("/catalog/serial/{serial_number}", response_model=BillProductOut)
def get_catalog_by_serial(
    serial_number: str,
    _: User = Depends(require_permission("billing:create")),
    store: RecordStore = Depends(get_store),
):
    product = _find_by_serial(store, serial_number)
    if product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product
