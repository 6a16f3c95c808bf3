from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from phoneshop.api.deps import get_store, require_permission
from phoneshop.core.config import settings
from phoneshop.db.database import get_db
from phoneshop.models.inventory import LocationType, Product, StockAdjustment
from phoneshop.models.user import User
from phoneshop.schemas.inventory import (
    DashboardSummaryOut,
    LowStockItemOut,
    ProductCreate,
    ProductOut,
    ProductUpdate,
    QuantitySetRequest,
    RestockRequest,
    StockAdjustmentOut,
    StockAdjustRequest,
)
from phoneshop.services import inventory as inventory_ops
from phoneshop.services.locations import normalize_location
from phoneshop.services.store import Eq, FindQuery, RecordStore

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    return inventory_ops.create_product(store, payload.model_dump(), current_user.id)


@router.get("/products", response_model=list[ProductOut])
def list_products(
    location_type: LocationType | None = None,
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    filters = (Eq("location_type", location_type),) if location_type is not None else ()
    return store.find(
        Product,
        FindQuery(filters=filters, sort=(("brand", "asc"), ("model", "asc"), ("location_number", "asc"))),
    )


@router.get("/products/lookup", response_model=list[ProductOut])
def lookup_products(
    brand: str = Query(min_length=1),
    model: str = Query(min_length=1),
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    return inventory_ops.find_by_brand_model(store, brand, model)


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    return store.get(Product, product_id)


@router.post("/products/{product_id}/restock", response_model=ProductOut)
def restock_product(
    product_id: int,
    payload: RestockRequest,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    return inventory_ops.restock(
        store,
        product_id,
        payload.quantity,
        current_user.id,
        location_type=payload.location_type,
        location_number=payload.location_number,
        reason=payload.reason,
    )


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    return inventory_ops.update_product(store, product_id, payload.model_dump(exclude_unset=True), current_user.id)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    inventory_ops.delete_product(store, product_id, current_user.id)


@router.put("/products/{product_id}/quantity", response_model=ProductOut)
def set_product_quantity(
    product_id: int,
    payload: QuantitySetRequest,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    return inventory_ops.set_quantity(store, product_id, payload.quantity, current_user.id, payload.reason)


@router.post("/products/{product_id}/adjust", response_model=ProductOut)
def adjust_product_quantity(
    product_id: int,
    payload: StockAdjustRequest,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    return inventory_ops.adjust_quantity(
        store,
        product_id,
        payload.quantity_delta,
        current_user.id,
        expected_quantity=payload.expected_quantity,
        reason=payload.reason,
    )


@router.get("/stock-adjustments", response_model=list[StockAdjustmentOut])
def list_stock_adjustments(
    product_id: int | None = None,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    _: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    query = select(StockAdjustment).order_by(StockAdjustment.adjusted_at.desc(), StockAdjustment.id.desc())
    if product_id is not None:
        query = query.where(StockAdjustment.product_id == product_id)
    if date_from is not None:
        query = query.where(StockAdjustment.adjusted_at >= date_from)
    if date_to is not None:
        query = query.where(StockAdjustment.adjusted_at <= date_to)
    return db.scalars(query).all()


@router.get("/alerts/low-stock", response_model=list[LowStockItemOut])
def low_stock_alerts(
    threshold: int | None = Query(default=None, ge=0),
    _: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    limit = settings.low_stock_threshold if threshold is None else threshold
    products = db.scalars(
        select(Product)
        .where(Product.stock_quantity <= limit)
        .order_by(Product.stock_quantity.asc(), Product.brand.asc(), Product.model.asc())
    ).all()
    return [
        LowStockItemOut(
            product_id=product.id,
            brand=product.brand,
            model=product.model,
            location_type=product.location_type,
            location_number=product.location_number,
            stock_quantity=product.stock_quantity,
            threshold=limit,
        )
        for product in products
    ]


@router.get("/reports/dashboard", response_model=DashboardSummaryOut)
def dashboard_summary(
    threshold: int | None = Query(default=None, ge=0),
    _: User = Depends(require_permission("inventory:view")),
    db: Session = Depends(get_db),
):
    limit = settings.low_stock_threshold if threshold is None else threshold
    total_products, total_units = db.execute(
        select(func.count(Product.id), func.coalesce(func.sum(Product.stock_quantity), 0))
    ).one()
    low_stock = db.scalar(select(func.count(Product.id)).where(Product.stock_quantity <= limit)) or 0
    brands = db.scalar(select(func.count(func.distinct(func.lower(Product.brand))))) or 0
    locations = {normalize_location(value) for value in db.scalars(select(Product.location_number)).all()}
    return DashboardSummaryOut(
        total_products=int(total_products),
        total_units=int(total_units),
        low_stock_items=int(low_stock),
        low_stock_threshold=limit,
        brands=int(brands),
        locations=len(locations),
    )
