"""Product writes shared by the inventory and bundle routes.

Every quantity change goes through ``change_stock`` so it is recorded as a
``StockAdjustment`` row and announced on the event channel once the store has
committed it.
"""

import logging
from typing import Any

from sqlalchemy import func, select

from phoneshop.core.exceptions import ConflictError, ValidationError
from phoneshop.models.inventory import Product, StockAdjustment
from phoneshop.services.events import (
    PRODUCT_CREATED,
    PRODUCT_DELETED,
    PRODUCT_UPDATED,
    STOCK_CHANGED,
    EventChannel,
    events,
)
from phoneshop.services.store import RecordStore

logger = logging.getLogger(__name__)


def _product_payload(product: Product, actor_user_id: int | None) -> dict[str, Any]:
    return {
        "product_id": product.id,
        "actor_user_id": actor_user_id,
        "brand": product.brand,
        "model": product.model,
        "location_number": product.location_number,
        "stock_quantity": product.stock_quantity,
    }


def find_by_brand_model(store: RecordStore, brand: str, model: str) -> list[Product]:
    statement = (
        select(Product)
        .where(func.lower(Product.brand) == brand.strip().lower())
        .where(func.lower(Product.model) == model.strip().lower())
        .order_by(Product.location_number.asc())
    )
    return list(store.db.scalars(statement).all())


def create_product(
    store: RecordStore,
    values: dict[str, Any],
    actor_user_id: int | None,
    channel: EventChannel = events,
) -> Product:
    product = store.insert(Product(**values, created_by_user_id=actor_user_id))
    logger.info("user %s added %s %s at %s", actor_user_id, product.brand, product.model, product.location_number)
    channel.publish(PRODUCT_CREATED, _product_payload(product, actor_user_id))
    return product


def change_stock(
    store: RecordStore,
    product_id: int,
    quantity_after: int,
    actor_user_id: int | None,
    reason: str | None = None,
    *,
    channel: EventChannel = events,
    values: dict[str, Any] | None = None,
) -> Product:
    if quantity_after < 0:
        raise ValidationError("Stock quantity cannot be negative")
    product = store.get(Product, product_id, for_update=True)
    quantity_before = int(product.stock_quantity)
    if quantity_after == quantity_before and not values:
        store.commit(product)
        return product
    product.stock_quantity = quantity_after
    for name, value in (values or {}).items():
        setattr(product, name, value)
    adjustment = StockAdjustment(
        product_id=product.id,
        adjusted_by_user_id=actor_user_id,
        quantity_before=quantity_before,
        quantity_after=quantity_after,
        quantity_delta=quantity_after - quantity_before,
        reason=reason.strip() if reason else None,
    )
    store.db.add(adjustment)
    store.commit(product)
    logger.info("stock of product %s changed %s -> %s", product.id, quantity_before, quantity_after)
    payload = _product_payload(product, actor_user_id)
    payload["quantity_before"] = quantity_before
    channel.publish(STOCK_CHANGED, payload)
    return product


def set_quantity(
    store: RecordStore,
    product_id: int,
    quantity: int,
    actor_user_id: int | None,
    reason: str | None = None,
) -> Product:
    # Setting the same absolute value twice leaves the same state behind.
    return change_stock(store, product_id, quantity, actor_user_id, reason)


def adjust_quantity(
    store: RecordStore,
    product_id: int,
    delta: int,
    actor_user_id: int | None,
    *,
    expected_quantity: int | None = None,
    reason: str | None = None,
) -> Product:
    if delta == 0:
        raise ValidationError("No adjustment provided")
    product = store.get(Product, product_id, for_update=True)
    current = int(product.stock_quantity)
    if expected_quantity is not None and expected_quantity != current:
        store.db.rollback()
        raise ConflictError(f"Stock changed to {current} since it was last read")
    if current + delta < 0:
        store.db.rollback()
        raise ValidationError("Adjustment would make stock negative")
    return change_stock(store, product_id, current + delta, actor_user_id, reason)


def restock(
    store: RecordStore,
    product_id: int,
    quantity: int,
    actor_user_id: int | None,
    *,
    location_type: Any = None,
    location_number: str | None = None,
    reason: str | None = None,
) -> Product:
    if quantity <= 0:
        raise ValidationError("Restock quantity must be at least 1")
    product = store.get(Product, product_id, for_update=True)
    moved: dict[str, Any] = {}
    if location_type is not None:
        moved["location_type"] = location_type
    if location_number and location_number.strip():
        moved["location_number"] = location_number.strip()
    return change_stock(
        store,
        product_id,
        int(product.stock_quantity) + quantity,
        actor_user_id,
        reason or "restock",
        values=moved,
    )


def update_product(
    store: RecordStore,
    product_id: int,
    values: dict[str, Any],
    actor_user_id: int | None,
    channel: EventChannel = events,
) -> Product:
    if not values:
        raise ValidationError("No changes provided")
    product = store.update(Product, product_id, values)
    channel.publish(PRODUCT_UPDATED, _product_payload(product, actor_user_id))
    return product


def rename_product(
    store: RecordStore,
    product_id: int,
    brand: str,
    model: str,
    actor_user_id: int | None,
) -> Product:
    if not brand.strip() or not model.strip():
        raise ValidationError("Brand and Model cannot be empty")
    return update_product(store, product_id, {"brand": brand.strip(), "model": model.strip()}, actor_user_id)


def delete_product(
    store: RecordStore,
    product_id: int,
    actor_user_id: int | None,
    channel: EventChannel = events,
) -> None:
    product = store.get(Product, product_id)
    payload = _product_payload(product, actor_user_id)
    store.delete(Product, product_id)
    logger.info("user %s deleted product %s", actor_user_id, product_id)
    channel.publish(PRODUCT_DELETED, payload)
