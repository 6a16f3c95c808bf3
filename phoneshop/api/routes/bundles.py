from fastapi import APIRouter, Depends, HTTPException, Query, status

from phoneshop.api.deps import get_store, require_permission
from phoneshop.models.inventory import LocationType, Product
from phoneshop.models.user import User
from phoneshop.schemas.inventory import (
    BundleRenameRequest,
    BundleViewOut,
    DuplicateGroupOut,
    LocationGroupOut,
    ProductOut,
    QuantitySetRequest,
)
from phoneshop.services import inventory as inventory_ops
from phoneshop.services.bundles import BundleView, DuplicateGroup
from phoneshop.services.locations import bundle_numbers, enumerate_filter_prefixes, normalize_prefix_filter
from phoneshop.services.store import Eq, FindQuery, RecordStore

router = APIRouter(prefix="/bundles", tags=["Bundles"])

BUNDLE_QUERY = FindQuery(
    filters=(Eq("location_type", LocationType.BUNDLE),),
    sort=(("location_number", "asc"), ("brand", "asc")),
)


def _load_products(store: RecordStore) -> list[ProductOut]:
    return [ProductOut.model_validate(product) for product in store.find(Product, BUNDLE_QUERY)]


def _prefix_or_400(prefix: str | None) -> str | None:
    try:
        return normalize_prefix_filter(prefix)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _load_view(store: RecordStore, prefix: str | None, bundle: str | None) -> BundleView:
    return BundleView(_load_products(store), prefix=_prefix_or_400(prefix), bundle=bundle)


def _duplicate_out(group: DuplicateGroup) -> DuplicateGroupOut:
    return DuplicateGroupOut(
        brand=group.brand,
        model=group.model,
        total_quantity=group.total_quantity,
        location_count=group.location_count,
        locations=group.locations,
        products=group.products,
    )


def _view_out(view: BundleView) -> BundleViewOut:
    locations = [product.location_number for product in view.products]
    return BundleViewOut(
        prefix=view.prefix,
        bundle=view.bundle,
        prefixes=enumerate_filter_prefixes(locations),
        bundle_numbers=bundle_numbers(locations, view.prefix) if view.prefix else [],
        groups=[
            LocationGroupOut(label=group.label, total_quantity=group.total_quantity, products=group.products)
            for group in view.groups
        ],
        multi_location=[_duplicate_out(group) for group in view.multi_location_groups()],
    )


@router.get("/prefixes", response_model=list[str])
def list_prefixes(
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    return enumerate_filter_prefixes(product.location_number for product in _load_products(store))


@router.get("/numbers", response_model=list[str])
def list_bundle_numbers(
    prefix: str = Query(min_length=1, max_length=2),
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    wanted = _prefix_or_400(prefix)
    if wanted is None:
        return []
    return bundle_numbers((product.location_number for product in _load_products(store)), wanted)


@router.get("", response_model=BundleViewOut)
def bundle_view(
    prefix: str | None = None,
    bundle: str | None = None,
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    return _view_out(_load_view(store, prefix, bundle))


@router.get("/multi-location", response_model=list[DuplicateGroupOut])
def multi_location_products(
    _: User = Depends(require_permission("inventory:view")),
    store: RecordStore = Depends(get_store),
):
    view = BundleView(_load_products(store))
    return [_duplicate_out(group) for group in view.multi_location_groups()]


@router.put("/products/{product_id}/quantity", response_model=BundleViewOut)
def set_bundle_quantity(
    product_id: int,
    payload: QuantitySetRequest,
    prefix: str | None = None,
    bundle: str | None = None,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    view = _load_view(store, prefix, bundle)
    product = inventory_ops.set_quantity(store, product_id, payload.quantity, current_user.id, payload.reason)
    view.apply_quantity(product.id, product.stock_quantity)
    return _view_out(view)


@router.patch("/products/{product_id}", response_model=BundleViewOut)
def rename_bundle_product(
    product_id: int,
    payload: BundleRenameRequest,
    prefix: str | None = None,
    bundle: str | None = None,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    view = _load_view(store, prefix, bundle)
    product = inventory_ops.rename_product(store, product_id, payload.brand, payload.model, current_user.id)
    view.apply_rename(product.id, product.brand, product.model)
    return _view_out(view)


@router.delete("/products/{product_id}", response_model=BundleViewOut)
def delete_bundle_product(
    product_id: int,
    prefix: str | None = None,
    bundle: str | None = None,
    current_user: User = Depends(require_permission("inventory:manage")),
    store: RecordStore = Depends(get_store),
):
    view = _load_view(store, prefix, bundle)
    inventory_ops.delete_product(store, product_id, current_user.id)
    view.apply_delete(product_id)
    return _view_out(view)
