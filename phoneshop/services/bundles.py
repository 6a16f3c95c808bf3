from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from phoneshop.services.locations import (
    key_matches_prefix,
    natural_sort_key,
    normalize_location,
    normalize_prefix_filter,
    try_parse_location,
)


@dataclass
class LocationGroup:
    label: str
    products: list[Any] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        return sum(int(p.stock_quantity) for p in self.products)


@dataclass
class DuplicateGroup:
    brand: str
    model: str
    products: list[Any] = field(default_factory=list)

    @property
    def total_quantity(self) -> int:
        # Summed on access so quantity patches to members are always reflected.
        return sum(int(p.stock_quantity) for p in self.products)

    @property
    def location_count(self) -> int:
        return len(self.products)

    @property
    def locations(self) -> list[str]:
        return [normalize_location(p.location_number) for p in self.products]


def matches_prefix(product: Any, prefix: str) -> bool:
    return key_matches_prefix(try_parse_location(product.location_number), prefix)


def filter_products(products: Iterable[Any], prefix: str | None = None, bundle: str | None = None) -> list[Any]:
    filtered = list(products)
    if prefix:
        filtered = [p for p in filtered if matches_prefix(p, prefix)]
    if bundle:
        wanted = normalize_location(bundle)
        filtered = [p for p in filtered if normalize_location(p.location_number) == wanted]
    return filtered


def group_by_location(products: Iterable[Any]) -> list[LocationGroup]:
    grouped: dict[str, LocationGroup] = {}
    for product in products:
        label = normalize_location(product.location_number)
        grouped.setdefault(label, LocationGroup(label=label)).products.append(product)
    return [grouped[label] for label in sorted(grouped, key=natural_sort_key)]


def find_multi_location_groups(products: Iterable[Any]) -> list[DuplicateGroup]:
    groups: dict[tuple[str, str], DuplicateGroup] = {}
    for product in products:
        key = (product.brand, product.model)
        if key not in groups:
            groups[key] = DuplicateGroup(brand=product.brand, model=product.model)
        groups[key].products.append(product)
    return [group for group in groups.values() if len(group.products) > 1]


class BundleView:
    """Loaded bundle products plus the active prefix/bundle filter.

    Callers patch the view only after the store has confirmed a write; every
    patch re-runs filter, grouping and ordering against the local copy.
    """

    def __init__(self, products: Sequence[Any], prefix: str | None = None, bundle: str | None = None) -> None:
        self._products = list(products)
        self.prefix = normalize_prefix_filter(prefix)
        self.bundle = normalize_location(bundle) or None
        self.visible: list[Any] = []
        self.groups: list[LocationGroup] = []
        self._refresh()

    @property
    def products(self) -> list[Any]:
        return list(self._products)

    def _refresh(self) -> None:
        self.visible = filter_products(self._products, self.prefix, self.bundle)
        self.groups = group_by_location(self.visible)

    def apply_filter(self, prefix: str | None) -> None:
        self.prefix = normalize_prefix_filter(prefix)
        self.bundle = None
        self._refresh()

    def select_bundle(self, bundle: str | None) -> None:
        self.bundle = normalize_location(bundle) or None
        self._refresh()

    def _replace(self, product_id: Any, updates: dict[str, Any]) -> None:
        patched = []
        for product in self._products:
            if product.id == product_id:
                product = product.model_copy(update=updates)
            patched.append(product)
        self._products = patched
        self._refresh()

    def apply_quantity(self, product_id: Any, quantity: int) -> None:
        if quantity < 0:
            raise ValueError("Stock quantity cannot be negative")
        self._replace(product_id, {"stock_quantity": quantity})

    def apply_rename(self, product_id: Any, brand: str, model: str) -> None:
        self._replace(product_id, {"brand": brand, "model": model})

    def apply_delete(self, product_id: Any) -> None:
        self._products = [p for p in self._products if p.id != product_id]
        self._refresh()

    def multi_location_groups(self) -> list[DuplicateGroup]:
        return find_multi_location_groups(self._products)
