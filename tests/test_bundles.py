from datetime import datetime

import pytest

from phoneshop.models.inventory import LocationType
from phoneshop.schemas.inventory import ProductOut
from phoneshop.services.bundles import (
    BundleView,
    filter_products,
    find_multi_location_groups,
    group_by_location,
)


def make_product(product_id: int, brand: str, model: str, location: str, quantity: int) -> ProductOut:
    return ProductOut(
        id=product_id,
        brand=brand,
        model=model,
        stock_quantity=quantity,
        location_type=LocationType.BUNDLE,
        location_number=location,
        image_url=None,
        created_by_user_id=None,
        created_at=datetime(2026, 1, 1),
    )


@pytest.fixture
def products():
    return [
        make_product(1, "Apple", "X", "A1", 3),
        make_product(2, "Apple", "X", "B2", 5),
        make_product(3, "Samsung", "S24", "a10", 2),
        make_product(4, "Samsung", "S24", "A-2", 1),
        make_product(5, "Nokia", "3310", "A2", 7),
        make_product(6, "Vivo", "Y20", "Back room", 4),
    ]


class TestDuplicateDetection:
    def test_multi_location_group_totals(self):
        groups = find_multi_location_groups(
            [make_product(1, "Apple", "X", "A1", 3), make_product(2, "Apple", "X", "B2", 5)]
        )
        assert len(groups) == 1
        assert groups[0].total_quantity == 8
        assert groups[0].location_count == 2
        assert groups[0].locations == ["A1", "B2"]

    def test_single_product_is_not_reported(self):
        assert find_multi_location_groups([make_product(1, "Apple", "X", "A1", 3)]) == []


class TestFiltering:
    def test_prefix_without_dash_excludes_dash_form(self, products):
        assert [p.id for p in filter_products(products, "A")] == [1, 3, 5]

    def test_prefix_with_dash(self, products):
        assert [p.id for p in filter_products(products, "A-")] == [4]

    def test_bundle_filter_intersects_with_prefix(self, products):
        assert [p.id for p in filter_products(products, "A", "a10")] == [3]
        assert filter_products(products, "B", "A10") == []

    def test_unparseable_locations_never_match_a_prefix(self, products):
        assert all(p.id != 6 for p in filter_products(products, "B"))

    def test_groups_are_naturally_ordered(self, products):
        labels = [group.label for group in group_by_location(filter_products(products, "A"))]
        assert labels == ["A1", "A2", "A10"]


class TestBundleView:
    def test_filter_then_select_bundle(self, products):
        view = BundleView(products)
        view.apply_filter("a")
        assert [g.label for g in view.groups] == ["A1", "A2", "A10"]
        view.select_bundle("A2")
        assert [p.id for p in view.visible] == [5]

    def test_changing_prefix_clears_bundle(self, products):
        view = BundleView(products, prefix="A", bundle="A2")
        view.apply_filter("B")
        assert view.bundle is None
        assert [p.id for p in view.visible] == [2]

    def test_quantity_patch_updates_aggregates(self, products):
        view = BundleView(products, prefix="A")
        view.apply_quantity(1, 10)
        (apple,) = [g for g in view.multi_location_groups() if g.brand == "Apple"]
        assert apple.total_quantity == 15
        assert view.groups[0].total_quantity == 10

    def test_negative_quantity_patch_is_rejected(self, products):
        view = BundleView(products)
        with pytest.raises(ValueError):
            view.apply_quantity(1, -1)

    def test_rename_regroups_duplicates(self, products):
        view = BundleView(products)
        view.apply_rename(2, "Apple", "XS")
        assert [g.brand for g in view.multi_location_groups()] == ["Samsung"]

    def test_delete_reapplies_filter(self, products):
        view = BundleView(products, prefix="A", bundle="A10")
        view.apply_delete(3)
        assert view.visible == []
        assert view.prefix == "A"
        assert all(p.id != 3 for p in view.products)

    def test_patches_do_not_touch_loaded_snapshots(self, products):
        view = BundleView(products)
        view.apply_quantity(5, 0)
        assert products[4].stock_quantity == 7
