import pytest


@pytest.fixture
def stocked(add_product):
    return {
        "a1": add_product("Apple", "iPhone 15", "A1", quantity=5),
        "a10": add_product("Samsung", "S24", "a10", quantity=2),
        "a2": add_product("Apple", "iPhone 15", "A2", quantity=1),
        "a_dash": add_product("Vivo", "Y20", "A-3", quantity=4),
        "b2": add_product("Samsung", "S24", "B2", quantity=6),
        "odd": add_product("Nokia", "105", "Counter", quantity=1),
        "rack": add_product("Apple", "iPhone 15", "R9", quantity=9, location_type="rack"),
    }


def test_prefixes_and_bundle_numbers(client, owner_headers, stocked):
    assert client.get("/bundles/prefixes", headers=owner_headers).json() == ["A", "A-", "B"]
    numbers = client.get("/bundles/numbers", params={"prefix": "a"}, headers=owner_headers).json()
    assert numbers == ["A1", "A2", "A10"]
    dashed = client.get("/bundles/numbers", params={"prefix": "A-"}, headers=owner_headers).json()
    assert dashed == ["A-3"]


def test_invalid_prefix(client, owner_headers, stocked):
    assert client.get("/bundles", params={"prefix": "AB"}, headers=owner_headers).status_code == 400


def test_view_without_filter_includes_every_bundle_row(client, owner_headers, stocked):
    view = client.get("/bundles", headers=owner_headers).json()
    assert [group["label"] for group in view["groups"]] == ["A1", "A2", "B2", "A-3", "A10", "COUNTER"]
    assert view["prefix"] is None
    assert view["bundle_numbers"] == []


def test_prefix_and_bundle_filters_intersect(client, owner_headers, stocked):
    view = client.get("/bundles", params={"prefix": "A", "bundle": "a2"}, headers=owner_headers).json()
    assert view["prefix"] == "A"
    assert view["bundle"] == "A2"
    assert view["bundle_numbers"] == ["A1", "A2", "A10"]
    assert [p["id"] for group in view["groups"] for p in group["products"]] == [stocked["a2"]["id"]]


def test_multi_location_ignores_non_bundle_rows(client, owner_headers, stocked):
    report = client.get("/bundles/multi-location", headers=owner_headers).json()
    totals = {(group["brand"], group["model"]): group["total_quantity"] for group in report}
    assert totals == {("Apple", "iPhone 15"): 6, ("Samsung", "S24"): 8}


def test_quantity_change_returns_refreshed_view(client, owner_headers, stocked):
    response = client.put(
        f"/bundles/products/{stocked['a2']['id']}/quantity",
        params={"prefix": "A"},
        json={"quantity": 10},
        headers=owner_headers,
    )
    view = response.json()
    assert response.status_code == 200
    assert view["prefix"] == "A"
    a2 = next(group for group in view["groups"] if group["label"] == "A2")
    assert a2["total_quantity"] == 10
    apple = next(group for group in view["multi_location"] if group["brand"] == "Apple")
    assert apple["total_quantity"] == 15


def test_negative_quantity_is_rejected(client, owner_headers, stocked):
    response = client.put(
        f"/bundles/products/{stocked['a2']['id']}/quantity",
        json={"quantity": -2},
        headers=owner_headers,
    )
    assert response.status_code == 422


def test_rename_breaks_duplicate_group(client, owner_headers, stocked):
    response = client.patch(
        f"/bundles/products/{stocked['b2']['id']}",
        params={"prefix": "B"},
        json={"brand": "Samsung", "model": "S24 Ultra"},
        headers=owner_headers,
    )
    view = response.json()
    assert view["groups"][0]["products"][0]["model"] == "S24 Ultra"
    assert [group["brand"] for group in view["multi_location"]] == ["Apple"]


def test_rename_rejects_blank_fields(client, owner_headers, stocked):
    response = client.patch(
        f"/bundles/products/{stocked['b2']['id']}",
        json={"brand": "Samsung", "model": "   "},
        headers=owner_headers,
    )
    assert response.status_code == 422


def test_delete_keeps_filter(client, owner_headers, stocked):
    response = client.delete(
        f"/bundles/products/{stocked['a10']['id']}",
        params={"prefix": "A", "bundle": "A10"},
        headers=owner_headers,
    )
    view = response.json()
    assert view["prefix"] == "A"
    assert view["groups"] == []
    assert [group["brand"] for group in view["multi_location"]] == ["Apple"]
    assert client.get(f"/inventory/products/{stocked['a10']['id']}", headers=owner_headers).status_code == 404
