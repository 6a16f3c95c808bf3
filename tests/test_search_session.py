import asyncio

import pytest

from phoneshop.core.exceptions import StoreError
from phoneshop.services.search import SearchSession, compose_catalog_search, compose_product_search
from phoneshop.services.store import AnyOf, Contains


class FakeLookup:
    """Lookup whose responses are released by the test, in any order."""

    def __init__(self):
        self.calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}

    def gate(self, query: str) -> asyncio.Event:
        return self.gates.setdefault(query, asyncio.Event())

    async def __call__(self, query: str) -> list[str]:
        self.calls.append(query)
        await self.gate(query).wait()
        return [f"{query}-result"]


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestComposeSearch:
    def test_short_input_skips_the_store(self):
        assert compose_product_search("i") is None
        assert compose_product_search("  i  ") is None

    def test_brand_or_model_contains(self):
        query = compose_product_search(" iph ")
        assert query.filters == (AnyOf((Contains("brand", "iph"), Contains("model", "iph"))),)
        assert [name for name, _ in query.sort] == ["brand", "model", "location_type", "location_number"]
        assert query.limit == 50

    def test_catalog_search_spans_name_serial_and_color(self):
        query = compose_catalog_search("blk")
        fields = [condition.field for condition in query.filters[0].conditions]
        assert fields == ["product_name", "serial_number", "color"]
        assert query.limit == 10
        assert compose_catalog_search("   ") is None


class TestSearchSession:
    @pytest.mark.anyio
    async def test_late_response_never_overwrites_newer_results(self):
        lookup = FakeLookup()
        applied: list[tuple[str, list[str]]] = []

        async def on_result(query, results):
            applied.append((query, results))

        session = SearchSession(lookup, on_result=on_result, debounce_seconds=0)
        first = session.submit("ip")
        await settle()
        assert lookup.calls == ["ip"]

        second = session.submit("iph")
        lookup.gate("iph").set()
        await second
        lookup.gate("ip").set()
        await first

        assert applied == [("iph", ["iph-result"])]
        assert session.latest_query == "iph"
        assert session.latest == ["iph-result"]
        assert session.loading is False

    @pytest.mark.anyio
    async def test_debounce_collapses_rapid_keystrokes(self):
        lookup = FakeLookup()
        for query in ("ip", "iph", "ipho"):
            lookup.gate(query).set()
        session = SearchSession(lookup, debounce_seconds=0.05)

        session.submit("ip")
        session.submit("iph")
        last = session.submit("ipho")
        await last

        assert lookup.calls == ["ipho"]
        assert session.latest == ["ipho-result"]

    @pytest.mark.anyio
    async def test_short_query_clears_results_without_lookup(self):
        lookup = FakeLookup()
        lookup.gate("sam").set()
        session = SearchSession(lookup, debounce_seconds=0)

        await session.submit("sam")
        assert session.latest == ["sam-result"]

        await session.submit("s")
        assert session.latest == []
        assert lookup.calls == ["sam"]

    @pytest.mark.anyio
    async def test_aclose_cancels_pending_lookup(self):
        lookup = FakeLookup()
        session = SearchSession(lookup, debounce_seconds=10)
        task = session.submit("nokia")
        await session.aclose()
        assert task.cancelled()
        assert lookup.calls == []

    @pytest.mark.anyio
    async def test_short_query_clears_loading_left_by_superseded_lookup(self):
        lookup = FakeLookup()
        session = SearchSession(lookup, debounce_seconds=0)
        first = session.submit("iphone")
        await settle()
        assert session.loading is True

        await session.submit("i")
        assert session.loading is False

        lookup.gate("iphone").set()
        await first
        assert session.latest == []
        assert session.loading is False

    @pytest.mark.anyio
    async def test_store_failure_is_reported_not_raised(self):
        async def failing_lookup(query):
            raise StoreError("Failed to load products")

        errors: list[tuple[str, str]] = []

        async def on_error(query, message):
            errors.append((query, message))

        session = SearchSession(failing_lookup, on_error=on_error, debounce_seconds=0)
        await session.submit("nokia")

        assert errors == [("nokia", "Failed to load products")]
        assert session.error == "Failed to load products"
        assert session.loading is False

    @pytest.mark.anyio
    async def test_stale_failure_stays_silent(self):
        gate = asyncio.Event()

        async def lookup(query):
            if query == "nok":
                await gate.wait()
                raise StoreError("timed out")
            return [f"{query}-result"]

        errors: list[tuple[str, str]] = []

        async def on_error(query, message):
            errors.append((query, message))

        session = SearchSession(lookup, on_error=on_error, debounce_seconds=0)
        first = session.submit("nok")
        await settle()
        await session.submit("nokia")
        gate.set()
        await first

        assert errors == []
        assert session.error is None
        assert session.latest == ["nokia-result"]
