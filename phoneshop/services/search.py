import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from phoneshop.core.config import settings
from phoneshop.core.exceptions import StaleResponseError, StoreError
from phoneshop.services.store import AnyOf, Contains, FindQuery

logger = logging.getLogger(__name__)

PRODUCT_SEARCH_SORT = (
    ("brand", "asc"),
    ("model", "asc"),
    ("location_type", "asc"),
    ("location_number", "asc"),
)


def normalize_query(raw: str | None) -> str:
    return (raw or "").strip()


def is_searchable(raw: str | None, min_length: int | None = None) -> bool:
    required = settings.search_min_length if min_length is None else min_length
    return len(normalize_query(raw)) >= required


def compose_product_search(raw: str | None, *, limit: int | None = None) -> FindQuery | None:
    """Brand-or-model lookup; ``None`` means the input is too short to search."""
    if not is_searchable(raw):
        return None
    term = normalize_query(raw)
    return FindQuery(
        filters=(AnyOf((Contains("brand", term), Contains("model", term))),),
        sort=PRODUCT_SEARCH_SORT,
        limit=limit or settings.search_result_limit,
    )


def compose_catalog_search(raw: str | None) -> FindQuery | None:
    term = normalize_query(raw)
    if not term:
        return None
    return FindQuery(
        filters=(
            AnyOf(
                (
                    Contains("product_name", term),
                    Contains("serial_number", term),
                    Contains("color", term),
                )
            ),
        ),
        sort=(("product_name", "asc"), ("serial_number", "asc")),
        limit=settings.catalog_search_limit,
    )


Lookup = Callable[[str], Awaitable[list[Any]]]
ResultCallback = Callable[[str, list[Any]], Awaitable[None]]
ErrorCallback = Callable[[str, str], Awaitable[None]]


class SearchSession:
    """Debounced type-ahead search where only the newest query may publish.

    Each ``submit`` bumps the generation counter. A submission still waiting
    out the quiet period is cancelled outright; one whose lookup is already in
    flight runs to completion and is discarded if its generation is no longer
    current when it resolves.
    """

    def __init__(
        self,
        lookup: Lookup,
        *,
        on_result: ResultCallback | None = None,
        on_error: ErrorCallback | None = None,
        debounce_seconds: float | None = None,
        min_length: int | None = None,
    ) -> None:
        self._lookup = lookup
        self._on_result = on_result
        self._on_error = on_error
        self.debounce_seconds = (
            settings.search_debounce_ms / 1000 if debounce_seconds is None else debounce_seconds
        )
        self.min_length = settings.search_min_length if min_length is None else min_length
        self._generation = 0
        self._debouncing: int | None = None
        self._task: asyncio.Task | None = None
        self.latest_query: str | None = None
        self.latest: list[Any] = []
        self.loading = False
        self.error: str | None = None

    @property
    def generation(self) -> int:
        return self._generation

    def submit(self, raw: str) -> asyncio.Task:
        self._generation += 1
        token = self._generation
        if self._task is not None and self._debouncing is not None and not self._task.done():
            self._task.cancel()
        self._debouncing = token
        self._task = asyncio.create_task(self._run(normalize_query(raw), token))
        return self._task

    async def _run(self, query: str, token: int) -> None:
        if len(query) < self.min_length:
            self._debouncing = None
            results: list[Any] = []
        else:
            await asyncio.sleep(self.debounce_seconds)
            if self._debouncing == token:
                self._debouncing = None

            self.loading = True
            try:
                results = await self._lookup(query)
            except StoreError as exc:
                logger.warning("search for %r failed: %s", query, exc)
                if token == self._generation:
                    await self._fail(query, str(exc))
                return

        try:
            await self._apply(token, query, results)
        except StaleResponseError:
            logger.debug("discarded stale search results for %r (generation %s)", query, token)

    async def _apply(self, token: int, query: str, results: list[Any]) -> None:
        # Only the newest generation owns the pending indicator.
        if token != self._generation:
            raise StaleResponseError(query)
        self.loading = False
        self.error = None
        self.latest_query = query
        self.latest = list(results)
        if self._on_result is not None:
            await self._on_result(query, self.latest)

    async def _fail(self, query: str, message: str) -> None:
        self.loading = False
        self.error = message
        self.latest_query = query
        if self._on_error is not None:
            await self._on_error(query, message)

    async def aclose(self) -> None:
        task = self._task
        self._generation += 1
        self.loading = False
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
