import logging
import time
from collections.abc import Callable

from phoneshop.core.config import settings

logger = logging.getLogger(__name__)


class ScanDeduplicator:
    """Drops repeat decodes of the same barcode within a cooldown window.

    A camera left pointed at a label keeps producing the same payload; only
    the first one inside ``cooldown_seconds`` is accepted.
    """

    def __init__(self, cooldown_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.cooldown_seconds = settings.scan_cooldown_seconds if cooldown_seconds is None else cooldown_seconds
        self._clock = clock
        self._last_payload: str | None = None
        self._last_seen: float = 0.0

    def accept(self, payload: str) -> bool:
        now = self._clock()
        if payload == self._last_payload and (now - self._last_seen) < self.cooldown_seconds:
            logger.debug("ignored repeat scan %r", payload)
            return False
        self._last_payload = payload
        self._last_seen = now
        return True

    def reset(self) -> None:
        self._last_payload = None
        self._last_seen = 0.0


class ScanRegistry:
    """One deduplicator per scanning user."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._by_user: dict[int, ScanDeduplicator] = {}

    def for_user(self, user_id: int) -> ScanDeduplicator:
        if user_id not in self._by_user:
            self._by_user[user_id] = ScanDeduplicator(clock=self._clock)
        return self._by_user[user_id]

    def reset(self, user_id: int) -> None:
        self._by_user.pop(user_id, None)


scan_registry = ScanRegistry()


def bill_item_name(product_name: str, serial_number: str, color: str | None) -> str:
    name = f"{product_name} - {serial_number}"
    if color:
        name += f" ({color})"
    return name
