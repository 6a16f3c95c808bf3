"""Domain errors raised by the services layer.

Routes translate the user-facing ones into HTTP responses through the
handlers registered in ``phoneshop.main``. ``StaleResponseError`` and
``UnparseableLocationError`` are internal and never leave the service layer.
"""


class ShopError(Exception):
    """Base class for every domain error."""


class ValidationError(ShopError):
    """Required fields missing or out of range; nothing was written."""


class StoreError(ShopError):
    """The record store rejected or failed an operation. Safe to retry."""


class NotFoundError(ShopError):
    """A lookup matched no rows."""


class StaleResponseError(ShopError):
    """A lookup finished after a newer one was issued."""


class UnparseableLocationError(ShopError):
    """A location string does not follow the letter/dash/digits scheme."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"Unparseable location: {raw!r}")
        self.raw = raw


class ConflictError(StoreError):
    """The write violated a uniqueness or integrity constraint."""
