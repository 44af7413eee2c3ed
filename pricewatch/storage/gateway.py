# pricewatch/storage/gateway.py

"""Abstract persistence gateway used by the upsert orchestrator."""

from abc import ABC, abstractmethod

from pricewatch.models.product import DatedPrice, Product


class GatewayError(Exception):
    """Base class for persistence failures."""


class LookupFailure(GatewayError):
    """Reading a product, its categories or its history failed."""


class WriteFailure(GatewayError):
    """Inserting or updating any product rows failed."""


class ProductGateway(ABC):
    """Storage capabilities the upsert pipeline relies on.

    Implementations raise :class:`LookupFailure` from the read methods
    and :class:`WriteFailure` from the write methods.
    """

    @abstractmethod
    def lookup(self, product_id: str) -> Product | None:
        """Return the base row for *product_id*, or ``None`` if unseen.

        The returned product has empty ``category`` and
        ``price_history``; load those separately.
        """

    @abstractmethod
    def load_categories(self, product_id: str) -> list[str]:
        """Return every category label stored for *product_id*."""

    @abstractmethod
    def load_price_history(self, product_id: str) -> list[DatedPrice]:
        """Return the stored price history, oldest first."""

    @abstractmethod
    def insert(self, product: Product) -> None:
        """Write base, category and price-history rows for a new product."""

    @abstractmethod
    def update_base_fields(self, product: Product) -> None:
        """Rewrite every mutable base column of an existing product."""

    @abstractmethod
    def append_price_history(
        self, product_id: str, dated_price: DatedPrice,
    ) -> None:
        """Add one price observation to a product's history."""

    @abstractmethod
    def replace_categories(
        self, product_id: str, categories: list[str],
    ) -> None:
        """Delete all category rows for *product_id* then insert *categories*."""

    def close(self) -> None:
        """Release any held resources."""
