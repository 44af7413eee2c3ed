# pricewatch/services/notifier.py

"""Console and log notifications for upsert outcomes."""

import logging
from decimal import Decimal

from rich.console import Console

logger = logging.getLogger("pricewatch.notifier")

_NAME_WIDTH = 47
_CATEGORY_NAME_WIDTH = 40


def _fit(name: str, width: int) -> str:
    """Truncate or pad *name* to exactly *width* columns."""
    return name[:width].ljust(width)


class UpsertNotifier:
    """Report notable upsert events to the console and the run log."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def _emit(self, line: str, style: str | None = None) -> None:
        self.console.print(
            line, style=style, markup=False, highlight=False,
        )

    def new_product(self, name: str, price: Decimal) -> None:
        """A product id was seen for the first time."""
        logger.info("New product: %s at $%s", name, price)
        self._emit(f"  New Product: {_fit(name, _NAME_WIDTH)} | $ {price}")

    def price_changed(
        self, name: str, old_price: Decimal, new_price: Decimal,
    ) -> None:
        """Red for a price increase, green for a reduction."""
        increased = new_price > old_price
        logger.info(
            "Price %s: %s $%s > $%s",
            "up" if increased else "down",
            name,
            old_price,
            new_price,
        )
        label = "Up   : " if increased else "Down : "
        self._emit(
            f"  Price {label}{_fit(name, _NAME_WIDTH)}"
            f" | ${str(old_price).rjust(4)} > ${new_price}",
            style="red" if increased else "green",
        )

    def categories_changed(
        self,
        name: str,
        old_categories: list[str] | None,
        new_categories: list[str] | None,
    ) -> None:
        """Stored categories were replaced because they were invalid."""
        old = " ".join(old_categories or [])
        new = " ".join(new_categories or [])
        logger.info("Categories changed: %s - %s > %s", name, old, new)
        self._emit(
            f"  Categories Changed: {_fit(name, _CATEGORY_NAME_WIDTH)}"
            f" - {old} > {new}"
        )

    def failed(self, product_id: str, error: Exception) -> None:
        """An upsert was aborted by *error*."""
        logger.error(
            "Upsert failed for %s: %s: %s",
            product_id,
            type(error).__name__,
            error,
            exc_info=error,
        )
        self._emit(
            f"  Upsert Failed: {product_id} | {error}", style="red",
        )
