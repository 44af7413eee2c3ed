# pricewatch/storage/scrape_loader.py

"""Read scraped product records from JSON result files."""

import json
import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, cast

from pricewatch.config.settings import Settings
from pricewatch.models.product import DatedPrice, Product, ensure_utc

logger = logging.getLogger("pricewatch.loader")


class ScrapeFileError(Exception):
    """A scrape result file could not be read as a list of products."""


def _optional_decimal(value: object) -> Decimal | None:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def _timestamp(value: object) -> datetime:
    return ensure_utc(datetime.fromisoformat(str(value)))


def product_from_dict(row: dict[str, Any]) -> Product:
    """Build a :class:`Product` from one scraped JSON object.

    Keys follow the scraper output (``currentPrice``, ``lastUpdated``,
    ``priceHistory`` ...).  ``lastChecked`` defaults to ``lastUpdated``
    and a missing ``priceHistory`` becomes a single sample at the
    current price.  Raises ``KeyError``/``ValueError`` on bad input.
    """
    current_price = Decimal(str(row["currentPrice"]))
    last_updated = _timestamp(row["lastUpdated"])
    last_checked = (
        _timestamp(row["lastChecked"])
        if row.get("lastChecked")
        else last_updated
    )

    raw_history = row.get("priceHistory")
    if raw_history:
        history = [
            DatedPrice(
                date=_timestamp(h["date"]),
                price=Decimal(str(h["price"])),
            )
            for h in raw_history
        ]
    else:
        history = [DatedPrice(date=last_updated, price=current_price)]

    raw_category = row.get("category")
    quantity = row.get("originalUnitQuantity")
    return Product(
        id=str(row["id"]),
        name=str(row["name"]),
        size=row.get("size") or None,
        current_price=current_price,
        last_updated=last_updated,
        last_checked=last_checked,
        price_history=history,
        source_site=str(
            row.get("sourceSite") or Settings.DEFAULT_SOURCE_SITE
        ),
        category=(
            [str(c) for c in raw_category]
            if raw_category is not None
            else []
        ),
        unit_price=_optional_decimal(row.get("unitPrice")),
        unit_name=row.get("unitName") or None,
        original_unit_quantity=(
            int(quantity) if quantity is not None else None
        ),
    )


def load_scraped_products(filepath: Path) -> list[Product]:
    """Load every parseable product from a JSON result file.

    Raises :class:`ScrapeFileError` when the file is unreadable or is
    not a JSON list.  Individual malformed entries are skipped.
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        msg = f"Failed to read {filepath}: {exc}"
        raise ScrapeFileError(msg) from exc

    if not isinstance(data, list):
        msg = f"Expected a JSON list of products in {filepath}"
        raise ScrapeFileError(msg)

    items: list[object] = cast(list[object], data)
    products: list[Product] = []
    skipped = 0
    for index, row in enumerate(items):
        if not isinstance(row, dict):
            skipped += 1
            continue
        try:
            products.append(product_from_dict(cast(dict[str, Any], row)))
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            logger.warning(
                "Skipping entry %d in %s: %r", index, filepath.name, exc,
            )
            skipped += 1

    logger.info(
        "Loaded %d products from %s (%d skipped)",
        len(products),
        filepath.name,
        skipped,
    )
    return products
