# pricewatch/models/product.py

"""Product data model shared by the loader, reconciler and gateways."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

import pytz


@dataclass(frozen=True)
class DatedPrice:
    """A single historical price observation."""

    date: datetime
    price: Decimal


@dataclass
class Product:
    """A retail product as scraped or as persisted.

    A freshly scraped record carries exactly one ``DatedPrice`` in
    ``price_history``; a stored record carries its full ascending history.
    """

    id: str
    name: str
    current_price: Decimal
    last_updated: datetime
    last_checked: datetime
    source_site: str
    price_history: list[DatedPrice] = field(
        default_factory=lambda: list[DatedPrice]()
    )
    category: list[str] | None = field(
        default_factory=lambda: list[str]()
    )
    size: str | None = None
    unit_price: Decimal | None = None
    unit_name: str | None = None
    original_unit_quantity: int | None = None


def ensure_utc(ts: datetime) -> datetime:
    """Return *ts* as an aware UTC datetime (naive input is taken as UTC)."""
    if ts.tzinfo is None:
        return pytz.utc.localize(ts)
    return ts.astimezone(pytz.utc)
