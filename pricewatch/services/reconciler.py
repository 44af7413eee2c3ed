# pricewatch/services/reconciler.py

"""Decide how a freshly scraped product differs from its stored record."""

import json
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytz

from pricewatch.config.settings import Settings
from pricewatch.models.product import DatedPrice, Product, ensure_utc
from pricewatch.models.upsert_result import (
    ChangeReason,
    ReconcileResult,
    UpsertResponse,
)


def load_category_vocabulary(
    path: Path | None = None,
) -> frozenset[str]:
    """Read the recognised category labels from a JSON list."""
    vocab_path = path or Settings.CATEGORIES_PATH
    with open(vocab_path, encoding="utf-8") as f:
        data: object = json.load(f)
    if not isinstance(data, list):
        msg = f"Category vocabulary must be a JSON list: {vocab_path}"
        raise ValueError(msg)
    return frozenset(str(label) for label in data)


def _calendar_day(ts: datetime, tz: pytz.BaseTzInfo) -> date:
    """Truncate *ts* to a calendar day in *tz* (naive means UTC)."""
    return ensure_utc(ts).astimezone(tz).date()


def _joined(categories: list[str] | None) -> str:
    """Order-sensitive comparison key for a category list."""
    return " ".join(categories or [])


class ProductReconciler:
    """Classify a scraped product against its stored counterpart.

    The reconciler is stateless and performs no I/O; the caller decides
    which writes to issue from the returned :class:`ReconcileResult`.
    Neither input product is mutated.
    """

    def __init__(
        self,
        valid_categories: Iterable[str],
        price_threshold: Decimal = Settings.PRICE_CHANGE_THRESHOLD,
        day_boundary_tz: pytz.BaseTzInfo = Settings.DAY_BOUNDARY_TZ,
    ) -> None:
        self.valid_categories = frozenset(valid_categories)
        self.price_threshold = price_threshold
        self.day_boundary_tz = day_boundary_tz

    def reconcile(
        self, scraped: Product, stored: Product,
    ) -> ReconcileResult:
        """Return the classification and merged record for *scraped*.

        Rules are checked in order and the first match wins:

        1. Price moved by more than the threshold on a new calendar
           day: PRICE_CHANGED, stored history plus the new sample.
        2. Stored categories missing or outside the vocabulary:
           INFO_CHANGED, keeping stored history and ``last_updated``.
        3. Any tracked metadata field differs: INFO_CHANGED, same merge.
        4. Otherwise ALREADY_UP_TO_DATE, only ``last_checked`` moves.

        Raises ``ValueError`` when *scraped* has no price sample.
        """
        if not scraped.price_history:
            msg = f"Scraped product {scraped.id} has no price sample"
            raise ValueError(msg)

        if self._price_changed(scraped, stored):
            new_sample = scraped.price_history[-1]
            history = sorted(
                [*stored.price_history, new_sample],
                key=lambda dp: dp.date,
            )
            return ReconcileResult(
                response=UpsertResponse.PRICE_CHANGED,
                product=self._copy(scraped, price_history=history),
                new_sample=new_sample,
            )

        if self._has_invalid_categories(stored):
            return ReconcileResult(
                response=UpsertResponse.INFO_CHANGED,
                product=self._keep_history(scraped, stored),
                reason=ChangeReason.INVALID_CATEGORIES,
            )

        if self._fields_differ(scraped, stored):
            return ReconcileResult(
                response=UpsertResponse.INFO_CHANGED,
                product=self._keep_history(scraped, stored),
                reason=ChangeReason.FIELDS_DIFFER,
            )

        return ReconcileResult(
            response=UpsertResponse.ALREADY_UP_TO_DATE,
            product=self._copy(stored, last_checked=scraped.last_checked),
        )

    # ── Rules ────────────────────────────────────────────

    def _price_changed(self, scraped: Product, stored: Product) -> bool:
        price_diff = abs(stored.current_price - scraped.current_price)
        db_day = _calendar_day(stored.last_updated, self.day_boundary_tz)
        scraped_day = _calendar_day(
            scraped.last_updated, self.day_boundary_tz,
        )
        return price_diff > self.price_threshold and db_day != scraped_day

    def _has_invalid_categories(self, stored: Product) -> bool:
        if stored.category is None:
            return True
        return any(
            label not in self.valid_categories
            for label in stored.category
        )

    @staticmethod
    def _fields_differ(scraped: Product, stored: Product) -> bool:
        return (
            stored.source_site != scraped.source_site
            or _joined(stored.category) != _joined(scraped.category)
            or stored.size != scraped.size
            or stored.unit_price != scraped.unit_price
            or stored.unit_name != scraped.unit_name
            or stored.original_unit_quantity
            != scraped.original_unit_quantity
        )

    # ── Merging ──────────────────────────────────────────

    @staticmethod
    def _copy(product: Product, **changes: object) -> Product:
        """Copy *product* with fresh list fields and *changes* applied."""
        fresh: dict[str, object] = {
            "price_history": list(product.price_history),
            "category": (
                list(product.category)
                if product.category is not None
                else None
            ),
        }
        fresh.update(changes)
        return replace(product, **fresh)  # type: ignore[arg-type]

    @classmethod
    def _keep_history(cls, scraped: Product, stored: Product) -> Product:
        """Scraped metadata over stored history and ``last_updated``."""
        history: list[DatedPrice] = list(stored.price_history)
        return cls._copy(
            scraped,
            price_history=history,
            last_updated=stored.last_updated,
        )
