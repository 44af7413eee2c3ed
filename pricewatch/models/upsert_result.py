# pricewatch/models/upsert_result.py

"""Outcome types produced by reconciliation and upserts."""

from dataclasses import dataclass
from enum import Enum

from pricewatch.models.product import DatedPrice, Product


class UpsertResponse(Enum):
    """How a scraped product was applied to storage."""

    NEW_PRODUCT = "new_product"
    PRICE_CHANGED = "price_changed"
    INFO_CHANGED = "info_changed"
    ALREADY_UP_TO_DATE = "already_up_to_date"
    FAILED = "failed"


class ChangeReason(Enum):
    """Which rule produced an INFO_CHANGED result."""

    INVALID_CATEGORIES = "invalid_categories"
    FIELDS_DIFFER = "fields_differ"


@dataclass
class ReconcileResult:
    """A classification plus the merged record to persist."""

    response: UpsertResponse
    product: Product
    reason: ChangeReason | None = None
    new_sample: DatedPrice | None = None
