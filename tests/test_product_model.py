# tests/test_product_model.py

"""Tests for the Product and DatedPrice dataclasses."""

import dataclasses
import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytz

from pricewatch.models.product import DatedPrice, Product, ensure_utc

_TS = datetime(2024, 1, 1, 9, tzinfo=pytz.utc)


def _product(**overrides: object) -> Product:
    fields: dict[str, object] = {
        "id": "A1",
        "name": "Milk",
        "current_price": Decimal("3.50"),
        "last_updated": _TS,
        "last_checked": _TS,
        "source_site": "countdown.co.nz",
    }
    fields.update(overrides)
    return Product(**fields)  # type: ignore[arg-type]


class TestProductModel(unittest.TestCase):
    """Product dataclass unit tests."""

    def test_defaults(self) -> None:
        """Optional fields default to empty or None."""
        product = _product()
        self.assertEqual(product.price_history, [])
        self.assertEqual(product.category, [])
        self.assertIsNone(product.size)
        self.assertIsNone(product.unit_price)
        self.assertIsNone(product.unit_name)
        self.assertIsNone(product.original_unit_quantity)

    def test_default_lists_are_not_shared(self) -> None:
        """Each instance gets its own lists."""
        a = _product()
        b = _product()
        assert a.category is not None
        a.category.append("dairy")
        self.assertEqual(b.category, [])

    def test_equality(self) -> None:
        """Two products with identical fields are equal."""
        self.assertEqual(_product(), _product())

    def test_inequality_different_price(self) -> None:
        """Products with different prices are not equal."""
        self.assertNotEqual(
            _product(), _product(current_price=Decimal("3.99")),
        )

    def test_dated_price_is_frozen(self) -> None:
        """History entries are immutable."""
        dp = DatedPrice(date=_TS, price=Decimal("1.00"))
        with self.assertRaises(dataclasses.FrozenInstanceError):
            dp.price = Decimal("2.00")  # type: ignore[misc]


class TestEnsureUtc(unittest.TestCase):
    """ensure_utc normalisation."""

    def test_naive_is_localised(self) -> None:
        """Naive datetimes are taken as UTC wall time."""
        result = ensure_utc(datetime(2024, 1, 1, 12))
        self.assertEqual(result, datetime(2024, 1, 1, 12, tzinfo=pytz.utc))

    def test_aware_is_converted(self) -> None:
        """Offsets are converted to UTC."""
        nzdt = timezone(timedelta(hours=13))
        result = ensure_utc(datetime(2024, 1, 2, 8, tzinfo=nzdt))
        self.assertEqual(result.hour, 19)
        self.assertEqual(result.day, 1)
        self.assertEqual(result.utcoffset(), timedelta(0))


if __name__ == "__main__":
    unittest.main()
