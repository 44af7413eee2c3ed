# tests/test_notifier.py

"""Tests for UpsertNotifier console output."""

import io
import unittest
from decimal import Decimal

from rich.console import Console

from pricewatch.services.notifier import UpsertNotifier
from pricewatch.storage.gateway import WriteFailure


class TestUpsertNotifier(unittest.TestCase):
    """Verify formatting of notification lines."""

    def setUp(self) -> None:
        self.buffer = io.StringIO()
        self.console = Console(
            file=self.buffer, width=200, color_system=None,
        )
        self.notifier = UpsertNotifier(console=self.console)

    def _output(self) -> str:
        return self.buffer.getvalue()

    def test_new_product_line(self) -> None:
        """New products show the padded name and price."""
        self.notifier.new_product("Pams Butter 500g", Decimal("6.49"))
        line = self._output().rstrip("\n")
        self.assertTrue(line.startswith("  New Product: Pams Butter 500g"))
        self.assertTrue(line.endswith("| $ 6.49"))
        self.assertEqual(line.index("|"), len("  New Product: ") + 48)

    def test_long_names_are_truncated(self) -> None:
        """Names longer than 47 characters are cut."""
        self.notifier.new_product("X" * 80, Decimal("1.00"))
        self.assertNotIn("X" * 48, self._output())

    def test_price_up_line(self) -> None:
        """Increases are labelled Up."""
        self.notifier.price_changed(
            "Pams Butter 500g", Decimal("5.99"), Decimal("6.49"),
        )
        out = self._output()
        self.assertIn("Price Up   : Pams Butter 500g", out)
        self.assertIn("$5.99 > $6.49", out)

    def test_price_down_line(self) -> None:
        """Decreases are labelled Down."""
        self.notifier.price_changed(
            "Pams Butter 500g", Decimal("6.49"), Decimal("5.99"),
        )
        self.assertIn("Price Down : Pams Butter 500g", self._output())

    def test_categories_changed_line(self) -> None:
        """Old and new labels are listed."""
        self.notifier.categories_changed(
            "Pams Butter 500g", ["chilled"], ["butter", "dairy"],
        )
        self.assertIn("- chilled > butter dairy", self._output())

    def test_categories_changed_handles_none(self) -> None:
        """Missing stored categories print as empty."""
        self.notifier.categories_changed("Pams Butter", None, ["butter"])
        self.assertIn("-  > butter", self._output())

    def test_brackets_are_not_markup(self) -> None:
        """Product names with brackets are printed verbatim."""
        self.notifier.new_product("Milk [2L]", Decimal("3.50"))
        self.assertIn("Milk [2L]", self._output())

    def test_failed_logs_error(self) -> None:
        """Failures are logged at ERROR on the notifier logger."""
        error = WriteFailure("insert(P1) failed: locked")
        with self.assertLogs("pricewatch.notifier", level="ERROR") as logs:
            self.notifier.failed("P1", error)
        self.assertIn("WriteFailure", logs.output[0])
        self.assertIn("Upsert Failed: P1", self._output())


if __name__ == "__main__":
    unittest.main()
