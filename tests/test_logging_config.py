# tests/test_logging_config.py

"""Tests for per-run logging and product tagging."""

import logging
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

from pricewatch.config.logging_config import (
    ProductContextFilter,
    product_context,
    setup_logging,
)
from pricewatch.config.settings import Settings


def _reset_logger() -> None:
    root_logger = logging.getLogger("pricewatch")
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)


def _read_log(log_path: Path) -> str:
    for handler in logging.getLogger("pricewatch").handlers:
        handler.flush()
    return log_path.read_text(encoding="utf-8")


class TestSetupLogging(unittest.TestCase):
    """Handlers, levels and file naming."""

    def setUp(self) -> None:
        _reset_logger()
        self.addCleanup(_reset_logger)

    def test_log_file_named_after_run_start(self) -> None:
        """pricewatch_YYYYMMDD_HHMMSS.log inside LOGS_DIR."""
        log_path = setup_logging()
        self.assertTrue(log_path.exists())
        self.assertEqual(log_path.parent, Settings.LOGS_DIR)
        self.assertRegex(log_path.name, r"^pricewatch_\d{8}_\d{6}\.log$")

    def test_console_level_follows_settings(self) -> None:
        with patch.object(Settings, "CONSOLE_LOG_LEVEL", "INFO"):
            setup_logging()
        consoles = [
            h
            for h in logging.getLogger("pricewatch").handlers
            if not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(consoles), 1)
        self.assertEqual(consoles[0].level, logging.INFO)

    def test_file_handler_takes_debug(self) -> None:
        log_path = setup_logging()
        logging.getLogger("pricewatch.storage").debug("opened store")
        self.assertIn("opened store", _read_log(log_path))

    def test_repeated_calls_keep_first_handlers(self) -> None:
        setup_logging()
        handlers = list(logging.getLogger("pricewatch").handlers)
        setup_logging()
        self.assertEqual(logging.getLogger("pricewatch").handlers, handlers)

    def test_every_handler_tags_products(self) -> None:
        setup_logging()
        for handler in logging.getLogger("pricewatch").handlers:
            self.assertTrue(
                any(isinstance(f, ProductContextFilter) for f in handler.filters)
            )


class TestProductContext(unittest.TestCase):
    """Records carry the id of the product being upserted."""

    def setUp(self) -> None:
        _reset_logger()
        self.addCleanup(_reset_logger)
        self.log_path = setup_logging()
        self.logger = logging.getLogger("pricewatch.orchestrator")

    def test_records_inside_context_carry_product_id(self) -> None:
        with product_context("P1"):
            self.logger.info("reconciled")
        self.assertIn("product=P1 |", _read_log(self.log_path))

    def test_records_outside_context_use_placeholder(self) -> None:
        self.logger.info("batch started")
        line = next(
            ln
            for ln in _read_log(self.log_path).splitlines()
            if "batch started" in ln
        )
        self.assertIn("product=- |", line)

    def test_context_resets_after_block(self) -> None:
        with product_context("P1"):
            pass
        self.logger.info("after block")
        line = next(
            ln
            for ln in _read_log(self.log_path).splitlines()
            if "after block" in ln
        )
        self.assertNotIn("product=P1", line)

    def test_worker_thread_name_and_product_logged(self) -> None:
        """Batch workers log under their own thread name and product."""

        def work() -> None:
            with product_context("P7"):
                self.logger.warning("write retried")

        worker = threading.Thread(target=work, name="upsert-worker-3")
        worker.start()
        worker.join()

        line = next(
            ln
            for ln in _read_log(self.log_path).splitlines()
            if "write retried" in ln
        )
        self.assertIn("upsert-worker-3", line)
        self.assertIn("product=P7", line)

    def test_explicit_product_id_is_kept(self) -> None:
        """A record that already names a product is left alone."""
        record = logging.LogRecord(
            "pricewatch", logging.INFO, __file__, 1, "msg", None, None,
        )
        record.product_id = "P9"
        with product_context("P1"):
            ProductContextFilter().filter(record)
        self.assertEqual(record.product_id, "P9")


if __name__ == "__main__":
    unittest.main()
