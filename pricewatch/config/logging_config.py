# pricewatch/config/logging_config.py

"""Per-run logging for pricewatch upserts.

Each run writes ``logs/pricewatch_YYYYMMDD_HHMMSS.log``.  Batch upserts
run in worker threads, so every record carries the worker thread name
and the id of the product being upserted (``product=-`` outside an
upsert).  The id comes from :func:`product_context`, which the
orchestrator enters around each single-product upsert.
"""

import contextvars
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from pricewatch.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(threadName)-22s | "
    "product=%(product_id)s | %(name)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(levelname)-8s | product=%(product_id)s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_NO_PRODUCT = "-"

_current_product: contextvars.ContextVar[str] = contextvars.ContextVar(
    "pricewatch_current_product", default=_NO_PRODUCT,
)


@contextmanager
def product_context(product_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with *product_id*."""
    token = _current_product.set(product_id)
    try:
        yield
    finally:
        _current_product.reset(token)


class ProductContextFilter(logging.Filter):
    """Add a ``product_id`` attribute to every record it sees."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "product_id"):
            record.product_id = _current_product.get()
        return True


def setup_logging() -> Path:
    """Initialise the ``pricewatch`` logger for the current run.

    The console threshold comes from ``Settings.CONSOLE_LOG_LEVEL``;
    the file always receives DEBUG and above.  Calling this again
    keeps the handlers of the first call.

    Returns:
        The :class:`~pathlib.Path` of this run's log file.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"pricewatch_{timestamp}.log"

    root_logger = logging.getLogger("pricewatch")
    root_logger.setLevel(logging.DEBUG)

    if root_logger.handlers:
        return log_file

    context_filter = ProductContextFilter()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.addFilter(context_filter)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(Settings.CONSOLE_LOG_LEVEL)
    console_handler.addFilter(context_filter)
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging to %s", log_file)

    return log_file
