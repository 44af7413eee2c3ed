# pricewatch/storage/sqlite_gateway.py

"""SQLite-backed product store implementing :class:`ProductGateway`."""

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from pricewatch.config.settings import Settings
from pricewatch.models.product import DatedPrice, Product, ensure_utc
from pricewatch.storage.gateway import (
    LookupFailure,
    ProductGateway,
    WriteFailure,
)

logger = logging.getLogger("pricewatch.storage")

# Prices are stored as TEXT so Decimal values round-trip exactly
_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id                     TEXT PRIMARY KEY,
    name                   TEXT NOT NULL,
    size                   TEXT DEFAULT NULL,
    current_price          TEXT NOT NULL,
    last_updated           TEXT NOT NULL,
    last_checked           TEXT NOT NULL,
    source_site            TEXT NOT NULL DEFAULT 'countdown.co.nz',
    unit_price             TEXT DEFAULT NULL,
    unit_name              TEXT DEFAULT NULL,
    original_unit_quantity INTEGER DEFAULT NULL
);

CREATE INDEX IF NOT EXISTS idx_products_name
    ON products(name);
CREATE INDEX IF NOT EXISTS idx_products_last_checked
    ON products(last_checked);

CREATE TABLE IF NOT EXISTS product_categories (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id TEXT NOT NULL
               REFERENCES products(id) ON DELETE CASCADE,
    category   TEXT NOT NULL,
    UNIQUE (product_id, category)
);

CREATE TABLE IF NOT EXISTS price_history (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id TEXT NOT NULL
               REFERENCES products(id) ON DELETE CASCADE,
    date       TEXT NOT NULL,
    price      TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_price_history_product_date
    ON price_history(product_id, date);
"""

_BASE_COLUMNS = (
    "id, name, size, current_price, last_updated, last_checked, "
    "source_site, unit_price, unit_name, original_unit_quantity"
)


def _ts(value: datetime) -> str:
    return ensure_utc(value).isoformat()


def _parse_ts(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))


def _price(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _parse_price(value: object) -> Decimal | None:
    return None if value is None else Decimal(str(value))


class SQLiteProductGateway(ProductGateway):
    """SQLite store for product base rows, categories and price history.

    A single connection is shared between threads; every statement
    runs under ``self._lock`` so batch upserts can use worker threads.
    """

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)
        logger.debug("SQLiteProductGateway opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    @contextmanager
    def _reading(self, action: str) -> Iterator[sqlite3.Connection]:
        """Run a read under the lock, mapping errors to LookupFailure."""
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                msg = f"{action} failed: {exc}"
                raise LookupFailure(msg) from exc

    @contextmanager
    def _writing(self, action: str) -> Iterator[sqlite3.Connection]:
        """Run writes in one transaction, mapping errors to WriteFailure."""
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                msg = f"{action} failed: {exc}"
                raise WriteFailure(msg) from exc

    # ── Reads ────────────────────────────────────────────

    def lookup(self, product_id: str) -> Product | None:
        """Return the base row for *product_id*, or ``None``."""
        with self._reading(f"lookup({product_id})") as conn:
            row = conn.execute(
                f"SELECT {_BASE_COLUMNS} FROM products WHERE id = ?",
                (product_id,),
            ).fetchone()
        if row is None:
            return None
        return Product(
            id=row[0],
            name=row[1],
            size=row[2],
            current_price=Decimal(str(row[3])),
            last_updated=_parse_ts(row[4]),
            last_checked=_parse_ts(row[5]),
            source_site=row[6],
            unit_price=_parse_price(row[7]),
            unit_name=row[8],
            original_unit_quantity=row[9],
        )

    def load_categories(self, product_id: str) -> list[str]:
        """Return category labels in insertion order."""
        with self._reading(f"load_categories({product_id})") as conn:
            rows = conn.execute(
                "SELECT category FROM product_categories "
                "WHERE product_id = ? ORDER BY id ASC",
                (product_id,),
            ).fetchall()
        return [r[0] for r in rows]

    def load_price_history(self, product_id: str) -> list[DatedPrice]:
        """Return the price history, oldest first."""
        with self._reading(f"load_price_history({product_id})") as conn:
            rows = conn.execute(
                "SELECT date, price FROM price_history "
                "WHERE product_id = ? ORDER BY date ASC, id ASC",
                (product_id,),
            ).fetchall()
        return [
            DatedPrice(date=_parse_ts(r[0]), price=Decimal(r[1]))
            for r in rows
        ]

    def get_product(self, product_id: str) -> Product | None:
        """Return the full record including categories and history."""
        product = self.lookup(product_id)
        if product is None:
            return None
        product.category = self.load_categories(product_id)
        product.price_history = self.load_price_history(product_id)
        return product

    def count_products(self) -> int:
        """Return the number of stored products."""
        with self._reading("count_products") as conn:
            row = conn.execute("SELECT COUNT(*) FROM products").fetchone()
        return int(row[0])

    # ── Writes ───────────────────────────────────────────

    def insert(self, product: Product) -> None:
        """Insert base, category and price-history rows in one transaction."""
        with self._writing(f"insert({product.id})") as conn:
            conn.execute(
                f"INSERT INTO products ({_BASE_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    product.id,
                    product.name,
                    product.size,
                    _price(product.current_price),
                    _ts(product.last_updated),
                    _ts(product.last_checked),
                    product.source_site,
                    _price(product.unit_price),
                    product.unit_name,
                    product.original_unit_quantity,
                ),
            )
            conn.executemany(
                "INSERT INTO product_categories (product_id, category) "
                "VALUES (?, ?)",
                [(product.id, c) for c in product.category or []],
            )
            conn.executemany(
                "INSERT INTO price_history (product_id, date, price) "
                "VALUES (?, ?, ?)",
                [
                    (product.id, _ts(dp.date), _price(dp.price))
                    for dp in product.price_history
                ],
            )
        logger.debug(
            "Inserted product %s with %d categories, %d prices",
            product.id,
            len(product.category or []),
            len(product.price_history),
        )

    def update_base_fields(self, product: Product) -> None:
        """Rewrite the mutable base columns of *product*."""
        with self._writing(f"update_base_fields({product.id})") as conn:
            conn.execute(
                "UPDATE products SET "
                "name = ?, size = ?, current_price = ?, "
                "last_updated = ?, last_checked = ?, source_site = ?, "
                "unit_price = ?, unit_name = ?, original_unit_quantity = ? "
                "WHERE id = ?",
                (
                    product.name,
                    product.size,
                    _price(product.current_price),
                    _ts(product.last_updated),
                    _ts(product.last_checked),
                    product.source_site,
                    _price(product.unit_price),
                    product.unit_name,
                    product.original_unit_quantity,
                    product.id,
                ),
            )

    def append_price_history(
        self, product_id: str, dated_price: DatedPrice,
    ) -> None:
        """Insert one price-history row."""
        with self._writing(f"append_price_history({product_id})") as conn:
            conn.execute(
                "INSERT INTO price_history (product_id, date, price) "
                "VALUES (?, ?, ?)",
                (product_id, _ts(dated_price.date), _price(dated_price.price)),
            )

    def replace_categories(
        self, product_id: str, categories: list[str],
    ) -> None:
        """Delete every category row for *product_id*, then insert anew."""
        with self._writing(f"replace_categories({product_id})") as conn:
            conn.execute(
                "DELETE FROM product_categories WHERE product_id = ?",
                (product_id,),
            )
            conn.executemany(
                "INSERT INTO product_categories (product_id, category) "
                "VALUES (?, ?)",
                [(product_id, c) for c in categories],
            )
