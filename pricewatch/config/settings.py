# pricewatch/config/settings.py

"""Central configuration for the pricewatch upsert pipeline."""

import os
from decimal import Decimal
from pathlib import Path

import pytz
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the pricewatch upsert pipeline."""

    # --- Reconciliation ---
    PRICE_CHANGE_THRESHOLD: Decimal = Decimal("0.05")  # Rounding noise floor
    DAY_BOUNDARY_TZ: pytz.BaseTzInfo = pytz.timezone(
        os.getenv("PRICEWATCH_DAY_BOUNDARY_TZ", "UTC")
    )
    DEFAULT_SOURCE_SITE: str = "countdown.co.nz"

    # --- Batch upserts ---
    UPSERT_CONCURRENCY: int = int(
        os.getenv("PRICEWATCH_UPSERT_CONCURRENCY", "4")
    )

    # --- Logging ---
    CONSOLE_LOG_LEVEL: str = os.getenv(
        "PRICEWATCH_LOG_LEVEL", "WARNING"
    ).upper()

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    CATEGORIES_PATH: Path = (
        BASE_DIR / "pricewatch" / "config" / "categories.json"
    )
    DB_PATH: Path = Path(
        os.getenv(
            "PRICEWATCH_DB_PATH",
            str(BASE_DIR / "data" / "pricewatch.db"),
        )
    )
    LOGS_DIR: Path = BASE_DIR / "logs"
