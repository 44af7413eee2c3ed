# tests/conftest.py

"""Shared pytest fixtures for all pricewatch tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from pricewatch.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Keep log files and the default database inside a temp dir."""
    with (
        patch.object(Settings, "LOGS_DIR", tmp_path / "logs"),
        patch.object(
            Settings, "DB_PATH", tmp_path / "data" / "pricewatch.db",
        ),
    ):
        yield
