# tests/conftest.py

"""Shared pytest fixtures for all import_scout tests."""

from collections.abc import Generator
from pathlib import Path

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Point log and session-db paths at a per-test temp directory."""
    saved = (Settings.LOGS_DIR, Settings.DATA_DIR, Settings.SESSION_DB_PATH)
    Settings.LOGS_DIR = tmp_path / "logs"
    Settings.DATA_DIR = tmp_path / "data"
    Settings.SESSION_DB_PATH = Settings.DATA_DIR / "sessions.db"
    try:
        yield
    finally:
        (
            Settings.LOGS_DIR,
            Settings.DATA_DIR,
            Settings.SESSION_DB_PATH,
        ) = saved
