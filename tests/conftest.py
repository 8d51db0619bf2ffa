"""
Global pytest configuration and fixtures for keyvault_config testing.

This module provides shared fixtures and utilities that can be used across
all test modules to ensure consistency and minimize code duplication.
"""

import os
import tempfile
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from keyvault_config.logger import clear_reconciliation_id

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def at() -> Callable[[float], datetime]:
    """Provide a function returning a fixed UTC timestamp offset by seconds."""

    def timestamp(seconds: float = 0) -> datetime:
        return BASE_TIME + timedelta(seconds=seconds)

    return timestamp


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture(autouse=True)
def clean_reconciliation_context():
    """Ensure no reconciliation ID leaks between tests."""
    clear_reconciliation_id()
    yield
    clear_reconciliation_id()


@pytest.fixture
def clean_keyvault_env(monkeypatch):
    """Remove KEYVAULT_* variables inherited from the host environment."""
    for name in list(os.environ):
        if name.upper().startswith("KEYVAULT_"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
