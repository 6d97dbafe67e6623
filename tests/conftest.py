"""Shared test fixtures for schemaguard.

Provides settings isolation and a few schemas reused across unit tests.
"""

import os
from collections.abc import Generator
from typing import Any

import pytest

from schemaguard.settings import Settings, get_settings

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop SCHEMAGUARD_* variables and the cached settings around each test."""
    for name in list(os.environ):
        if name.upper().startswith("SCHEMAGUARD_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Provide settings with the documented defaults."""
    return Settings()


# =============================================================================
# SCHEMAS
# =============================================================================


@pytest.fixture
def people_schema() -> dict[str, Any]:
    """Array of people, each needing a string name."""
    return {"$type": "array", "$childsDef": {"name": str}}


@pytest.fixture
def address_schema() -> dict[str, Any]:
    """Nested objects three levels deep."""
    return {
        "user": {
            "$type": "object",
            "address": {"$type": "object", "zip": str},
        }
    }
