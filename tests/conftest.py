# conftest.py
# Ensure the repository root is on sys.path so tests import the `lens`
# package from the working tree without an install step.

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)

if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from lens.core.config import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; tests that patch env need a fresh read."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
