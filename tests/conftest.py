from __future__ import annotations

import sys
from pathlib import Path

import pytest

# make the household_api package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from household_api.core.config import get_settings
from household_api.core.rate_limiter import reset_limits
from household_api.db import create_all, reset_engine, seed_roles_and_permissions
from household_api.repositories.ttl_store import MemoryTTLStore, get_ttl_store


def _clear_caches() -> None:
    get_settings.cache_clear()
    reset_engine()
    get_ttl_store.cache_clear()
    reset_limits()


class FakeClock:
    """Monotonic stand-in that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'household.db'}")
    monkeypatch.setenv("REDIS_URL", "")
    monkeypatch.setenv("SMTP_HOST", "")
    _clear_caches()
    create_all()
    seed_roles_and_permissions()
    yield
    _clear_caches()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> MemoryTTLStore:
    return MemoryTTLStore(clock=clock)
