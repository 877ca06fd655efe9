"""Root conftest: shared fixtures for all tests.

Provides:
- anyio backend selection (asyncio only)
- Controllable clocks
- In-process cache store on a fake timer
- A small member roster
- Autouse reset of the GitHub TTL caches
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from activity_feed.services.activity.store import MemoryCacheStore
from activity_feed.services.github.cache import clear_all_caches
from tests.helpers.clock import FakeClock, FakeTimer
from tests.helpers.factories import make_member

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _clear_github_caches():
    """Clear GitHub TTL caches before each test to prevent cross-test pollution."""
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def memory_store(timer: FakeTimer) -> MemoryCacheStore:
    return MemoryCacheStore(timer=timer)


@pytest.fixture
def members():
    return [
        make_member(id="user-1", username="alice", display_name="Alice"),
        make_member(id="user-2", username="bob", display_name="Bob"),
        make_member(id="user-3", username=None, display_name="No GitHub"),
        make_member(id="user-4", username="carol", display_name="Carol"),
    ]
