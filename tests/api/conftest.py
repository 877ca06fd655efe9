"""API test fixtures: a runtime with fakes behind the real FastAPI app.

The lifespan is not run: each test installs its own runtime on app.state.
Upstream calls are replaced by a mock batch fetcher; the refresh gate runs
on the fake timer so cooldowns can be driven by the test.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from activity_feed.config.settings import Settings
from activity_feed.main import app
from activity_feed.services.activity.types import ActivityKind
from activity_feed.services.runtime import build_runtime
from tests.helpers.auth import CRON_SECRET, JWT_SECRET
from tests.helpers.directory import StaticDirectory
from tests.helpers.factories import make_activity


@pytest.fixture
def feed_events(clock):
    now = clock()
    kinds = [ActivityKind.COMMIT, ActivityKind.PULL_REQUEST, ActivityKind.ISSUE, ActivityKind.COMMIT]
    return [
        make_activity(f"ev-{i}", now - timedelta(minutes=i), kind=kind)
        for i, kind in enumerate(kinds)
    ]


@pytest.fixture
def directory(members) -> StaticDirectory:
    return StaticDirectory(members)


@pytest.fixture
def runtime(directory, memory_store, timer, feed_events):
    settings = Settings(
        _env_file=None,
        github_token="ghp_api_test_token_1",
        github_token_2="ghp_api_test_token_2",
        github_token_3="",
        github_token_4="",
        github_token_5="",
        jwt_secret=JWT_SECRET,
        cron_secret=CRON_SECRET,
        scheduler_enabled=False,
        manual_refresh_cooldown_seconds=600,
    )
    runtime = build_runtime(settings, directory=directory, cache_store=memory_store)
    runtime.gate.clock = timer

    batch = AsyncMock()
    batch.fetch_all.return_value = feed_events
    runtime.refresher.batch_fetcher = batch
    return runtime


@pytest.fixture
async def api_client(runtime):
    """HTTP client against the app with the test runtime installed."""
    app.state.runtime = runtime
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    del app.state.runtime
