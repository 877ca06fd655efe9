"""API tests for the operator endpoints guarded by X-Cron-Secret."""

from __future__ import annotations

import pytest

from tests.helpers.auth import CRON_HEADERS, auth_headers


class TestCronSecret:
    @pytest.mark.anyio
    async def test_missing_header(self, api_client):
        response = await api_client.get("/api/v1/internal/activity-feed/status")
        assert response.status_code == 422

    @pytest.mark.anyio
    async def test_wrong_secret(self, api_client):
        response = await api_client.get(
            "/api/v1/internal/activity-feed/status", headers={"X-Cron-Secret": "nope"}
        )
        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_unconfigured_secret(self, api_client, runtime):
        runtime.settings.cron_secret = ""
        response = await api_client.get(
            "/api/v1/internal/activity-feed/status", headers=CRON_HEADERS
        )
        assert response.status_code == 503


class TestStatus:
    @pytest.mark.anyio
    async def test_status_without_cache(self, api_client):
        response = await api_client.get(
            "/api/v1/internal/activity-feed/status", headers=CRON_HEADERS
        )
        body = response.json()

        assert response.status_code == 200
        assert body["cache_present"] is False
        assert body["cache_age_seconds"] is None
        assert body["scheduler"]["running"] is False
        assert body["scheduler"]["state"] == "idle"
        assert len(body["credentials"]) == 2
        assert body["credentials"][0]["token"] == "ghp_api_..."
        assert body["any_credential_near_limit"] is False

    @pytest.mark.anyio
    async def test_status_after_read(self, api_client):
        await api_client.get("/api/v1/activities", headers=auth_headers())

        body = (
            await api_client.get("/api/v1/internal/activity-feed/status", headers=CRON_HEADERS)
        ).json()

        assert body["cache_present"] is True
        assert body["cached_events"] == 4
        assert 0 <= body["cache_age_seconds"] < 5


class TestRefreshAndClear:
    @pytest.mark.anyio
    async def test_forced_refresh(self, api_client, runtime):
        response = await api_client.post(
            "/api/v1/internal/activity-feed/refresh", headers=CRON_HEADERS
        )
        body = response.json()

        assert response.status_code == 200
        assert body["refreshed"] is True
        assert body["events"] == 4
        assert body["cached_at"] is not None
        assert runtime.refresher.batch_fetcher.fetch_all.await_count == 1

    @pytest.mark.anyio
    async def test_clear_cache(self, api_client, runtime):
        await api_client.get("/api/v1/activities", headers=auth_headers())

        response = await api_client.delete(
            "/api/v1/internal/activity-feed/cache", headers=CRON_HEADERS
        )

        assert response.status_code == 204
        assert await runtime.cache.read() is None


@pytest.mark.anyio
async def test_health(api_client):
    response = await api_client.get("/health")
    assert response.json() == {"status": "healthy"}
