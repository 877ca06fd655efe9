"""API tests for the activity feed endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from activity_feed.main import app
from activity_feed.services.github.exceptions import GitHubAPIError, GitHubRateLimitError
from activity_feed.services.github.types import ContributionSummary
from tests.helpers.auth import auth_headers, make_token

SUMMARY_PATH = "activity_feed.api.v1.activities.fetch_contribution_summary"


# ═══════════════════════════════════════════════════════════════════════════
# GET /api/v1/activities
# ═══════════════════════════════════════════════════════════════════════════


class TestListActivities:
    @pytest.mark.anyio
    async def test_requires_authentication(self, api_client):
        response = await api_client.get("/api/v1/activities")
        assert response.status_code == 401

    @pytest.mark.anyio
    async def test_invalid_token_rejected(self, api_client):
        response = await api_client.get(
            "/api/v1/activities", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    @pytest.mark.anyio
    async def test_cold_then_cached(self, api_client, runtime):
        first = await api_client.get("/api/v1/activities", headers=auth_headers())
        second = await api_client.get("/api/v1/activities", headers=auth_headers("user-2"))

        assert first.status_code == 200
        assert first.json()["cached"] is False
        assert second.json()["cached"] is True
        assert runtime.refresher.batch_fetcher.fetch_all.await_count == 1

    @pytest.mark.anyio
    async def test_response_shape_is_camel_case(self, api_client):
        response = await api_client.get(
            "/api/v1/activities", params={"limit": 2}, headers=auth_headers()
        )
        body = response.json()

        assert set(body) == {"activities", "total", "hasMore", "nextCursor", "cached"}
        assert body["total"] == 4
        assert body["hasMore"] is True
        assert body["nextCursor"] == "2"
        activity = body["activities"][0]
        assert activity["id"] == "ev-0"
        assert "occurredAt" in activity
        assert set(activity["actor"]) == {"name", "username", "avatarUrl"}

    @pytest.mark.anyio
    async def test_pages_partition_the_feed(self, api_client):
        first = (
            await api_client.get(
                "/api/v1/activities", params={"limit": 3, "offset": 0}, headers=auth_headers()
            )
        ).json()
        second = (
            await api_client.get(
                "/api/v1/activities",
                params={"limit": 3, "offset": int(first["nextCursor"])},
                headers=auth_headers(),
            )
        ).json()

        ids = [a["id"] for a in first["activities"]] + [a["id"] for a in second["activities"]]
        assert ids == ["ev-0", "ev-1", "ev-2", "ev-3"]
        assert second["hasMore"] is False
        assert second["nextCursor"] is None

    @pytest.mark.anyio
    async def test_filter(self, api_client):
        response = await api_client.get(
            "/api/v1/activities", params={"filter": "commits"}, headers=auth_headers()
        )
        body = response.json()

        assert [a["kind"] for a in body["activities"]] == ["commit", "commit"]
        assert body["total"] == 2

    @pytest.mark.anyio
    async def test_invalid_query_parameters(self, api_client):
        bad_limit = await api_client.get(
            "/api/v1/activities", params={"limit": 0}, headers=auth_headers()
        )
        bad_filter = await api_client.get(
            "/api/v1/activities", params={"filter": "stars"}, headers=auth_headers()
        )

        assert bad_limit.status_code == 422
        assert bad_filter.status_code == 422

    @pytest.mark.anyio
    async def test_cookie_authentication(self, api_client):
        api_client.cookies.set("auth-token", make_token("user-9"))
        response = await api_client.get("/api/v1/activities")

        assert response.status_code == 200

    @pytest.mark.anyio
    async def test_manual_refresh_cooldown(self, api_client, runtime, timer):
        first = await api_client.get(
            "/api/v1/activities", params={"refresh": "true"}, headers=auth_headers("u1")
        )
        assert first.status_code == 200
        assert first.json()["cached"] is False

        timer.advance(300)
        second = await api_client.get(
            "/api/v1/activities", params={"refresh": "true"}, headers=auth_headers("u1")
        )

        assert second.status_code == 429
        assert second.headers["Retry-After"] == "300"
        assert second.json() == {
            "error": "rate_limited",
            "message": "Manual refresh is limited. Try again in 5 minute(s).",
            "remainingTime": 300,
            "rateLimited": True,
        }

        other = await api_client.get(
            "/api/v1/activities", params={"refresh": "true"}, headers=auth_headers("u2")
        )
        assert other.status_code == 200

    @pytest.mark.anyio
    async def test_directory_down_without_cache_is_503(self, api_client, directory):
        directory.down = True

        response = await api_client.get("/api/v1/activities", headers=auth_headers())

        assert response.status_code == 503

    @pytest.mark.anyio
    async def test_directory_down_with_cache_serves_stale_data(self, api_client, directory):
        await api_client.get("/api/v1/activities", headers=auth_headers())
        directory.down = True

        response = await api_client.get("/api/v1/activities", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["cached"] is True

    @pytest.mark.anyio
    async def test_runtime_missing_is_503(self, api_client):
        runtime = app.state.runtime
        del app.state.runtime
        try:
            response = await api_client.get("/api/v1/activities", headers=auth_headers())
        finally:
            app.state.runtime = runtime

        assert response.status_code == 503


# ═══════════════════════════════════════════════════════════════════════════
# GET /api/v1/activities/contributions/{username}
# ═══════════════════════════════════════════════════════════════════════════


class TestContributions:
    @pytest.mark.anyio
    async def test_returns_summary(self, api_client):
        summary = ContributionSummary(
            username="octocat",
            public_repos=8,
            followers=100,
            total_pull_requests=12,
            total_issues=3,
            languages={"Python": 70, "Go": 30},
        )
        with patch(SUMMARY_PATH, AsyncMock(return_value=summary)):
            response = await api_client.get(
                "/api/v1/activities/contributions/octocat", headers=auth_headers()
            )

        assert response.status_code == 200
        assert response.json() == {
            "username": "octocat",
            "publicRepos": 8,
            "followers": 100,
            "totalPullRequests": 12,
            "totalIssues": 3,
            "languages": {"Python": 70, "Go": 30},
        }

    @pytest.mark.anyio
    async def test_unknown_user_is_404(self, api_client):
        with patch(SUMMARY_PATH, AsyncMock(return_value=None)):
            response = await api_client.get(
                "/api/v1/activities/contributions/ghost", headers=auth_headers()
            )

        assert response.status_code == 404

    @pytest.mark.anyio
    async def test_upstream_failure_is_502(self, api_client):
        error = GitHubAPIError("GitHub API error: 500", 500)
        with patch(SUMMARY_PATH, AsyncMock(side_effect=error)):
            response = await api_client.get(
                "/api/v1/activities/contributions/octocat", headers=auth_headers()
            )

        assert response.status_code == 502
        assert response.json()["detail"] == "GitHub API error: 500"

    @pytest.mark.anyio
    async def test_rate_limited_upstream_reports_wait(self, api_client):
        error = GitHubRateLimitError("users/octocat", 403, retry_after=90)
        with patch(SUMMARY_PATH, AsyncMock(side_effect=error)):
            response = await api_client.get(
                "/api/v1/activities/contributions/octocat", headers=auth_headers()
            )

        assert response.status_code == 502
        assert response.json()["detail"] == "GitHub API rate limit exceeded. Retry in 2 minute(s)."

    @pytest.mark.anyio
    async def test_requires_authentication(self, api_client):
        response = await api_client.get("/api/v1/activities/contributions/octocat")
        assert response.status_code == 401
