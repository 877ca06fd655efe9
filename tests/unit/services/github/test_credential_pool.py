"""Unit tests for the GitHub credential pool."""

from __future__ import annotations

import pytest

from activity_feed.config.settings import Settings
from activity_feed.services.github.credentials import (
    PURPOSE_CYCLE,
    CredentialPool,
    Purpose,
    mask_token,
)
from activity_feed.services.github.exceptions import CredentialConfigError

TOKENS = ["ghp_token_one_aaaa", "ghp_token_two_bbbb", "ghp_token_three_cc"]


# ═══════════════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════════════


class TestConstruction:
    def test_empty_pool_is_a_config_error(self):
        with pytest.raises(CredentialConfigError):
            CredentialPool([])

    def test_blank_tokens_are_ignored(self):
        with pytest.raises(CredentialConfigError):
            CredentialPool(["", ""])

    def test_duplicate_tokens_collapse(self):
        pool = CredentialPool(["ghp_same", "ghp_same", "ghp_other"])
        assert len(pool) == 2
        assert [c.token for c in pool.credentials] == ["ghp_same", "ghp_other"]

    def test_purpose_tags_follow_pool_index(self):
        pool = CredentialPool(TOKENS)
        assert [c.purpose for c in pool.credentials] == list(PURPOSE_CYCLE[:3])

    def test_from_settings_uses_numbered_tokens_in_order(self):
        settings = Settings(
            _env_file=None,
            github_token="ghp_first",
            github_token_2="",
            github_token_3=" ghp_third ",
            github_token_4="",
            github_token_5="",
            credential_call_limit=100,
        )
        pool = CredentialPool.from_settings(settings)

        assert [c.token for c in pool.credentials] == ["ghp_first", "ghp_third"]
        assert pool.call_limit == 100

    def test_from_settings_without_tokens_fails_fast(self):
        with pytest.raises(CredentialConfigError):
            CredentialPool.from_settings(
                Settings(
                    _env_file=None,
                    github_token="",
                    github_token_2="",
                    github_token_3="",
                    github_token_4="",
                    github_token_5="",
                )
            )


# ═══════════════════════════════════════════════════════════════════════════
# Selection
# ═══════════════════════════════════════════════════════════════════════════


class TestSelection:
    def test_select_for_purpose_maps_to_slot(self):
        pool = CredentialPool(TOKENS + ["ghp_token_four_ddd"])
        assert pool.select_for_purpose(Purpose.PRIMARY).token == TOKENS[0]
        assert pool.select_for_purpose(Purpose.SECONDARY).token == TOKENS[1]
        assert pool.select_for_purpose(Purpose.BULK).token == TOKENS[2]
        assert pool.select_for_purpose(Purpose.BACKGROUND).token == "ghp_token_four_ddd"

    def test_select_for_purpose_wraps_on_small_pool(self):
        pool = CredentialPool(TOKENS[:2])
        assert pool.select_for_purpose(Purpose.BULK).token == TOKENS[0]
        assert pool.select_for_purpose(Purpose.BACKGROUND).token == TOKENS[1]

    def test_single_credential_serves_every_purpose(self):
        pool = CredentialPool(TOKENS[:1])
        assert {pool.select_for_purpose(p).token for p in Purpose} == {TOKENS[0]}

    def test_select_least_used(self):
        pool = CredentialPool(TOKENS)
        pool.record_call(TOKENS[0], n=5)
        pool.record_call(TOKENS[1], n=2)
        pool.record_call(TOKENS[2], n=3)
        assert pool.select_least_used().token == TOKENS[1]

    def test_select_least_used_ties_go_to_pool_order(self):
        pool = CredentialPool(TOKENS)
        pool.record_call(TOKENS[0])
        assert pool.select_least_used().token == TOKENS[1]

    def test_select_next_round_robin(self):
        pool = CredentialPool(TOKENS[:2])
        picked = [pool.select_next().token for _ in range(4)]
        assert picked == [TOKENS[0], TOKENS[1], TOKENS[0], TOKENS[1]]


# ═══════════════════════════════════════════════════════════════════════════
# Usage accounting
# ═══════════════════════════════════════════════════════════════════════════


class TestUsage:
    def test_record_call_accepts_credential_or_token(self):
        pool = CredentialPool(TOKENS)
        credential = pool.select_for_purpose(Purpose.PRIMARY)

        pool.record_call(credential)
        pool.record_call(credential.token, n=2)

        assert credential.calls == 3

    def test_record_call_for_unknown_token_is_ignored(self):
        pool = CredentialPool(TOKENS)
        pool.record_call("ghp_unknown")
        assert all(c.calls == 0 for c in pool.credentials)

    def test_observe_rate_limit_keeps_last_value(self):
        pool = CredentialPool(TOKENS)
        credential = pool.credentials[0]

        pool.observe_rate_limit(credential, 4000)
        pool.observe_rate_limit(credential, None)

        assert credential.rate_limit_remaining == 4000

    def test_reset_usage_zeroes_counters(self):
        pool = CredentialPool(TOKENS)
        pool.record_call(TOKENS[0], n=10)
        pool.reset_usage()
        assert all(c.calls == 0 for c in pool.credentials)

    def test_stats_masks_tokens(self):
        pool = CredentialPool(TOKENS[:1], call_limit=200)
        pool.record_call(TOKENS[0], n=50)

        (stats,) = pool.stats()

        assert stats.token == mask_token(TOKENS[0])
        assert TOKENS[0] not in stats.token
        assert stats.usage == 50
        assert stats.limit == 200
        assert stats.percentage == 25.0
        assert stats.purpose == "primary"

    def test_is_any_near_limit(self):
        pool = CredentialPool(TOKENS[:2], call_limit=100)
        pool.record_call(TOKENS[1], n=79)
        assert pool.is_any_near_limit() is False

        pool.record_call(TOKENS[1])
        assert pool.is_any_near_limit() is True
        assert pool.is_any_near_limit(threshold=90) is False
