"""
GitHub credential pool.

Spreads outbound API calls over several tokens. Work is routed to a token by
its purpose through a fixed mapping table, so a rate-limited token can be
traced back to the kind of work that exhausted it. Counters are for
observability only; nothing here throttles calls.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from activity_feed.services.github.exceptions import CredentialConfigError

if TYPE_CHECKING:
    from activity_feed.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_CALL_LIMIT = 5000


class Purpose(str, Enum):
    """Logical role used to pick a credential deterministically."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    BULK = "bulk"
    BACKGROUND = "background"


# Purpose -> pool index. Indices wrap when the pool is smaller.
PURPOSE_SLOTS: dict[Purpose, int] = {
    Purpose.PRIMARY: 0,
    Purpose.SECONDARY: 1,
    Purpose.BULK: 2,
    Purpose.BACKGROUND: 3,
}

# Cycle order used when handing purposes out to batches
PURPOSE_CYCLE: tuple[Purpose, ...] = tuple(PURPOSE_SLOTS)


def mask_token(token: str) -> str:
    """Mask a credential for logs and status output."""
    return f"{token[:8]}..."


@dataclass(eq=False)
class Credential:
    """A single API token plus its usage counter."""

    token: str
    purpose: Purpose
    calls: int = 0
    rate_limit_remaining: int | None = None

    @property
    def masked(self) -> str:
        return mask_token(self.token)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Credential):
            return NotImplemented
        return self.token == other.token

    def __hash__(self) -> int:
        return hash(self.token)


@dataclass
class CredentialStats:
    """Usage snapshot for one credential (token is masked)."""

    token: str
    purpose: str
    usage: int
    limit: int
    percentage: float
    rate_limit_remaining: int | None


class CredentialPool:
    """Holds the configured credentials and their call counters."""

    def __init__(self, tokens: Sequence[str], call_limit: int = DEFAULT_CALL_LIMIT) -> None:
        unique: list[str] = []
        for token in tokens:
            if token and token not in unique:
                unique.append(token)

        if not unique:
            raise CredentialConfigError("No GitHub tokens configured")

        self.call_limit = call_limit
        self._credentials: list[Credential] = [
            Credential(token=token, purpose=PURPOSE_CYCLE[index % len(PURPOSE_CYCLE)])
            for index, token in enumerate(unique)
        ]
        self._by_token: dict[str, Credential] = {c.token: c for c in self._credentials}
        self._next_index = 0

        logger.info(f"Loaded {len(self._credentials)} GitHub credential(s)")

    @classmethod
    def from_settings(cls, settings: Settings) -> CredentialPool:
        """Build the pool from configured GITHUB_TOKEN, GITHUB_TOKEN_2, ... values."""
        return cls(settings.github_tokens, call_limit=settings.credential_call_limit)

    def __len__(self) -> int:
        return len(self._credentials)

    @property
    def credentials(self) -> list[Credential]:
        return list(self._credentials)

    def select_for_purpose(self, purpose: Purpose) -> Credential:
        """Return the credential mapped to a purpose (wrapping on small pools)."""
        index = PURPOSE_SLOTS[purpose]
        return self._credentials[index % len(self._credentials)]

    def select_least_used(self) -> Credential:
        """Return the credential with the fewest recorded calls; ties go to pool order."""
        best = self._credentials[0]
        for credential in self._credentials[1:]:
            if credential.calls < best.calls:
                best = credential
        return best

    def select_next(self) -> Credential:
        """Round-robin selection."""
        credential = self._credentials[self._next_index]
        self._next_index = (self._next_index + 1) % len(self._credentials)
        return credential

    def record_call(self, credential: Credential | str, n: int = 1) -> None:
        """Increment the usage counter of a credential."""
        token = credential.token if isinstance(credential, Credential) else credential
        tracked = self._by_token.get(token)
        if tracked is None:
            logger.warning(f"Call recorded for unknown credential {mask_token(token)}")
            return
        tracked.calls += n

    def observe_rate_limit(self, credential: Credential, remaining: int | None) -> None:
        """Remember the last X-RateLimit-Remaining value seen for a credential."""
        if remaining is None:
            return
        tracked = self._by_token.get(credential.token)
        if tracked is not None:
            tracked.rate_limit_remaining = remaining

    def reset_usage(self) -> None:
        """Zero every counter. Called periodically by the scheduler."""
        for credential in self._credentials:
            credential.calls = 0

    def stats(self) -> list[CredentialStats]:
        return [
            CredentialStats(
                token=credential.masked,
                purpose=credential.purpose.value,
                usage=credential.calls,
                limit=self.call_limit,
                percentage=round((credential.calls / self.call_limit) * 100, 1),
                rate_limit_remaining=credential.rate_limit_remaining,
            )
            for credential in self._credentials
        ]

    def is_any_near_limit(self, threshold: float = 80) -> bool:
        """Check if any credential's usage is at or above threshold percent of its limit."""
        return any(
            (credential.calls / self.call_limit) * 100 >= threshold
            for credential in self._credentials
        )
