"""Authenticated provider session.

A session is the credential set needed to call a provider's read API on
behalf of one user. It is validated before every sync pass; a session that
is missing, expired or issued for an older scope set is rejected.
"""

from collections.abc import Iterable
import time
from typing import Any

from attrs import define, field

from tunetransfer.domain.errors import AuthenticationRequired

# Seconds before actual expiry at which a token is already treated as expired
EXPIRY_LEEWAY_SECONDS = 60


def normalize_scope(scope: str | Iterable[str] | None) -> frozenset[str]:
    """Turn a space separated or iterable scope into a set of scope names."""
    if scope is None:
        return frozenset()
    if isinstance(scope, str):
        return frozenset(s for s in scope.replace(",", " ").split() if s)
    return frozenset(s for s in scope if s)


@define(frozen=True, slots=True)
class ProviderSession:
    """OAuth credentials plus the profile they were issued for."""

    provider: str
    access_token: str = field(repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    expires_at: float | None = None
    scope: frozenset[str] = field(factory=frozenset, converter=normalize_scope)
    profile: dict[str, Any] | None = None

    @classmethod
    def from_token_info(
        cls,
        provider: str,
        token_info: dict[str, Any],
        profile: dict[str, Any] | None = None,
    ) -> "ProviderSession":
        """Build a session from an OAuth token response.

        Accepts either ``expires_at`` (epoch seconds) or ``expires_in``
        relative to now.
        """
        expires_at = token_info.get("expires_at")
        if expires_at is None and token_info.get("expires_in") is not None:
            expires_at = time.time() + float(token_info["expires_in"])
        return cls(
            provider=provider,
            access_token=token_info.get("access_token") or "",
            refresh_token=token_info.get("refresh_token"),
            expires_at=float(expires_at) if expires_at is not None else None,
            scope=token_info.get("scope"),
            profile=profile,
        )

    def is_expired(
        self, now: float | None = None, leeway: float = EXPIRY_LEEWAY_SECONDS
    ) -> bool:
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return self.expires_at - leeway <= current

    def missing_scopes(self, required: Iterable[str]) -> frozenset[str]:
        return normalize_scope(required) - self.scope

    def ensure_valid(self, required_scopes: Iterable[str], now: float | None = None) -> None:
        """Reject sessions that cannot be used for a sync pass.

        Raises:
            AuthenticationRequired: If the token is empty, lacks a required
                scope, or has expired.
        """
        if not self.access_token:
            raise AuthenticationRequired(f"Not authenticated with {self.provider}")

        missing = self.missing_scopes(required_scopes)
        if missing:
            raise AuthenticationRequired(
                f"Not authenticated with the most recent {self.provider} scopes "
                f"(missing: {', '.join(sorted(missing))})"
            )

        if self.is_expired(now):
            raise AuthenticationRequired(f"{self.provider} session has expired")
