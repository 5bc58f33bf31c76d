"""Error taxonomy shared by every layer."""
from __future__ import annotations

from typing import Optional


class DecayTrackerError(Exception):
    """Base error for the decay tracker."""


class ConfigurationError(DecayTrackerError):
    """Missing or malformed configuration; fatal at process start."""


class ProviderError(DecayTrackerError):
    """Failure reported by (or while talking to) the rank/match provider."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AccountNotFound(ProviderError):
    pass


class InvalidCredential(ProviderError):
    pass


class RateLimited(ProviderError):
    """Still receiving 429 after the gateway exhausted its attempts."""


class UpstreamUnavailable(ProviderError):
    """5xx, timeout or transport failure."""


class UnsupportedRegion(ProviderError):
    """Region outside the allow-list; raised before any network call."""


class RateLimitUnavailable(DecayTrackerError):
    """The token buckets never freed up within the bounded polling attempts."""


class PersistenceError(DecayTrackerError):
    pass


class DuplicateLinkError(PersistenceError):
    """The user already tracks this account."""


class LinkNotFound(PersistenceError):
    pass


class InvariantViolation(DecayTrackerError):
    pass
