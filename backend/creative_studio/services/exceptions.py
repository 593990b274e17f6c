"""Error taxonomy for the generation orchestration layer."""
from __future__ import annotations

from dataclasses import dataclass


class GenerationError(Exception):
    """Base class for every error raised by the generation layer."""


class ValidationError(GenerationError):
    """Request is malformed; raised before anything is queued."""


class RateLimitedError(GenerationError):
    """Provider window is full. Handled as a skip, never surfaced on its own."""

    def __init__(self, provider: str, retry_at: float | None = None):
        self.provider = provider
        self.retry_at = retry_at
        super().__init__(f"Rate limit reached for {provider}")


class ProviderError(GenerationError):
    """Adapter-level failure: HTTP error, malformed response, bad credentials."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


class GenerationTimeoutError(ProviderError):
    def __init__(self, provider: str, timeout: float):
        self.timeout = timeout
        super().__init__(provider, f"generation timed out after {timeout:.0f}s")


@dataclass
class ProviderAttempt:
    provider: str
    outcome: str  # "rate_limited" | "failed"
    detail: str = ""


class AllProvidersFailedError(GenerationError):
    """Every provider in the fallback chain was rate limited or failed."""

    def __init__(self, media_type: str, attempts: list[ProviderAttempt]):
        self.media_type = media_type
        self.attempts = attempts
        summary = "; ".join(
            f"{a.provider} {a.outcome}" + (f" ({a.detail})" if a.detail else "")
            for a in attempts
        ) or "no providers available"
        super().__init__(f"All {media_type} generation providers failed: {summary}")
