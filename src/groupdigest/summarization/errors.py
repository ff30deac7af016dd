"""Exception types and provider error classification."""

from __future__ import annotations

import re

import anthropic
import openai

# Matches "rate limit", "rate_limit", "Rate-limited", "rate_limit_exceeded" ...
_RATE_LIMIT_PATTERN = re.compile(r"rate[\s_-]?limit", re.IGNORECASE)
_STATUS_429_PATTERN = re.compile(r"\b429\b")


class SummarizationError(Exception):
    """Base class for pipeline errors."""


class EmptyInputError(SummarizationError):
    """Raised when there is nothing to summarize."""


class RateLimitedError(SummarizationError):
    """The provider rejected a call because the caller's quota is exhausted."""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TransientProviderError(SummarizationError):
    """Network failure or 5xx from the provider."""


class RetriesExhaustedError(SummarizationError):
    """A call kept failing with a retryable error past the retry ceiling.

    ``rate_limited`` is True when the last failure was a rate-limit rejection,
    which has a known remedy: wait about ``retry_after`` seconds and try again.
    """

    def __init__(
        self,
        message: str,
        *,
        attempts: int,
        rate_limited: bool,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.rate_limited = rate_limited
        self.retry_after = retry_after


def _status_code(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if status is None:
        status = getattr(exc, "status", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def is_rate_limit_error(exc: BaseException) -> bool:
    """Return True if *exc* is a provider rate-limit rejection.

    Recognises our own ``RateLimitedError``, the ``openai`` and ``anthropic``
    SDK ``RateLimitError`` classes, anything carrying HTTP status 429, and
    errors whose message mentions a rate limit.
    """
    if isinstance(exc, RateLimitedError):
        return True
    if isinstance(exc, (openai.RateLimitError, anthropic.RateLimitError)):
        return True
    if _status_code(exc) == 429:
        return True
    text = str(exc)
    return bool(_RATE_LIMIT_PATTERN.search(text) or _STATUS_429_PATTERN.search(text))


def is_transient_error(exc: BaseException) -> bool:
    """Return True for connection failures and 5xx responses."""
    if isinstance(exc, TransientProviderError):
        return True
    if isinstance(
        exc,
        (
            openai.APIConnectionError,
            openai.InternalServerError,
            anthropic.APIConnectionError,
            anthropic.InternalServerError,
        ),
    ):
        return True
    status = _status_code(exc)
    return status is not None and status >= 500


__all__ = [
    "SummarizationError",
    "EmptyInputError",
    "RateLimitedError",
    "TransientProviderError",
    "RetriesExhaustedError",
    "is_rate_limit_error",
    "is_transient_error",
]
