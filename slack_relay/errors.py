"""
Exception hierarchy for slack-relay.

Everything raised on purpose derives from RelayError so the HTTP layer can
map it to a response in one place (see middleware/error_handler.py).
"""

from typing import Any


class RelayError(Exception):
    """Base class for all slack-relay errors.

    Attributes:
        message: Human-readable error message.
        context: Extra key/value details, safe to return to the caller.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({context_str})"


# ---------------------------------------------------------------------------
# Upstream (Slack Web API)
# ---------------------------------------------------------------------------


class UpstreamError(RelayError):
    """Something went wrong talking to the Slack Web API."""

    def __init__(self, message: str, method: str, context: dict[str, Any] | None = None):
        super().__init__(message, context={"method": method, **(context or {})})
        self.method = method


class UpstreamUnavailable(UpstreamError):
    """Network error, timeout, throttling or 5xx. Safe to retry."""


class UpstreamRejected(UpstreamError):
    """Slack answered but reported a failure (``ok: false``). Never retried.

    ``error`` holds Slack's error code verbatim, e.g. ``channel_not_found``.
    """

    def __init__(self, error: str, method: str, status_code: int | None = None):
        context = {"status_code": status_code} if status_code else None
        super().__init__(error, method, context=context)
        self.error = error
        self.status_code = status_code


class PaginationLimitExceeded(UpstreamError):
    """The upstream kept returning cursors past the configured page cap."""

    def __init__(self, method: str, max_pages: int):
        super().__init__(
            f"Pagination exceeded {max_pages} pages",
            method,
            context={"max_pages": max_pages},
        )
        self.max_pages = max_pages


# ---------------------------------------------------------------------------
# Directory / dispatch
# ---------------------------------------------------------------------------


class DirectoryFetchError(RelayError):
    """Building the directory failed; ``details`` names each sub-failure."""

    def __init__(self, details: dict[str, str]):
        super().__init__("Failed to fetch Slack data")
        self.details = details


class DispatchValidationError(RelayError):
    """Caller input for a dispatch was rejected before any upstream call."""
