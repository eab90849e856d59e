"""Error taxonomy for the palisade networking layer."""

from __future__ import annotations


class HttpClientError(Exception):
    """Base class for every error raised by the HTTP client."""


class InvalidUrlError(HttpClientError, ValueError):
    """The URL is malformed, uses a disallowed scheme, or has no host."""


class ResolutionError(HttpClientError):
    """A resolver could not produce an acceptable address for a host."""


class TargetResolutionError(HttpClientError):
    """The request target was rejected before any connection was made."""

    def __init__(self, host: str, reason: str) -> None:
        self.host = host
        self.reason = reason
        super().__init__(
            f"Unable to resolve a safe address for '{host}': {reason}"
        )


class MalformedStatusLineError(HttpClientError, ValueError):
    """The transport returned data that cannot be read as an HTTP response."""

    def __init__(self, status_line: str | None) -> None:
        self.status_line = status_line
        super().__init__(f'"{status_line}" is not a valid HTTP status line')


class TransportError(HttpClientError):
    """The transport could not complete the exchange at all."""


class RequestTimeoutError(TransportError):
    """The exchange did not finish within the configured timeout."""


class RequestFailedError(HttpClientError):
    """All attempts for one request failed at the transport level.

    ``redirects_followed`` records how many redirect hops had already
    completed when the failing hop was attempted.
    """

    def __init__(
        self, url: str, retries: int, redirects_followed: int = 0
    ) -> None:
        self.url = url
        self.retries = retries
        self.redirects_followed = redirects_followed
        message = f"Failed to fetch '{url}' after {retries} retries"
        if redirects_followed:
            message += f" ({redirects_followed} redirects followed)"
        super().__init__(message)
