"""Transport boundary: one raw HTTP exchange, no redirects, no status checks.

``RequestsTransport`` is the default implementation. It connects to whatever
host the URL names (normally an already validated IP address) while the TLS
handshake verifies the certificate against ``server_hostname``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence

import requests
from requests.adapters import HTTPAdapter

from .errors import RequestTimeoutError, TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """Status line followed by header lines, plus the body bytes."""

    header_lines: tuple[str, ...]
    body: bytes = b""


class Transport(Protocol):
    def fetch(
        self,
        method: str,
        url: str,
        headers: Sequence[str],
        body: bytes | None,
        timeout_seconds: float,
        *,
        follow_redirects: bool = False,
        options: Mapping[str, Any] | None = None,
        server_hostname: str | None = None,
    ) -> RawResponse:
        """Perform one exchange or raise TransportError."""
        ...


class ServerNameAdapter(HTTPAdapter):
    """HTTPS adapter that verifies the peer against a fixed hostname."""

    def __init__(self, server_hostname: str, **kwargs: Any) -> None:
        # HTTPAdapter.__init__ builds the pool manager, which reads this.
        self._server_hostname = server_hostname
        super().__init__(**kwargs)

    def init_poolmanager(
        self,
        connections: int,
        maxsize: int,
        block: bool = False,
        **pool_kwargs: Any,
    ) -> None:
        pool_kwargs["server_hostname"] = self._server_hostname
        pool_kwargs["assert_hostname"] = self._server_hostname
        super().init_poolmanager(connections, maxsize, block, **pool_kwargs)


def split_header_lines(headers: Sequence[str]) -> list[tuple[str, str]]:
    """Split ``"name: value"`` strings into pairs."""
    pairs = []
    for line in headers:
        name, _, value = line.partition(":")
        pairs.append((name.strip(), value.strip()))
    return pairs


def _http_version(raw: Any) -> str:
    version = getattr(raw, "version", None)
    if isinstance(version, int) and version > 0:
        return f"{version // 10}.{version % 10}"
    return "1.1"


def raw_header_lines(response: requests.Response) -> tuple[str, ...]:
    """Rebuild the status line and header lines of a requests response."""
    status_line = (
        f"HTTP/{_http_version(response.raw)} {response.status_code} "
        f"{response.reason or ''}"
    ).rstrip()
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is None:
        raw_headers = response.headers
    items = raw_headers.items()
    return (status_line, *(f"{name}: {value}" for name, value in items))


class RequestsTransport:
    """Transport backed by a short-lived ``requests.Session`` per exchange."""

    def _session(self, server_hostname: str | None) -> requests.Session:
        session = requests.Session()
        # Only the headers built by the client go on the wire.
        session.headers.clear()
        if server_hostname:
            session.mount("https://", ServerNameAdapter(server_hostname))
        return session

    def fetch(
        self,
        method: str,
        url: str,
        headers: Sequence[str],
        body: bytes | None,
        timeout_seconds: float,
        *,
        follow_redirects: bool = False,
        options: Mapping[str, Any] | None = None,
        server_hostname: str | None = None,
    ) -> RawResponse:
        kwargs: dict[str, Any] = dict(options or {})
        kwargs["headers"] = dict(split_header_lines(headers))
        kwargs["data"] = body
        kwargs["timeout"] = None if timeout_seconds < 0 else timeout_seconds
        kwargs["allow_redirects"] = follow_redirects

        logger.debug("%s %s", method, url)
        try:
            with self._session(server_hostname) as session:
                response = session.request(method, url, **kwargs)
                lines = raw_header_lines(response)
                return RawResponse(lines, response.content)
        except requests.exceptions.Timeout as exc:
            raise RequestTimeoutError(str(exc)) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(str(exc)) from exc
