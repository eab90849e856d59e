"""Synchronous, SSRF-safe HTTP client for the palisade networking layer.

Every request goes through the same pipeline: URL validation, target
resolution (hostname pinned to a validated IP), a bounded retry loop around
a single transport exchange, response parsing and redirect handling. All
progress counters live in per-call state, so one client may be shared by
concurrent callers.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from time import sleep
from typing import Any, Iterable, Mapping

from .config import HttpClientConfig, normalize_trusted_hosts
from .errors import InvalidUrlError, RequestFailedError, TransportError
from .guard import resolve_target
from .methods import Method
from .models import (
    FORM_CONTENT_TYPE,
    Body,
    ExecutionState,
    JsonBody,
    ParsedResponse,
    RequestSpec,
    encode_body,
    normalize_headers,
)
from .parser import parse_response
from .redirect import RedirectState, next_step
from .resolver import Resolver, SecureResolver
from .retry import RetryController
from .transport import RawResponse, RequestsTransport, Transport
from .types import Err, Ok, Result
from .urls import UrlParts, split_url

logger = logging.getLogger(__name__)

Headers = Mapping[str, str] | Iterable[tuple[str, str]] | None

ALLOWED_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}


class HttpClient:
    """Core HTTP client (sync).

    Hostnames are resolved to a validated IP address before any connection
    is opened, unless the host is trusted or already an IP literal. The
    original hostname is still sent in the ``Host`` header and used to
    verify the TLS certificate.
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        *,
        resolver: Resolver | None = None,
        transport: Transport | None = None,
    ) -> None:
        """Create a new HttpClient.

        Args:
            config: Timeouts, redirect/retry budgets and trusted hosts.
            resolver: Address-safety resolver; defaults to a strict
                ``SecureResolver``.
            transport: Raw exchange implementation; defaults to
                ``RequestsTransport``.
        """
        self._config = config or HttpClientConfig()
        self._resolver: Resolver = resolver or SecureResolver()
        self._transport: Transport = transport or RequestsTransport()
        self._retry = RetryController()

    @property
    def config(self) -> HttpClientConfig:
        return self._config

    def _reconfigure(self, **changes: Any) -> HttpClient:
        self._config = replace(self._config, **changes)
        return self

    def set_timeout(self, timeout_seconds: float) -> HttpClient:
        """Set the per-call timeout; a negative value disables it."""
        return self._reconfigure(timeout_seconds=timeout_seconds)

    def set_max_redirects(self, max_redirects: int) -> HttpClient:
        """Set how many redirects to follow; 0 follows none."""
        return self._reconfigure(max_redirects=max_redirects)

    def set_max_retries(self, max_retries: int) -> HttpClient:
        return self._reconfigure(max_retries=max_retries)

    def use_strict_redirects(self, enabled: bool = True) -> HttpClient:
        """Keep method and body on 301/302 redirects instead of using GET."""
        return self._reconfigure(strict_redirects=enabled)

    def set_user_agent(self, user_agent: str | None) -> HttpClient:
        return self._reconfigure(user_agent=user_agent or "")

    def set_base_uri(self, base_uri: str | None) -> HttpClient:
        return self._reconfigure(base_uri=base_uri)

    def trust_to(self, *hosts: str) -> HttpClient:
        """Skip address validation for ``hosts``."""
        trusted = self._config.trusted_hosts | normalize_trusted_hosts(hosts)
        return self._reconfigure(trusted_hosts=trusted)

    def set_transport_options(self, options: Mapping[str, Any]) -> HttpClient:
        return self._reconfigure(transport_options=options)

    def set_resolver(self, resolver: Resolver) -> HttpClient:
        self._resolver = resolver
        return self

    def set_transport(self, transport: Transport) -> HttpClient:
        self._transport = transport
        return self

    @staticmethod
    def _apply_base_uri(url: str, config: HttpClientConfig) -> str:
        if config.base_uri and not url.startswith("http"):
            return f"{config.base_uri}/{url.lstrip('/')}"
        return url

    @staticmethod
    def _validate_url(url: str) -> UrlParts:
        """Return the components of ``url`` or raise InvalidUrlError."""
        if not url or any(char.isspace() for char in url):
            raise InvalidUrlError("Invalid url was provided.")
        parts = split_url(url)
        if parts.scheme is None or parts.scheme.lower() not in ALLOWED_SCHEMES:
            raise InvalidUrlError(
                "Invalid url scheme. Only HTTP and HTTPS are supported."
            )
        if not parts.host:
            raise InvalidUrlError("Invalid url: missing host.")
        return parts

    @staticmethod
    def _host_header(parts: UrlParts) -> str:
        host = parts.host or ""
        scheme = (parts.scheme or "").lower()
        if parts.port is not None and parts.port != DEFAULT_PORTS.get(scheme):
            return f"{host}:{parts.port}"
        return host

    @staticmethod
    def _build_headers(
        headers: Iterable[tuple[str, str]],
        host_header: str,
        config: HttpClientConfig,
    ) -> list[str]:
        """Build ``"name: value"`` lines with lower-cased, unique names."""
        canonical: dict[str, str] = {}
        for name, value in headers:
            canonical[name.strip().lower()] = value
        canonical["host"] = host_header
        canonical["user-agent"] = config.user_agent
        return [f"{name}: {value}" for name, value in canonical.items()]

    @staticmethod
    def _build_meta(
        request: RequestSpec,
        target_url: str,
        attempts: int,
        timeout: float,
        final_error: str | None = None,
    ) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "method": request.method.value,
            "url": request.url,
            "target_url": target_url,
            "attempts": attempts,
            "retries": attempts - 1,
            "timeout_s": timeout,
        }
        if final_error is not None:
            meta["final_error"] = final_error
        return meta

    def _fetch(
        self,
        request: RequestSpec,
        target_url: str,
        header_lines: list[str],
        server_hostname: str,
        config: HttpClientConfig,
    ) -> Result[RawResponse, TransportError]:
        """Run the transport with retries and backoff."""
        attempts = 0
        while True:
            attempts += 1
            try:
                raw = self._transport.fetch(
                    request.method.value,
                    target_url,
                    header_lines,
                    request.body,
                    config.timeout_seconds,
                    follow_redirects=False,
                    options=config.transport_options,
                    server_hostname=server_hostname,
                )
                return Ok(
                    raw,
                    meta=self._build_meta(
                        request, target_url, attempts, config.timeout_seconds
                    ),
                )
            except TransportError as exc:
                retries = attempts - 1
                if not self._retry.should_retry(retries, config.max_retries):
                    return Err(
                        exc,
                        meta=self._build_meta(
                            request,
                            target_url,
                            attempts,
                            config.timeout_seconds,
                            final_error=type(exc).__name__,
                        ),
                    )
                delay = self._retry.next_delay(retries + 1)
                logger.warning(
                    "%s %s failed (%s); retry %d/%d in %.2fs",
                    request.method.value,
                    request.url,
                    exc,
                    retries + 1,
                    config.max_retries,
                    delay,
                )
                sleep(delay)

    def _send_once(
        self,
        request: RequestSpec,
        config: HttpClientConfig,
        state: ExecutionState,
    ) -> tuple[ParsedResponse, ExecutionState]:
        """Send one hop and parse its response."""
        parts = self._validate_url(request.url)
        host = parts.host or ""
        target_url = resolve_target(request.url, host, config, self._resolver)
        header_lines = self._build_headers(
            request.headers, self._host_header(parts), config
        )

        result = self._fetch(
            request,
            target_url,
            header_lines,
            host.strip("[]"),
            config,
        )
        state = state.with_retries(result.meta["retries"])
        if not result.ok:
            raise RequestFailedError(
                request.url,
                state.retries_attempted,
                state.redirects_followed,
            ) from result.error

        raw = result.value
        return parse_response(raw.header_lines, raw.body), state

    def send(self, request: RequestSpec) -> ParsedResponse:
        """Execute ``request``, following redirects within the budget.

        Raises:
            InvalidUrlError: The URL is malformed or not http(s).
            TargetResolutionError: The host could not be resolved to an
                allowed address.
            RequestFailedError: The transport failed on every attempt.
            MalformedStatusLineError: The response is not readable as HTTP.
        """
        config = self._config
        url = self._apply_base_uri(request.url, config)
        request = replace(request, url=url)
        state = ExecutionState()

        while True:
            response, state = self._send_once(request, config, state)
            step = next_step(response, request, config, state)
            if step.state is RedirectState.TERMINATE or step.request is None:
                return response
            request = step.request
            state = state.after_redirect()

    def execute(
        self,
        method: Method | str,
        url: str,
        body: Body = None,
        headers: Headers = None,
    ) -> ParsedResponse:
        """Perform an HTTP request.

        Args:
            method: HTTP method name or ``Method`` member.
            url: Absolute URL, or a path relative to the configured base URI.
            body: Optional request body (bytes, str, form mapping or a body
                variant from ``palisade.networking.models``).
            headers: Optional request headers.

        Returns:
            The final ParsedResponse. HTTP error statuses are returned, not
            raised.
        """
        return self._request(
            method, url, body, headers, default_content_type=None
        )

    def _request(
        self,
        method: Method | str,
        url: str,
        body: Body,
        headers: Headers,
        default_content_type: str | None,
    ) -> ParsedResponse:
        content, content_type = encode_body(body)
        header_items = list(normalize_headers(headers))
        if not content_type and content is not None:
            content_type = default_content_type
        if content_type and not any(
            name.strip().lower() == "content-type" for name, _ in header_items
        ):
            header_items.insert(0, ("Content-Type", content_type))
        return self.send(
            RequestSpec(
                method=Method.coerce(method),
                url=url,
                body=content,
                headers=tuple(header_items),
            )
        )

    def get(self, url: str, *, headers: Headers = None) -> ParsedResponse:
        """Perform an HTTP GET request.

        Args:
            url: Absolute URL, or a path relative to the configured base URI.
            headers: Optional request headers.

        Returns:
            The final ParsedResponse after any redirects.
        """
        return self.execute(Method.GET, url, headers=headers)

    def head(self, url: str, *, headers: Headers = None) -> ParsedResponse:
        """Perform an HTTP HEAD request."""
        return self.execute(Method.HEAD, url, headers=headers)

    def delete(self, url: str, *, headers: Headers = None) -> ParsedResponse:
        """Perform an HTTP DELETE request."""
        return self.execute(Method.DELETE, url, headers=headers)

    def options(self, url: str, *, headers: Headers = None) -> ParsedResponse:
        """Perform an HTTP OPTIONS request."""
        return self.execute(Method.OPTIONS, url, headers=headers)

    def _with_body(
        self,
        method: Method,
        url: str,
        body: Body,
        headers: Headers,
        json: Any,
    ) -> ParsedResponse:
        if json is not None:
            if body is not None:
                raise ValueError("body and json are mutually exclusive")
            body = JsonBody(json)
        return self._request(
            method, url, body, headers, default_content_type=FORM_CONTENT_TYPE
        )

    def post(
        self,
        url: str,
        body: Body = None,
        *,
        headers: Headers = None,
        json: Any = None,
    ) -> ParsedResponse:
        """Perform an HTTP POST request.

        A mapping body is form-encoded; ``json`` serializes a value as JSON.
        Without an explicit content type the request is sent as
        ``application/x-www-form-urlencoded``.
        """
        return self._with_body(Method.POST, url, body, headers, json)

    def put(
        self,
        url: str,
        body: Body = None,
        *,
        headers: Headers = None,
        json: Any = None,
    ) -> ParsedResponse:
        """Perform an HTTP PUT request. Body handling matches ``post``."""
        return self._with_body(Method.PUT, url, body, headers, json)

    def patch(
        self,
        url: str,
        body: Body = None,
        *,
        headers: Headers = None,
        json: Any = None,
    ) -> ParsedResponse:
        """Perform an HTTP PATCH request. Body handling matches ``post``."""
        return self._with_body(Method.PATCH, url, body, headers, json)
