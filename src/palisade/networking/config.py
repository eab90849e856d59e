"""Configuration models for the HttpClient interface."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .resolver import is_valid_hostname

CLIENT_VERSION = "1.0"


def default_user_agent() -> str:
    return f"palisade/{CLIENT_VERSION}"


def _default_transport_options() -> Mapping[str, Any]:
    """Return immutable empty transport options mapping."""

    return MappingProxyType({})


def normalize_trusted_hosts(hosts: Iterable[str]) -> frozenset[str]:
    """Validate and lower-case a collection of trusted hostnames."""
    if isinstance(hosts, str):
        hosts = (hosts,)
    normalized: set[str] = set()
    for host in hosts:
        if not isinstance(host, str) or not is_valid_hostname(host):
            raise ValueError(f"Invalid hostname {host}")
        normalized.add(host.lower())
    return frozenset(normalized)


@dataclass(frozen=True)
class HttpClientConfig:
    """Configuration for HttpClient behavior.

    A config is immutable; the client swaps in a new instance whenever one of
    its setters is called, so a request in flight keeps the config it started
    with.

    ``timeout_seconds`` may not be zero; a negative value means no timeout.
    """

    timeout_seconds: float = 10.0
    max_redirects: int = 3
    max_retries: int = 0
    strict_redirects: bool = False
    user_agent: str = field(default_factory=default_user_agent)
    base_uri: str | None = None
    trusted_hosts: frozenset[str] = frozenset()
    transport_options: Mapping[str, Any] = field(
        default_factory=_default_transport_options
    )

    def __post_init__(self) -> None:
        if self.timeout_seconds == 0:
            raise ValueError(
                "timeout_seconds can't be 0. "
                "Specifying a negative value means an infinite timeout."
            )
        if self.max_redirects < 0:
            raise ValueError("max_redirects can not be less than zero")
        if self.max_retries < 0:
            raise ValueError("max_retries can not be less than zero")
        if not self.user_agent:
            object.__setattr__(self, "user_agent", default_user_agent())

        if self.base_uri is not None:
            base_uri = self.base_uri.rstrip("/")
            object.__setattr__(self, "base_uri", base_uri or None)

        object.__setattr__(
            self,
            "trusted_hosts",
            normalize_trusted_hosts(self.trusted_hosts),
        )
        # Freeze copied options to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "transport_options",
            MappingProxyType(dict(self.transport_options)),
        )

    @property
    def infinite_timeout(self) -> bool:
        return self.timeout_seconds < 0

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> HttpClientConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**dict(values))
