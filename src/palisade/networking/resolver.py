"""Hostname resolution with address-safety policy enforcement.

The client never connects to a hostname directly: it asks a ``Resolver`` for
one validated IP address and connects to that. ``SecureResolver`` is the
default implementation; callers may inject any object with a matching
``resolve_to_ip`` method.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
from dataclasses import dataclass
from typing import Callable, Protocol, Union

from .errors import ResolutionError

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


class Resolver(Protocol):
    def resolve_to_ip(self, hostname: str) -> str:
        """Return an IP literal for ``hostname`` or raise ResolutionError."""
        ...


def is_ip_literal(host: str) -> bool:
    """Return True when ``host`` is an IPv4 or IPv6 literal.

    Bracketed IPv6 (``[::1]``) is accepted as it appears in URLs.
    """
    candidate = host
    if host.startswith("[") and host.endswith("]"):
        candidate = host[1:-1]
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return False
    return True


def is_valid_hostname(host: str) -> bool:
    """Return True for a syntactically valid DNS hostname."""
    if not host or len(host) > 253:
        return False
    labels = host[:-1].split(".") if host.endswith(".") else host.split(".")
    return all(_HOSTNAME_LABEL.match(label) for label in labels)


def _strict_allow_ip(address: IPAddress) -> bool:
    """Allow only globally routable unicast addresses."""
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped:
        address = address.ipv4_mapped
    if not address.is_global:
        return False
    if address.is_multicast or address.is_unspecified or address.is_loopback:
        return False
    if address.is_link_local or address.is_reserved:
        return False
    return True


def _permissive_allow_ip(address: IPAddress) -> bool:
    return not address.is_unspecified


@dataclass(frozen=True)
class SecurityPolicy:
    """Decides which resolved addresses may be connected to."""

    allow_ip: Callable[[IPAddress], bool]

    @classmethod
    def strict(cls) -> SecurityPolicy:
        return cls(allow_ip=_strict_allow_ip)

    @classmethod
    def permissive(cls) -> SecurityPolicy:
        return cls(allow_ip=_permissive_allow_ip)


class SecureResolver:
    """Resolve through the system resolver and validate every answer.

    A host is rejected when any of its addresses is disallowed, so a DNS
    answer mixing public and internal addresses cannot be used to reach the
    internal one.
    """

    def __init__(self, policy: SecurityPolicy | None = None) -> None:
        self._policy = policy or SecurityPolicy.strict()

    def _lookup(self, hostname: str) -> list[str]:
        try:
            infos = socket.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as exc:
            raise ResolutionError(
                f"DNS resolution failed for {hostname}: {exc}"
            ) from exc
        addresses: list[str] = []
        for _family, _type, _proto, _canon, sockaddr in infos:
            ip = str(sockaddr[0])
            if ip not in addresses:
                addresses.append(ip)
        return addresses

    def resolve_to_ip(self, hostname: str) -> str:
        addresses = self._lookup(hostname)
        if not addresses:
            raise ResolutionError(f"No addresses found for {hostname}")
        for ip in addresses:
            # Drop any IPv6 zone index before parsing.
            address = ipaddress.ip_address(ip.split("%", 1)[0])
            if not self._policy.allow_ip(address):
                raise ResolutionError(
                    f"Hostname {hostname} resolves to disallowed address {ip}"
                )
        logger.debug("Resolved %s to %s", hostname, addresses[0])
        return addresses[0].split("%", 1)[0]
