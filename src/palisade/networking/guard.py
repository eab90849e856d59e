"""Choose the network destination for a request.

The destination is a validated IP address whenever the host is neither
trusted nor already an IP literal. The original hostname stays with the
caller for the ``Host`` header and TLS verification; only the URL used to
open the connection is rewritten.
"""

from __future__ import annotations

import logging

from .config import HttpClientConfig
from .errors import ResolutionError, TargetResolutionError
from .resolver import Resolver, is_ip_literal
from .urls import replace_host

logger = logging.getLogger(__name__)


def resolve_target(
    url: str,
    host: str,
    config: HttpClientConfig,
    resolver: Resolver,
) -> str:
    """Return the URL to connect to for ``url``.

    Raises:
        TargetResolutionError: The resolver could not resolve ``host`` or
            rejected every address it resolved to.
    """
    if host.lower() in config.trusted_hosts:
        logger.debug("Host %s is trusted; skipping resolution", host)
        return url

    if is_ip_literal(host):
        return url

    try:
        ip = resolver.resolve_to_ip(host)
    except (ResolutionError, OSError) as exc:
        raise TargetResolutionError(host, str(exc)) from exc

    if not ip or not is_ip_literal(ip):
        raise TargetResolutionError(host, f"resolver returned {ip!r}")

    logger.debug("Pinned %s to %s", host, ip)
    return replace_host(url, ip)
