"""URL splitting, reconstruction and RFC 2396 relative reference resolution.

``resolve_url`` is used both for computing redirect targets and, through
``build_url``/``replace_host``, for pointing a request at a validated IP
address while leaving every other component of the URL untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace

from .errors import InvalidUrlError

# RFC 3986, Appendix B. Groups distinguish an absent component from an
# empty one ("http://h/p" has no query, "http://h/p?" has an empty one).
_URL_PATTERN = re.compile(
    r"^(?:(?P<scheme>[^:/?#]+):)?"
    r"(?://(?P<authority>[^/?#]*))?"
    r"(?P<path>[^?#]*)"
    r"(?:\?(?P<query>[^#]*))?"
    r"(?:#(?P<fragment>.*))?$",
    re.DOTALL,
)
_SCHEME_PREFIX = re.compile(r"^[a-z]+:", re.IGNORECASE)
MAX_PORT = 65535


@dataclass(frozen=True)
class UrlParts:
    """Components of a URL; absent components are ``None``."""

    scheme: str | None = None
    user: str | None = None
    password: str | None = None
    host: str | None = None
    port: int | None = None
    path: str | None = None
    query: str | None = None
    fragment: str | None = None


def _split_host_port(hostport: str) -> tuple[str | None, str | None]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            raise InvalidUrlError(f"Unterminated IPv6 literal in '{hostport}'")
        host = hostport[: end + 1]
        rest = hostport[end + 1 :]
        if rest and not rest.startswith(":"):
            raise InvalidUrlError(
                f"Unexpected text after IPv6 literal in '{hostport}'"
            )
        return host, rest[1:] or None
    host, sep, port = hostport.rpartition(":")
    if not sep:
        return hostport or None, None
    return host or None, port or None


def split_url(url: str) -> UrlParts:
    """Split ``url`` into components, keeping the host text as written."""
    match = _URL_PATTERN.match(url)
    if match is None:  # pragma: no cover - the pattern matches any string
        raise InvalidUrlError(f"Unable to parse url '{url}'")

    user = password = host = None
    port: int | None = None
    authority = match.group("authority")
    if authority is not None:
        userinfo, at, hostport = authority.rpartition("@")
        if at:
            user, colon, pass_text = userinfo.partition(":")
            password = pass_text if colon else None
        host, port_text = _split_host_port(hostport)
        if port_text is not None:
            valid = port_text.isascii() and port_text.isdigit()
            if not valid or int(port_text) > MAX_PORT:
                raise InvalidUrlError(
                    f"Invalid port '{port_text}' in url '{url}'"
                )
            port = int(port_text)

    return UrlParts(
        scheme=match.group("scheme"),
        user=user or None,
        password=password,
        host=host,
        port=port,
        path=match.group("path") or None,
        query=match.group("query"),
        fragment=match.group("fragment"),
    )


def format_host(ip: str) -> str:
    """Return ``ip`` in the form it takes inside a URL authority."""
    if ":" in ip and not ip.startswith("["):
        return f"[{ip}]"
    return ip


def build_url(parts: UrlParts, ip: str | None = None) -> str:
    """Reassemble a URL, substituting ``ip`` for the host when given."""
    scheme = f"{parts.scheme}://" if parts.scheme is not None else ""
    host = format_host(ip) if ip is not None else (parts.host or "")
    port = f":{parts.port}" if parts.port is not None else ""
    user = parts.user or ""
    password = f":{parts.password}" if parts.password is not None else ""
    userinfo = f"{user}{password}@" if (user or password) else ""
    path = parts.path or ""
    query = f"?{parts.query}" if parts.query is not None else ""
    fragment = f"#{parts.fragment}" if parts.fragment is not None else ""
    return f"{scheme}{userinfo}{host}{port}{path}{query}{fragment}"


def replace_host(url: str, ip: str) -> str:
    """Point ``url`` at ``ip`` without touching any other component."""
    return build_url(split_url(url), ip)


def _can_pop(segments: list[str]) -> bool:
    return bool(segments) and segments[-1] != ".."


def _at_root(segments: list[str]) -> bool:
    return segments == [""]


def _merge_path(base_path: str, reference: str) -> str:
    segments = base_path.split("/")
    segments.pop()
    ref_segments = reference.split("/")
    end = ref_segments.pop()

    for segment in ref_segments:
        if segment == ".":
            continue
        if segment == ".." and _at_root(segments):
            continue
        if segment == ".." and _can_pop(segments):
            segments.pop()
        else:
            segments.append(segment)

    if end == ".":
        segments.append("")
    elif end == ".." and _at_root(segments):
        segments.append("")
    elif end == ".." and _can_pop(segments):
        segments[-1] = ""
    else:
        segments.append(end)
    return "/".join(segments)


def resolve_url(reference: str, base: str) -> str:
    """Resolve ``reference`` against ``base`` (RFC 2396, section 5.2).

    >>> resolve_url("../x", "https://example.com/a/b/c")
    'https://example.com/a/x'
    """
    if base == "":
        return reference
    if reference == "":
        return base
    if _SCHEME_PREFIX.match(reference):
        return reference

    parts = split_url(base)
    if reference.startswith("#"):
        return build_url(replace(parts, query=None, fragment=reference[1:]))

    parts = replace(parts, query=None, fragment=None)
    if reference.startswith("//"):
        return build_url(UrlParts(scheme=parts.scheme, path=reference[2:]))

    if reference.startswith("/"):
        return build_url(replace(parts, path=reference))

    base_path = parts.path
    if base_path is None and parts.host is not None:
        base_path = "/"
    path = _merge_path(base_path or "", reference)
    return build_url(replace(parts, path=path))
