"""Turn raw status and header lines into a ParsedResponse."""

from __future__ import annotations

from typing import Iterable

from .errors import MalformedStatusLineError
from .models import ParsedResponse


def normalize_header_lines(lines: Iterable[str]) -> list[str]:
    """Keep only the block that belongs to the last status line.

    Some transports report one status block per redirect hop they handled
    themselves; each ``HTTP/`` line starts over. Lines without a colon are
    dropped.
    """
    normalized: list[str] = []
    for line in lines:
        trimmed = line.strip()
        if trimmed.lower().startswith("http/"):
            normalized = [trimmed]
            continue
        if ":" not in trimmed:
            continue
        normalized.append(trimmed)
    return normalized


def parse_status_line(status_line: str | None) -> tuple[int, str]:
    """Return ``(status_code, reason_phrase)`` from an HTTP status line."""
    if not status_line:
        raise MalformedStatusLineError(status_line)
    parts = status_line.split(" ", 2)
    if len(parts) < 2 or not parts[0].lower().startswith("http/"):
        raise MalformedStatusLineError(status_line)
    try:
        code = int(parts[1])
    except ValueError:
        raise MalformedStatusLineError(status_line) from None
    if not 100 <= code <= 599:
        raise MalformedStatusLineError(status_line)
    reason = parts[2] if len(parts) > 2 else ""
    return code, reason


def parse_response(lines: Iterable[str], body: bytes) -> ParsedResponse:
    normalized = normalize_header_lines(lines)
    status_line = normalized[0] if normalized else None
    code, reason = parse_status_line(status_line)

    headers = []
    for line in normalized[1:]:
        name, _, value = line.partition(":")
        headers.append((name.strip(), value.strip()))

    return ParsedResponse(
        status_code=code,
        reason_phrase=reason,
        headers=tuple(headers),
        body=body,
    )
