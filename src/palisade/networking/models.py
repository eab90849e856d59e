"""Request, response and per-call state models."""

from __future__ import annotations

import json as jsonlib
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Sequence, Tuple, Union
from urllib.parse import urlencode

from .methods import Method

HeaderList = Tuple[Tuple[str, str], ...]

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


def normalize_headers(
    headers: Mapping[str, str] | Iterable[tuple[str, str]] | None,
) -> HeaderList:
    if headers is None:
        return ()
    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple((str(name), str(value)) for name, value in items)


@dataclass(frozen=True)
class RequestSpec:
    """One outbound request.

    Redirects derive a new request instead of mutating this one.
    """

    method: Method
    url: str
    body: bytes | None = None
    headers: HeaderList = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "method", Method.coerce(self.method))
        object.__setattr__(self, "headers", normalize_headers(self.headers))

    def with_redirect(
        self, url: str, method: Method, body: bytes | None
    ) -> RequestSpec:
        return replace(self, url=url, method=method, body=body)


@dataclass(frozen=True)
class ExecutionState:
    """Progress of one logical call across redirect hops.

    ``retries_attempted`` counts retries on the current hop only and is what
    a failed call reports.
    """

    redirects_followed: int = 0
    retries_attempted: int = 0

    def after_redirect(self) -> ExecutionState:
        return ExecutionState(
            redirects_followed=self.redirects_followed + 1,
            retries_attempted=0,
        )

    def with_retries(self, retries: int) -> ExecutionState:
        return replace(self, retries_attempted=retries)


@dataclass(frozen=True)
class ParsedResponse:
    """Final status, headers and body of one HTTP exchange."""

    status_code: int
    reason_phrase: str = ""
    headers: HeaderList = ()
    body: bytes = b""

    def header_values(self, name: str) -> list[str]:
        """Return every value of header ``name`` (case-insensitive)."""
        wanted = name.lower()
        return [value for key, value in self.headers if key.lower() == wanted]

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of header ``name`` or ``default``."""
        values = self.header_values(name)
        return values[0] if values else default

    def header_line(self, name: str) -> str:
        return ", ".join(self.header_values(name))

    def has_header(self, name: str) -> bool:
        return bool(self.header_values(name))


@dataclass(frozen=True)
class RawBody:
    """Body bytes sent as given."""

    content: bytes
    content_type: str | None = None


@dataclass(frozen=True)
class FormBody:
    """Form fields encoded as ``application/x-www-form-urlencoded``."""

    fields: Mapping[str, Any] | Sequence[tuple[str, Any]] = field(
        default_factory=dict
    )


@dataclass(frozen=True)
class JsonBody:
    """A value serialized as JSON."""

    value: Any = None


Body = Union[RawBody, FormBody, JsonBody, bytes, str, Mapping[str, Any], None]


def encode_body(body: Body) -> tuple[bytes | None, str | None]:
    """Resolve ``body`` into concrete bytes and a default content type.

    Plain ``bytes``/``str`` are sent as-is without a content type; a mapping
    is treated as form fields.
    """
    if body is None:
        return None, None
    if isinstance(body, RawBody):
        return body.content, body.content_type
    if isinstance(body, bytes):
        return body, None
    if isinstance(body, str):
        return body.encode("utf-8"), None
    if isinstance(body, JsonBody):
        try:
            encoded = jsonlib.dumps(body.value, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise ValueError("Failed to encode the body") from exc
        return encoded.encode("utf-8"), JSON_CONTENT_TYPE
    fields = body.fields if isinstance(body, FormBody) else body
    return urlencode(fields, doseq=True).encode("ascii"), FORM_CONTENT_TYPE
