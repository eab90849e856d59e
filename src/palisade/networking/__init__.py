"""Networking layer: client, configuration and collaborators."""

from .client import HttpClient
from .config import HttpClientConfig
from .errors import (
    HttpClientError,
    InvalidUrlError,
    MalformedStatusLineError,
    RequestFailedError,
    RequestTimeoutError,
    ResolutionError,
    TargetResolutionError,
    TransportError,
)
from .methods import Method
from .models import FormBody, JsonBody, ParsedResponse, RawBody, RequestSpec
from .resolver import Resolver, SecureResolver, SecurityPolicy
from .transport import RawResponse, RequestsTransport, Transport
from .urls import resolve_url

__all__ = [
    "HttpClient",
    "HttpClientConfig",
    "HttpClientError",
    "InvalidUrlError",
    "MalformedStatusLineError",
    "RequestFailedError",
    "RequestTimeoutError",
    "ResolutionError",
    "TargetResolutionError",
    "TransportError",
    "Method",
    "FormBody",
    "JsonBody",
    "ParsedResponse",
    "RawBody",
    "RequestSpec",
    "Resolver",
    "SecureResolver",
    "SecurityPolicy",
    "RawResponse",
    "RequestsTransport",
    "Transport",
    "resolve_url",
]
