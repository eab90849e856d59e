"""SSRF-safe HTTP request execution."""

from .networking import HttpClient, HttpClientConfig

__version__ = "1.0.0"

__all__ = ["HttpClient", "HttpClientConfig", "__version__"]
