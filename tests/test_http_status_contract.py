# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
from unittest.mock import Mock

from palisade.networking.client import HttpClient
from palisade.networking.config import HttpClientConfig
from palisade.networking.transport import RawResponse


def _client(raw: RawResponse, **config):
    resolver = Mock(spec=["resolve_to_ip"])
    resolver.resolve_to_ip.return_value = "93.184.216.34"
    transport = Mock(spec=["fetch"])
    transport.fetch.return_value = raw
    client = HttpClient(
        HttpClientConfig(timeout_seconds=5.0, **config),
        resolver=resolver,
        transport=transport,
    )
    return client, transport


def test_get_404_is_returned_with_status():
    client, _ = _client(
        RawResponse(
            ("HTTP/1.1 404 Not Found", "Content-Type: text/plain"),
            b"not found",
        )
    )

    response = client.get("http://example.com/missing")

    assert response.status_code == 404
    assert response.reason_phrase == "Not Found"
    assert response.headers == (("Content-Type", "text/plain"),)
    assert response.body == b"not found"


def test_get_500_is_returned_with_status():
    client, _ = _client(
        RawResponse(("HTTP/1.1 500 Internal Server Error",), b"server error")
    )

    response = client.get("http://example.com/error")

    assert response.status_code == 500
    assert response.reason_phrase == "Internal Server Error"
    assert response.body == b"server error"


def test_get_302_without_redirects_is_returned_with_status():
    client, transport = _client(
        RawResponse(("HTTP/1.1 302 Found", "Location: /elsewhere"), b""),
        max_redirects=0,
    )

    response = client.get("http://example.com/redirect")

    assert response.status_code == 302
    assert response.reason_phrase == "Found"
    assert response.header("Location") == "/elsewhere"
    transport.fetch.assert_called_once()
    assert transport.fetch.call_args.kwargs["follow_redirects"] is False


def test_transport_reported_hops_keep_only_final_status():
    client, _ = _client(
        RawResponse(
            (
                "HTTP/1.1 301 Moved Permanently",
                "Location: /new",
                "HTTP/1.1 200 OK",
                "Content-Length: 2",
            ),
            b"ok",
        )
    )

    response = client.get("http://example.com/old")

    assert response.status_code == 200
    assert response.headers == (("Content-Length", "2"),)
