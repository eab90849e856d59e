# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
# pyright: reportUnknownVariableType=false, reportMissingParameterType=false
from unittest.mock import Mock, patch

import pytest
import requests

from palisade.networking.errors import RequestTimeoutError, TransportError
from palisade.networking.transport import (
    RawResponse,
    RequestsTransport,
    ServerNameAdapter,
    raw_header_lines,
    split_header_lines,
)

HEADERS = ["host: example.com", "user-agent: palisade/1.0"]
IP_URL = "http://93.184.216.34/"


def _mock_response(
    *,
    content: bytes = b"",
    status: int = 200,
    reason: str = "OK",
    version: int = 11,
    headers: dict[str, str] | None = None,
):
    response = Mock()
    response.content = content
    response.status_code = status
    response.reason = reason
    response.raw.version = version
    response.raw.headers = headers if headers is not None else {
        "Content-Type": "text/plain"
    }
    return response


@patch("requests.Session.request")
def test_fetch_returns_raw_lines_and_body(mock_request):
    mock_request.return_value = _mock_response(content=b"hello")

    raw = RequestsTransport().fetch(
        "GET", "https://93.184.216.34/x", HEADERS, None, 5.0
    )

    assert raw == RawResponse(
        ("HTTP/1.1 200 OK", "Content-Type: text/plain"), b"hello"
    )
    mock_request.assert_called_once_with(
        "GET",
        "https://93.184.216.34/x",
        headers={"host": "example.com", "user-agent": "palisade/1.0"},
        data=None,
        timeout=5.0,
        allow_redirects=False,
    )


@patch("requests.Session.request")
def test_fetch_forwards_options_and_body(mock_request):
    mock_request.return_value = _mock_response(status=201, reason="Created")

    raw = RequestsTransport().fetch(
        "POST",
        "http://93.184.216.34/items",
        HEADERS,
        b"a=1",
        2.5,
        options={"verify": False, "proxies": {}},
    )

    assert raw.header_lines[0] == "HTTP/1.1 201 Created"
    mock_request.assert_called_once_with(
        "POST",
        "http://93.184.216.34/items",
        verify=False,
        proxies={},
        headers={"host": "example.com", "user-agent": "palisade/1.0"},
        data=b"a=1",
        timeout=2.5,
        allow_redirects=False,
    )


@patch("requests.Session.request")
def test_options_cannot_enable_redirects(mock_request):
    mock_request.return_value = _mock_response()

    RequestsTransport().fetch(
        "GET",
        "http://93.184.216.34/",
        HEADERS,
        None,
        5.0,
        options={"allow_redirects": True},
    )

    assert mock_request.call_args.kwargs["allow_redirects"] is False


@patch("requests.Session.request")
def test_negative_timeout_means_no_timeout(mock_request):
    mock_request.return_value = _mock_response()

    RequestsTransport().fetch("GET", IP_URL, HEADERS, None, -1)

    assert mock_request.call_args.kwargs["timeout"] is None


@patch("requests.Session.request")
def test_timeout_maps_to_request_timeout_error(mock_request):
    mock_request.side_effect = requests.exceptions.Timeout("Timed out")

    with pytest.raises(RequestTimeoutError):
        RequestsTransport().fetch("GET", IP_URL, HEADERS, None, 5.0)


@patch("requests.Session.request")
def test_connection_error_maps_to_transport_error(mock_request):
    mock_request.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(TransportError) as excinfo:
        RequestsTransport().fetch("GET", IP_URL, HEADERS, None, 5.0)

    assert not isinstance(excinfo.value, RequestTimeoutError)
    cause = excinfo.value.__cause__
    assert isinstance(cause, requests.exceptions.ConnectionError)


def test_session_pins_server_hostname_for_https():
    session = RequestsTransport()._session("example.com")

    adapter = session.get_adapter("https://93.184.216.34/")
    assert isinstance(adapter, ServerNameAdapter)
    pool_kw = adapter.poolmanager.connection_pool_kw
    assert pool_kw["server_hostname"] == "example.com"
    assert pool_kw["assert_hostname"] == "example.com"
    plain = session.get_adapter(IP_URL)
    assert not isinstance(plain, ServerNameAdapter)
    assert len(session.headers) == 0


def test_raw_header_lines_formats_http_version():
    response = _mock_response(
        status=404, reason="Not Found", version=10, headers={}
    )

    assert raw_header_lines(response) == ("HTTP/1.0 404 Not Found",)


def test_raw_header_lines_without_reason():
    response = _mock_response(status=204, reason="", headers={})

    assert raw_header_lines(response) == ("HTTP/1.1 204",)


def test_split_header_lines():
    assert split_header_lines(["host: example.com:8080", "x-empty:"]) == [
        ("host", "example.com:8080"),
        ("x-empty", ""),
    ]
