"""Unit tests for request-line parsing."""

import io

import pytest

from static_httpd.request import parse_request
from static_httpd.status import Failure


def _parse(raw, **kwargs):
    return parse_request(io.BytesIO(raw), **kwargs)


def test_simple_get():
    result = _parse(b"GET /index.html?x=1 HTTP/1.1\r\nHost: localhost\r\n\r\n")

    assert result.ok
    assert result.request.method == "GET"
    assert result.request.raw_target == "/index.html?x=1"
    assert result.request.path == "/index.html"
    assert result.request.version == "HTTP/1.1"


def test_root_path_substitutes_index():
    assert _parse(b"GET / HTTP/1.1\r\n\r\n").request.path == "/index.html"


def test_root_path_uses_configured_index_page():
    result = _parse(b"GET /?lang=en HTTP/1.1\r\n\r\n", index_page="/home.html")

    assert result.request.path == "/home.html"
    assert result.request.raw_target == "/?lang=en"


def test_method_is_case_insensitive():
    result = _parse(b"get /style.css HTTP/1.0\r\n\r\n")

    assert result.ok
    assert result.request.method == "get"


def test_headers_are_consumed_up_to_blank_line():
    rfile = io.BytesIO(b"GET / HTTP/1.1\r\nHost: a\r\nAccept: */*\r\n\r\nleftover")

    assert parse_request(rfile).ok
    assert rfile.read() == b"leftover"


def test_bare_newlines_are_accepted():
    assert _parse(b"GET / HTTP/1.1\nHost: a\n\n").ok


def test_missing_blank_line_ends_at_eof():
    assert _parse(b"GET / HTTP/1.1\r\nHost: a\r\n").ok


@pytest.mark.parametrize("raw", [
    b"",
    b"\r\n",
    b"   \r\n\r\n",
    b"GET /\r\n\r\n",
    b"GET\r\n\r\n",
])
def test_malformed_request_line(raw):
    result = _parse(raw)

    assert result.failure is Failure.MALFORMED_REQUEST
    assert result.method == "-"
    assert result.raw_target == "-"


@pytest.mark.parametrize("method", ["POST", "PUT", "HEAD", "DELETE", "post"])
def test_other_methods_are_not_allowed(method):
    result = _parse(f"{method} /index.html HTTP/1.1\r\n\r\n".encode())

    assert result.failure is Failure.METHOD_NOT_ALLOWED
    assert result.method == method
    assert result.raw_target == "/index.html"


def test_protocol_version_is_not_validated():
    assert _parse(b"GET /index.html NONSENSE\r\n\r\n").ok


def test_header_cap_rejects_oversized_head():
    raw = b"GET / HTTP/1.1\r\nX-Padding: " + b"a" * 200 + b"\r\n\r\n"

    assert _parse(raw, max_header_bytes=64).failure is Failure.MALFORMED_REQUEST
    assert _parse(raw, max_header_bytes=1024).ok
    assert _parse(raw).ok


def test_header_cap_applies_to_request_line():
    raw = b"GET /" + b"a" * 100 + b".html HTTP/1.1\r\n\r\n"

    assert _parse(raw, max_header_bytes=32).failure is Failure.MALFORMED_REQUEST
