"""Unit tests for response framing and error pages."""

import io

from static_httpd.response import error_body, send_error, write_response

from conftest import parse_response


class _BrokenStream(io.RawIOBase):
    def writable(self):
        return True

    def write(self, data):
        raise BrokenPipeError("peer went away")


def test_write_response_framing():
    wfile = io.BytesIO()

    write_response(wfile, 200, "OK", "text/css", b"body{}")

    assert wfile.getvalue() == (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/css\r\n"
        b"Content-Length: 6\r\n"
        b"Connection: close\r\n"
        b"\r\n"
        b"body{}"
    )


def test_write_response_empty_body():
    wfile = io.BytesIO()

    write_response(wfile, 200, "OK", "text/html", b"")

    status, _, headers, body = parse_response(wfile.getvalue())
    assert status == 200
    assert headers["Content-Length"] == "0"
    assert body == b""


def test_inline_error_page(document_root):
    body = error_body(str(document_root), 404, "Not Found")

    assert b"Error 404: Not Found" in body


def test_custom_error_page_used_for_every_status(document_root):
    (document_root / "error.html").write_bytes(b"<h1>oops</h1>")

    for status, reason in [(400, "Bad Request"), (403, "Forbidden"), (500, "Internal Server Error")]:
        assert error_body(str(document_root), status, reason) == b"<h1>oops</h1>"


def test_send_error_writes_complete_response(document_root):
    wfile = io.BytesIO()

    assert send_error(wfile, str(document_root), 405) is True

    status, reason, headers, body = parse_response(wfile.getvalue())
    assert (status, reason) == (405, "Method Not Allowed")
    assert headers["Content-Type"] == "text/html"
    assert int(headers["Content-Length"]) == len(body)
    assert b"Error 405: Method Not Allowed" in body


def test_send_error_reports_write_failure(document_root):
    assert send_error(_BrokenStream(), str(document_root), 404) is False
