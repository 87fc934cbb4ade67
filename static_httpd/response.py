"""Response framing and error pages."""

import logging
import os
from typing import BinaryIO

from .status import reason_phrase


logger = logging.getLogger("static_httpd")

ERROR_CONTENT_TYPE = "text/html"


def build_response_header(status_code: int, reason: str, content_type: str, content_length: int) -> bytes:
    header = f"HTTP/1.1 {status_code} {reason}\r\n"
    header += f"Content-Type: {content_type}\r\n"
    header += f"Content-Length: {content_length}\r\n"
    header += "Connection: close\r\n"
    header += "\r\n"
    return header.encode("iso-8859-1")


def write_response(wfile: BinaryIO, status_code: int, reason: str, content_type: str, body: bytes):
    """
    Write one complete response.

    Headers are flushed on their own before the body goes out.

    Args:
        wfile: Writable binary stream for the connection
        status_code: HTTP status code
        reason: Reason phrase for the status line
        content_type: Value of the Content-Type header
        body: Response body bytes
    """
    wfile.write(build_response_header(status_code, reason, content_type, len(body)))
    wfile.flush()
    if body:
        wfile.write(body)
        wfile.flush()


def inline_error_page(status_code: int, reason: str) -> bytes:
    page = f"""<!DOCTYPE html>
<html>
<head>
    <title>{status_code} {reason}</title>
</head>
<body>
    <h1>Error {status_code}: {reason}</h1>
</body>
</html>
"""
    return page.encode("utf-8")


def error_body(document_root: str, status_code: int, reason: str, error_page: str = "error.html") -> bytes:
    """
    Produce the body for an error response.

    A custom error page at the top of the document root is used verbatim
    for every status. Without one, a small inline page names the status.
    """
    custom = os.path.join(document_root, error_page)
    if os.path.isfile(custom):
        try:
            with open(custom, "rb") as f:
                return f.read()
        except OSError as e:
            logger.warning(f"Could not read error page {custom}: {e}")
    return inline_error_page(status_code, reason)


def send_error(wfile: BinaryIO, document_root: str, status_code: int, error_page: str = "error.html") -> bool:
    """
    Send an error response, best effort.

    Returns:
        True if the response was written, False if the connection failed
        while writing it. Callers may ignore the result.
    """
    reason = reason_phrase(status_code)
    body = error_body(document_root, status_code, reason, error_page)
    try:
        write_response(wfile, status_code, reason, ERROR_CONTENT_TYPE, body)
    except OSError as e:
        logger.debug(f"Error response {status_code} not delivered: {e}")
        return False
    return True
