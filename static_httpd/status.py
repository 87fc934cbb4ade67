"""Outcome taxonomy shared by the parser, resolver and connection handler."""

from enum import Enum


STATUS_MESSAGES = {
    200: "OK",
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
}


class Failure(Enum):
    """Reasons a connection ends without serving a file."""

    MALFORMED_REQUEST = "malformed request"
    METHOD_NOT_ALLOWED = "method not allowed"
    PATH_CANONICALIZATION_FAILED = "path canonicalization failed"
    PATH_OUTSIDE_ROOT = "path outside document root"
    EXTENSION_DENIED = "extension not allowed"
    FILE_NOT_FOUND = "file not found"
    UNEXPECTED_FAULT = "unexpected fault"

    @property
    def status_code(self) -> int:
        return FAILURE_STATUS[self]


# The three 403 kinds collapse to one status so the peer cannot tell
# a missing directory from a denied one.
FAILURE_STATUS = {
    Failure.MALFORMED_REQUEST: 400,
    Failure.METHOD_NOT_ALLOWED: 405,
    Failure.PATH_CANONICALIZATION_FAILED: 403,
    Failure.PATH_OUTSIDE_ROOT: 403,
    Failure.EXTENSION_DENIED: 403,
    Failure.FILE_NOT_FOUND: 404,
    Failure.UNEXPECTED_FAULT: 500,
}


def reason_phrase(status_code: int) -> str:
    return STATUS_MESSAGES.get(status_code, "Unknown Error")
