"""Request-line parsing for a single connection."""

from typing import BinaryIO, NamedTuple, Optional

from .resolver import strip_query
from .status import Failure


# ISO-8859-1 maps every byte to a code point, so decoding never fails.
WIRE_ENCODING = "iso-8859-1"


class IncomingRequest(NamedTuple):
    method: str
    raw_target: str
    path: str
    version: str


class ParseResult(NamedTuple):
    request: Optional[IncomingRequest] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def method(self) -> str:
        return self.request.method if self.request else "-"

    @property
    def raw_target(self) -> str:
        return self.request.raw_target if self.request else "-"


def _read_line(rfile: BinaryIO, budget: Optional[int]) -> Optional[bytes]:
    """Read one line, or None if it would overrun the remaining budget."""
    if budget is None:
        return rfile.readline()
    line = rfile.readline(budget + 1)
    if len(line) > budget:
        return None
    return line


def parse_request(rfile: BinaryIO, max_header_bytes: Optional[int] = None,
                  index_page: str = "/index.html") -> ParseResult:
    """
    Read the request line and skip the header block.

    Args:
        rfile: Binary stream positioned at the start of the request
        max_header_bytes: Cap on request line plus headers, None for no cap
        index_page: Path that stands in for a request to "/"

    Returns:
        ParseResult holding the request, or the failure kind. A request
        with a method other than GET is returned alongside its failure so
        the caller can still log what was asked for.
    """
    budget = max_header_bytes

    raw_line = _read_line(rfile, budget)
    if raw_line is None:
        return ParseResult(failure=Failure.MALFORMED_REQUEST)
    if budget is not None:
        budget -= len(raw_line)

    request_line = raw_line.decode(WIRE_ENCODING).rstrip("\r\n")
    if not request_line.strip():
        return ParseResult(failure=Failure.MALFORMED_REQUEST)

    # Headers are never interpreted, only consumed up to the blank line.
    while True:
        header = _read_line(rfile, budget)
        if header is None:
            return ParseResult(failure=Failure.MALFORMED_REQUEST)
        if budget is not None:
            budget -= len(header)
        if header in (b"", b"\r\n", b"\n"):
            break

    parts = request_line.split(" ")
    if len(parts) < 3:
        return ParseResult(failure=Failure.MALFORMED_REQUEST)

    method, raw_target, version = parts[0], parts[1], parts[2]
    request = IncomingRequest(method, raw_target, strip_query(raw_target, index_page), version)

    if method.upper() != "GET":
        return ParseResult(request=request, failure=Failure.METHOD_NOT_ALLOWED)

    return ParseResult(request=request)
