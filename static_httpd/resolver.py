"""
Path resolution against the document root.

Every URL path goes through resolve_path() before any file is touched.
The checks run in a fixed order: canonicalize, containment, extension,
existence. Containment comes first so nothing about the filesystem
outside the root is ever observed.
"""

import os
from typing import FrozenSet, NamedTuple, Optional
from urllib.parse import unquote

from .status import Failure


class ResolvedTarget(NamedTuple):
    path: str
    extension: str


class Resolution(NamedTuple):
    target: Optional[ResolvedTarget] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def strip_query(raw_target: str, index_page: str = "/index.html") -> str:
    """Drop the query string and substitute the index page for the bare root."""
    path = raw_target.split("?", 1)[0]
    if path == "/":
        return index_page
    return path


def is_within_root(document_root: str, candidate: str) -> bool:
    """
    Check that a canonical path is the root itself or lies beneath it.

    Both sides go through os.path.normcase, which lower-cases on
    case-insensitive platforms and is the identity elsewhere.
    """
    root = os.path.normcase(document_root)
    path = os.path.normcase(candidate)
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def resolve_path(document_root: str, raw_target: str,
                 allowed_extensions: FrozenSet[str],
                 index_page: str = "/index.html") -> Resolution:
    """
    Map a request target onto a file under the document root.

    Args:
        document_root: Canonical document root
        raw_target: Request target exactly as received (path plus optional query)
        allowed_extensions: Lower-case extensions, including the leading dot
        index_page: Path served for a request to "/"

    Returns:
        Resolution holding either the target or the failure kind
    """
    url_path = unquote(strip_query(raw_target, index_page))
    if "\x00" in url_path:
        return Resolution(failure=Failure.PATH_CANONICALIZATION_FAILED)

    relative = url_path.lstrip("/").replace("/", os.sep)

    try:
        canonical = os.path.realpath(os.path.join(document_root, relative))
    except (OSError, ValueError):
        return Resolution(failure=Failure.PATH_CANONICALIZATION_FAILED)

    if not is_within_root(document_root, canonical):
        return Resolution(failure=Failure.PATH_OUTSIDE_ROOT)

    extension = os.path.splitext(canonical)[1].lower()
    if extension not in allowed_extensions:
        return Resolution(failure=Failure.EXTENSION_DENIED)

    if not os.path.isfile(canonical):
        return Resolution(failure=Failure.FILE_NOT_FOUND)

    return Resolution(target=ResolvedTarget(canonical, extension))
