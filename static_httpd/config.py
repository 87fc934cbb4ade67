"""
Server configuration.

A ServerConfig is built once at startup and handed by reference to every
component that needs it. Nothing in it changes while the server runs.
"""

import os
from types import MappingProxyType
from typing import FrozenSet, Mapping, NamedTuple, Optional


DEFAULT_PORT = 8080
DEFAULT_HOST = "0.0.0.0"
DEFAULT_DOCUMENT_ROOT = "wwwroot"
DEFAULT_ACCESS_LOG = os.path.join("logs", "access.log")

DEFAULT_MIME_TYPES = MappingProxyType({
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
})

FALLBACK_MIME_TYPE = "application/octet-stream"


class ConfigError(Exception):
    """Raised when the server cannot start with the given settings."""


class ServerConfig(NamedTuple):
    document_root: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_threads: int = 0
    read_timeout: Optional[float] = None
    max_header_bytes: Optional[int] = None
    linger_timeout: float = 2.0
    linger_bytes: int = 1 << 20
    access_log: Optional[str] = DEFAULT_ACCESS_LOG
    error_page: str = "error.html"
    index_page: str = "/index.html"
    mime_types: Mapping[str, str] = DEFAULT_MIME_TYPES
    allowed_extensions: FrozenSet[str] = frozenset(DEFAULT_MIME_TYPES)

    def mime_type(self, extension: str) -> str:
        return self.mime_types.get(extension.lower(), FALLBACK_MIME_TYPE)


def canonical_root(document_root: str) -> str:
    """
    Return the absolute, symlink-free form of a document root.

    Trailing separators are stripped so containment checks can append
    exactly one separator. The filesystem root itself is kept as-is.
    """
    root = os.path.realpath(os.path.abspath(document_root))
    stripped = root.rstrip(os.sep)
    return stripped or root


def build_config(document_root: str, **overrides) -> ServerConfig:
    """
    Validate settings and build an immutable ServerConfig.

    Args:
        document_root: Directory files are served from
        **overrides: Any other ServerConfig field

    Returns:
        The configuration, with document_root canonicalized

    Raises:
        ConfigError: If the document root is missing or a setting is out of range
    """
    if not os.path.isdir(document_root):
        raise ConfigError(f"Document root does not exist or is not a directory: {document_root}")

    port = overrides.get("port", DEFAULT_PORT)
    if not (0 <= port <= 65535):
        raise ConfigError("Port must be between 0 and 65535")

    if overrides.get("max_threads", 0) < 0:
        raise ConfigError("Max threads must not be negative")

    max_header_bytes = overrides.get("max_header_bytes")
    if max_header_bytes is not None and max_header_bytes < 1:
        raise ConfigError("Max header bytes must be at least 1")

    mime_types = overrides.pop("mime_types", None)
    if mime_types is not None:
        mime_types = MappingProxyType({ext.lower(): kind for ext, kind in mime_types.items()})
        overrides["mime_types"] = mime_types
        overrides.setdefault("allowed_extensions", frozenset(mime_types))

    return ServerConfig(document_root=canonical_root(document_root), **overrides)
