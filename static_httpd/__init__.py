"""Minimal static file HTTP/1.1 server."""

from .config import ConfigError, ServerConfig, build_config
from .server import HTTPServer, main

__all__ = ["ConfigError", "HTTPServer", "ServerConfig", "build_config", "main"]
__version__ = "1.0.0"
