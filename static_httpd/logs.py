"""Diagnostic logging setup and the access log."""

import logging
import os
import sys
from typing import Optional, Tuple


LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s"
ACCESS_FORMAT = "%(asctime)s  %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_file: Optional[str] = os.path.join("logs", "server.log"),
                  level: int = logging.INFO) -> logging.Logger:
    """Attach console and file handlers to the server's diagnostic logger."""
    logger = logging.getLogger("static_httpd")
    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(file_handler)

    # Prevent duplicate logs
    logger.propagate = False
    return logger


class QuietFileHandler(logging.FileHandler):
    """File handler that drops records it fails to write."""

    def handleError(self, record):
        pass


class AccessLog:
    """
    Append-only record of handled connections, one line each.

    Lines look like:
        2026-10-19 16:07:00  127.0.0.1:50312  "GET /index.html"  200

    The handler lock keeps concurrent lines from interleaving. Write
    failures are dropped so they never affect the connection.
    """

    def __init__(self, path: Optional[str]):
        self.path = path
        # Not registered with logging.getLogger(): each instance owns its
        # logger and handler, and both go away with it.
        self.logger = logging.Logger("static_httpd.access", logging.INFO)
        self.handler = None

        if path:
            try:
                directory = os.path.dirname(path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                self.handler = QuietFileHandler(path, mode='a', delay=True)
            except OSError as e:
                logging.getLogger("static_httpd").warning(f"Access log disabled, cannot open {path}: {e}")
                return
            self.handler.setFormatter(logging.Formatter(ACCESS_FORMAT, DATE_FORMAT))
            self.logger.addHandler(self.handler)

    def record(self, client_address: Tuple[str, int], method: str, path: str, status_code: int):
        if self.handler is None:
            return
        client = f"{client_address[0]}:{client_address[1]}" if client_address else "-"
        self.logger.info(f'{client}  "{method} {path}"  {status_code}')

    def close(self):
        if self.handler is not None:
            self.logger.removeHandler(self.handler)
            self.handler.close()
            self.handler = None
