"""
Static file HTTP server using socket programming.

Serves .html, .css and .js files from a single document root:
- One thread per connection, or a fixed worker pool when max_threads > 0
- Path canonicalization and containment checks against the document root
- Extension allow-list
- One request per connection, always answered with Connection: close
- Access log with one line per handled connection
"""

import logging
import queue
import signal
import socket
import sys
import threading
import time
from typing import BinaryIO, NamedTuple, Optional, Tuple

from .config import DEFAULT_DOCUMENT_ROOT, DEFAULT_HOST, DEFAULT_PORT, ConfigError, ServerConfig, build_config
from .logs import AccessLog, setup_logging
from .request import parse_request
from .resolver import resolve_path
from .response import send_error, write_response
from .status import Failure, reason_phrase


logger = logging.getLogger("static_httpd")


class Outcome(NamedTuple):
    status_code: int
    method: str = "-"
    path: str = "-"
    content_type: Optional[str] = None
    body: bytes = b""


class HTTPServer:
    """
    Static file server with a blocking accept loop.

    Each accepted connection is handed to its own thread, or to a worker
    pool when the configuration asks for one, and the loop goes straight
    back to accept().
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the server. Nothing is bound until bind() is called.

        Args:
            config: Immutable server configuration
        """
        self.config = config
        self.server_socket = None
        self.running = False
        self.thread_pool = []
        self.connection_queue = queue.Queue()
        self.access_log = AccessLog(config.access_log)

        logger.info(f"HTTP Server initialized: root={config.document_root}, "
                    f"{config.host}:{config.port}, max_threads={config.max_threads}")

    @property
    def server_address(self) -> Tuple[str, int]:
        return self.server_socket.getsockname()[:2]

    def bind(self):
        """Bind and listen on the configured endpoint. Failure here is fatal."""
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.server_socket.bind((self.config.host, self.config.port))
            self.server_socket.listen(50)
        except OSError:
            self.server_socket.close()
            raise
        self.running = True
        host, port = self.server_address
        logger.info(f"Server started on {host}:{port}")

    def start(self):
        """Bind, then serve until stopped."""
        try:
            self.bind()
        except OSError as e:
            logger.error(f"Failed to start server: {e}")
            raise
        self.serve_forever()

    def serve_forever(self):
        """Accept connections and dispatch each one without waiting for it."""
        if self.config.max_threads > 0:
            for i in range(self.config.max_threads):
                thread = threading.Thread(target=self._worker_thread, name=f"Worker-{i+1}")
                thread.daemon = True
                thread.start()
                self.thread_pool.append(thread)
            logger.info(f"Thread pool size: {self.config.max_threads}")

        logger.info("Server ready to accept connections...")

        server_socket = self.server_socket
        while self.running:
            try:
                client_socket, client_address = server_socket.accept()
            except OSError as e:
                if not self.running:
                    break
                logger.error(f"Error accepting connection: {e}")
                continue

            logger.debug(f"New connection from {client_address[0]}:{client_address[1]}")
            self._dispatch(client_socket, client_address)

    def _dispatch(self, client_socket: socket.socket, client_address: Tuple[str, int]):
        if not self.running:
            client_socket.close()
            return

        if self.config.max_threads > 0:
            self.connection_queue.put((client_socket, client_address))
            # stop() may have drained the queue between the check and the put.
            if not self.running:
                self._discard_queued()
            return

        thread = threading.Thread(
            target=self.handle_connection,
            args=(client_socket, client_address),
            name=f"Conn-{client_address[0]}:{client_address[1]}",
        )
        thread.daemon = True
        thread.start()

    def _worker_thread(self):
        """Worker thread that processes connections from the queue."""
        while self.running:
            try:
                client_socket, client_address = self.connection_queue.get(timeout=1.0)
            except queue.Empty:
                continue

            try:
                self.handle_connection(client_socket, client_address)
            finally:
                self.connection_queue.task_done()

    def handle_connection(self, client_socket: socket.socket, client_address: Tuple[str, int]):
        """
        Handle exactly one request on a connection, then close it.

        Every path through here writes one response and one access log
        line, and the socket is closed however the handling ends.

        Args:
            client_socket: Client socket connection
            client_address: Client address tuple (host, port)
        """
        connection_id = f"{client_address[0]}:{client_address[1]}"
        outcome = Outcome(Failure.UNEXPECTED_FAULT.status_code)

        try:
            with client_socket:
                try:
                    if self.config.read_timeout is not None:
                        client_socket.settimeout(self.config.read_timeout)
                    with client_socket.makefile('rb') as rfile, client_socket.makefile('wb') as wfile:
                        outcome = self._serve(rfile, wfile, connection_id)
                finally:
                    self.access_log.record(client_address, outcome.method, outcome.path, outcome.status_code)
                self._linger(client_socket)
        except Exception as e:
            logger.debug(f"Error finishing connection {connection_id}: {e}")

    def _linger(self, client_socket: socket.socket):
        """
        Half-close the connection and discard what the peer is still sending.

        Closing with unread request bytes (a body, an oversized header)
        makes the kernel send RST, which can destroy the response before
        the peer reads it. Draining is bounded by linger_timeout and
        linger_bytes.
        """
        try:
            client_socket.shutdown(socket.SHUT_WR)
        except OSError:
            return

        deadline = time.monotonic() + self.config.linger_timeout
        remaining = self.config.linger_bytes
        while remaining > 0:
            timeout = deadline - time.monotonic()
            if timeout <= 0:
                break
            try:
                client_socket.settimeout(timeout)
                chunk = client_socket.recv(min(65536, remaining))
            except OSError:
                break
            if not chunk:
                break
            remaining -= len(chunk)

    def _serve(self, rfile: BinaryIO, wfile: BinaryIO, connection_id: str) -> Outcome:
        try:
            outcome = self._process(rfile, connection_id)
        except Exception:
            logger.exception(f"Error processing request from {connection_id}")
            outcome = Outcome(Failure.UNEXPECTED_FAULT.status_code)

        if outcome.status_code != 200:
            send_error(wfile, self.config.document_root, outcome.status_code, self.config.error_page)
            return outcome

        try:
            write_response(wfile, 200, reason_phrase(200), outcome.content_type, outcome.body)
        except Exception as e:
            # Headers may already be out, so no second response follows.
            logger.error(f"Error sending response to {connection_id}: {e}")
            return outcome._replace(status_code=Failure.UNEXPECTED_FAULT.status_code)
        return outcome

    def _process(self, rfile: BinaryIO, connection_id: str) -> Outcome:
        """
        Parse and resolve one request.

        Args:
            rfile: Readable stream for the connection
            connection_id: "host:port" of the peer, for diagnostics

        Returns:
            Outcome carrying the status and, for 200, the file contents
        """
        parsed = parse_request(rfile, self.config.max_header_bytes, self.config.index_page)
        if not parsed.ok:
            if parsed.failure is Failure.METHOD_NOT_ALLOWED:
                logger.info(f"Method not allowed from {connection_id}: {parsed.method}")
            else:
                logger.info(f"Invalid request from {connection_id}")
            return Outcome(parsed.failure.status_code, parsed.method, parsed.raw_target)

        request = parsed.request
        resolution = resolve_path(self.config.document_root, request.raw_target,
                                  self.config.allowed_extensions, self.config.index_page)
        if not resolution.ok:
            if resolution.failure is not Failure.FILE_NOT_FOUND:
                logger.warning(f"Security violation - path rejected: {request.raw_target} "
                               f"from {connection_id} - {resolution.failure.value}")
            return Outcome(resolution.failure.status_code, request.method, request.raw_target)

        target = resolution.target
        try:
            with open(target.path, 'rb') as f:
                content = f.read()
        except OSError as e:
            logger.error(f"Error reading file {target.path}: {e}")
            return Outcome(Failure.UNEXPECTED_FAULT.status_code, request.method, request.raw_target)

        logger.debug(f"Serving file: {target.path} ({len(content)} bytes) to {connection_id}")
        return Outcome(200, request.method, request.raw_target,
                       self.config.mime_type(target.extension), content)

    def stop(self):
        """Stop accepting connections. In-flight handlers run to completion."""
        was_running = self.running
        self.running = False
        if was_running:
            logger.info("Stopping HTTP server...")

        if self.server_socket:
            # close() alone does not wake a thread blocked in accept() on Linux.
            try:
                self.server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.server_socket.close()
            self.server_socket = None

        self._discard_queued()
        self.access_log.close()
        if was_running:
            logger.info("Server stopped")

    def _discard_queued(self):
        """Close connections still waiting for a worker."""
        while True:
            try:
                client_socket, client_address = self.connection_queue.get_nowait()
            except queue.Empty:
                return
            logger.debug(f"Dropping queued connection from {client_address[0]}:{client_address[1]}")
            client_socket.close()
            self.connection_queue.task_done()


USAGE = "Usage: static-httpd [port] [document_root] [host] [max_threads]"


def main(argv=None):
    """
    Main entry point for the HTTP server.
    Parses command line arguments and starts the server.
    """
    args = sys.argv[1:] if argv is None else argv

    port = DEFAULT_PORT
    document_root = DEFAULT_DOCUMENT_ROOT
    host = DEFAULT_HOST
    max_threads = 0

    if args and args[0] in ("-h", "--help"):
        print(USAGE)
        return 0

    if len(args) >= 1:
        try:
            port = int(args[0])
        except ValueError:
            print("Error: Port must be an integer")
            return 1

    if len(args) >= 2:
        document_root = args[1]

    if len(args) >= 3:
        host = args[2]

    if len(args) >= 4:
        try:
            max_threads = int(args[3])
        except ValueError:
            print("Error: Max threads must be an integer")
            return 1

    if not (1 <= port <= 65535):
        print("Error: Port must be between 1 and 65535")
        return 1

    try:
        config = build_config(document_root, host=host, port=port, max_threads=max_threads)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    setup_logging()
    server = HTTPServer(config)

    def _signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, initiating shutdown...")
        server.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    print(f"Serving {config.document_root} on {host}:{port}")
    print("Press Ctrl+C to stop the server")
    try:
        server.start()
    except OSError as e:
        print(f"Error starting server: {e}")
        return 1
    finally:
        server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
