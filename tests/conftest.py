import socket

import pytest

from static_httpd.config import build_config
from static_httpd.server import HTTPServer


@pytest.fixture
def document_root(tmp_path):
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_bytes(b"hello")
    (root / "style.css").write_bytes(b"body { color: red; }\n")
    (root / "app.js").write_bytes(b"console.log('hi');\n")
    (root / "secrets.txt").write_bytes(b"do not serve")
    (root / "docs").mkdir()
    (root / "docs" / "page.html").write_bytes(b"<p>page</p>")
    (tmp_path / "secret.txt").write_bytes(b"outside the root")
    (tmp_path / "outside.html").write_bytes(b"<p>outside</p>")
    return root


@pytest.fixture
def config(document_root, tmp_path):
    return build_config(str(document_root), access_log=str(tmp_path / "logs" / "access.log"))


@pytest.fixture
def server(config):
    srv = HTTPServer(config)
    yield srv
    srv.stop()


def parse_response(raw):
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")
    _, status, reason = lines[0].split(" ", 2)
    headers = {}
    for line in lines[1:]:
        key, value = line.split(":", 1)
        headers[key.strip()] = value.strip()
    return int(status), reason, headers, body


def recv_all(sock):
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def exchange(server, raw_request, client_address=("127.0.0.1", 50000)):
    """Run one request through handle_connection over a socket pair."""
    client, peer = socket.socketpair()
    with client:
        client.sendall(raw_request)
        client.shutdown(socket.SHUT_WR)
        server.handle_connection(peer, client_address)
        return parse_response(recv_all(client))
