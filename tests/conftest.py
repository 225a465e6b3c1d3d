"""Test configuration and fixtures."""
import socket

import pytest

from relay_lodge.chat_config import ChatServerConfig
from relay_lodge.registry import ClientRegistry
from relay_lodge.router import MessageRouter
from relay_lodge.server import ChatServer

READ_TIMEOUT = 5.0


class RecordingSession:
    """Stand-in for ClientSession that records every delivered line."""

    def __init__(self, client_id: int, reachable: bool = True):
        self.client_id = client_id
        self.reachable = reachable
        self.lines: list[str] = []

    def deliver(self, line: str) -> bool:
        if not self.reachable:
            return False
        self.lines.append(line)
        return True


class LineClient:
    """Client end of a connection, reading newline-terminated lines with a timeout."""

    def __init__(self, sock: socket.socket, session=None):
        self.sock = sock
        self.session = session
        self.welcome = None
        self._buffer = b""

    @property
    def client_id(self) -> int:
        return self.session.client_id

    def send(self, text: str) -> None:
        self.sock.sendall((text + "\n").encode("utf-8"))

    def read_line(self, timeout: float = READ_TIMEOUT):
        """Return the next line, or None at end of stream. Raises socket.timeout."""
        self.sock.settimeout(timeout)
        while b"\n" not in self._buffer:
            chunk = self.sock.recv(4096)
            if not chunk:
                rest, self._buffer = self._buffer, b""
                return rest.decode("utf-8") if rest else None
            self._buffer += chunk
        line, _, self._buffer = self._buffer.partition(b"\n")
        return line.decode("utf-8")

    def read_lines(self, count: int) -> list[str]:
        return [self.read_line() for _ in range(count)]

    def is_silent(self, timeout: float = 0.2) -> bool:
        """True if nothing arrives within the timeout."""
        try:
            self.read_line(timeout)
        except socket.timeout:
            return True
        return False

    def close(self) -> None:
        self.sock.close()


@pytest.fixture
def registry():
    """Empty client registry."""
    return ClientRegistry()


@pytest.fixture
def router(registry):
    """Router over the test registry."""
    return MessageRouter(registry)


@pytest.fixture
def recording_clients(router):
    """Three recording sessions (ids 1, 2, 3) joined to the router."""
    sessions = [RecordingSession(client_id) for client_id in (1, 2, 3)]
    for session in sessions:
        router.join(session)
    return sessions


@pytest.fixture
def server():
    """Chat server bound to no socket; clients are attached via socket pairs."""
    return ChatServer(ChatServerConfig(port=0, close_timeout=0.5))


@pytest.fixture
def connect(server):
    """Factory attaching a new client to the server through a socket pair."""
    clients = []

    def _connect(read_welcome: bool = True) -> LineClient:
        server_end, client_end = socket.socketpair()
        session = server.accept_connection(server_end, ("127.0.0.1", 40000 + len(clients)))
        client = LineClient(client_end, session)
        clients.append(client)
        if read_welcome and session is not None:
            client.welcome = client.read_line()
        return client

    yield _connect

    for client in clients:
        client.close()
    for client in clients:
        if client.session is not None:
            client.session.wait_closed(READ_TIMEOUT)
