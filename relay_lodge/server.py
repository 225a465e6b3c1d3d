"""Chat server supervisor: listening socket, accept loop and client ids.

The supervisor hands every accepted socket to a new ClientSession. It owns
the router (and through it the registry) and the process-wide id counter,
which starts at 1 and is never reset, so ids are never reused.
"""
import itertools
import logging
import socket
import threading
from typing import Optional

from .chat_config import ChatServerConfig
from .chat_types import DuplicateClientError
from .connection import Connection, format_peer
from .router import MessageRouter
from .session import ClientSession

logger = logging.getLogger(__name__)


class ChatServer:
    """Accepts connections and spawns one session per client."""

    def __init__(self, config: Optional[ChatServerConfig] = None, router: Optional[MessageRouter] = None):
        self.config = config or ChatServerConfig()
        self.router = router if router is not None else MessageRouter()
        self._ids = itertools.count(1)
        self._ids_lock = threading.Lock()
        self._server_socket: Optional[socket.socket] = None
        self._running = False

    @property
    def registry(self):
        return self.router.registry

    @property
    def address(self) -> Optional[tuple]:
        """Bound (host, port), or None before ``listen``."""
        if self._server_socket is None:
            return None
        return self._server_socket.getsockname()[:2]

    def next_client_id(self) -> int:
        with self._ids_lock:
            return next(self._ids)

    def accept_connection(self, sock: socket.socket, address=None) -> Optional[ClientSession]:
        """Wrap an accepted socket in a session and start it.

        :return: The running session, or None if it could not be registered
        """
        client_id = self.next_client_id()
        connection = Connection(sock, address, encoding=self.config.encoding)
        session = ClientSession(client_id, connection, self.router, self.config)
        try:
            session.start()
        except DuplicateClientError as e:
            logger.error(f"[SERVER] Rejected connection from {format_peer(address)}: {e}")
            return None
        return session

    def listen(self) -> tuple:
        """Bind and listen on the configured address. Port 0 picks a free port."""
        server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            server_socket.bind((self.config.host, self.config.port))
            server_socket.listen(self.config.backlog)
        except OSError:
            server_socket.close()
            raise
        self._server_socket = server_socket
        host, port = self.address
        logger.info(f"[SERVER] Server started on {host}:{port}")
        return host, port

    def serve_forever(self) -> None:
        """Accept connections until ``shutdown`` closes the listening socket."""
        if self._server_socket is None:
            self.listen()
        server_socket = self._server_socket
        self._running = True
        while self._running:
            try:
                client_socket, address = server_socket.accept()
            except OSError as e:
                if self._running:
                    logger.error(f"[SERVER] Accept failed: {e}")
                break
            logger.info(f"[SERVER] Connection from {format_peer(address)}")
            self.accept_connection(client_socket, address)
        logger.info("[SERVER] Server stopped")

    def shutdown(self) -> None:
        """Stop accepting connections. Running sessions are left alone."""
        self._running = False
        server_socket, self._server_socket = self._server_socket, None
        if server_socket is not None:
            try:
                server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            server_socket.close()
