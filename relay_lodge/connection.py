"""Line-oriented wrapper around one accepted stream socket."""
import logging
import socket
import threading
from typing import Optional

from .chat_types import ConnectionReadError, ConnectionWriteError

logger = logging.getLogger(__name__)


def format_peer(address) -> str:
    """Render a socket address as ``host:port`` for log lines."""
    if isinstance(address, tuple) and len(address) >= 2:
        return f"{address[0]}:{address[1]}"
    return str(address) if address else "unknown"


class Connection:
    """Blocking line reader and writer on top of a socket.

    Reads and writes go through text-mode file wrappers so line splitting and
    decoding are handled by :mod:`io`. Writes are serialised by a lock because
    several routing threads may target the same connection.
    """

    def __init__(self, sock: socket.socket, address=None, encoding: str = "utf-8"):
        self._sock = sock
        self.peer = format_peer(address)
        self._rfile = sock.makefile("r", encoding=encoding, errors="replace", newline=None)
        self._wfile = sock.makefile("w", encoding=encoding, errors="replace", newline="\n")
        self._write_lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def read_line(self) -> Optional[str]:
        """Block until one line arrives.

        :return: The line without its terminator, or None at end of stream
        :raises ConnectionReadError: If the socket fails while reading
        """
        try:
            line = self._rfile.readline()
        except (OSError, ValueError) as e:
            raise ConnectionReadError(f"Read from {self.peer} failed: {e}", peer=self.peer) from e
        if not line:
            return None
        return line[:-1] if line.endswith("\n") else line

    def write_line(self, text: str) -> None:
        """Write one line and flush it.

        :raises ConnectionWriteError: If the peer is gone or the socket is closed
        """
        with self._write_lock:
            if self._closed:
                raise ConnectionWriteError(f"Connection to {self.peer} is closed", peer=self.peer)
            try:
                self._wfile.write(text + "\n")
                self._wfile.flush()
            except (OSError, ValueError) as e:
                raise ConnectionWriteError(f"Write to {self.peer} failed: {e}", peer=self.peer) from e

    def shutdown(self) -> None:
        """Shut both directions down so a blocked reader sees end of stream."""
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f"[CONNECTION] Shutdown of {self.peer} failed: {e}")

    def close(self) -> None:
        """Close the file wrappers and the socket. Safe to call twice."""
        with self._write_lock:
            if self._closed:
                return
            self._closed = True
        for resource in (self._wfile, self._rfile, self._sock):
            try:
                resource.close()
            except (OSError, ValueError) as e:
                logger.debug(f"[CONNECTION] Closing {self.peer} raised: {e}")
