"""Per-client session: receive loop, outbound queue and lifecycle.

Each session runs two threads. The reader blocks on its own connection and
hands every line to the router. The writer drains the session's outbound
queue, so routing threads only ever post lines and a slow client stalls
nobody but itself.
"""
import logging
import queue
import threading
from typing import TYPE_CHECKING, Optional

from .chat_config import ChatServerConfig
from .chat_types import ConnectionReadError, ConnectionWriteError, DuplicateClientError, SessionState
from .connection import Connection
from .protocol import DISCONNECTED, WELCOME

if TYPE_CHECKING:
    from .router import MessageRouter

logger = logging.getLogger(__name__)

_STOP = object()  # Writer shutdown marker


class ClientSession:
    """One connected client, from registration to close."""

    def __init__(
        self,
        client_id: int,
        connection: Connection,
        router: "MessageRouter",
        config: Optional[ChatServerConfig] = None,
    ):
        self.client_id = client_id
        self.connection = connection
        self._router = router
        self._config = config or ChatServerConfig()
        self._outbox: queue.Queue = queue.Queue(maxsize=self._config.max_pending_lines)
        self._state = SessionState.CONNECTING
        self._state_lock = threading.Lock()
        self._writer_failed = False
        self._reader: Optional[threading.Thread] = None
        self._writer: Optional[threading.Thread] = None
        self._closed = threading.Event()

    def __repr__(self) -> str:
        return f"ClientSession(client_id={self.client_id}, state={self._state.value})"

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def alive(self) -> bool:
        """True while the session still accepts outbound lines."""
        return self._state in (SessionState.CONNECTING, SessionState.ACTIVE) and not self._writer_failed

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self) -> None:
        """Register with the router and start the reader and writer threads.

        The welcome line is queued before registration so it is always the
        first line the client sees.

        :raises DuplicateClientError: If the id is already registered; the
            connection is closed and the session ends up CLOSED
        """
        self._outbox.put_nowait(WELCOME.format(client_id=self.client_id))
        try:
            self._router.join(self)
        except DuplicateClientError:
            self._state = SessionState.CLOSED
            self.connection.close()
            self._closed.set()
            raise

        with self._state_lock:
            self._state = SessionState.ACTIVE
        logger.info(f"[SESSION] Client {self.client_id} connected. IP: {self.connection.peer}")

        self._writer = threading.Thread(
            target=self._drain_outbox, name=f"client-{self.client_id}-writer", daemon=True,
        )
        self._reader = threading.Thread(
            target=self._receive_loop, name=f"client-{self.client_id}-reader", daemon=True,
        )
        self._writer.start()
        self._reader.start()

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Block until the session reached CLOSED. Returns False on timeout."""
        return self._closed.wait(timeout)

    # ── Outbound ──────────────────────────────────────────────

    def deliver(self, line: str) -> bool:
        """Queue a line for this client.

        :return: False if the session is gone or its queue is full
        """
        if not self.alive:
            return False
        try:
            self._outbox.put_nowait(line)
        except queue.Full:
            logger.warning(f"[SESSION] Outbox of Client {self.client_id} is full, dropping line")
            return False
        return True

    def _drain_outbox(self) -> None:
        while True:
            line = self._outbox.get()
            if line is _STOP:
                return
            try:
                self.connection.write_line(line)
            except ConnectionWriteError as e:
                self._writer_failed = True
                logger.info(f"[SESSION] Client {self.client_id} is unreachable: {e}")
                # Wake our own reader so it deregisters the session
                self.connection.shutdown()
                return

    # ── Inbound ───────────────────────────────────────────────

    def _receive_loop(self) -> None:
        try:
            while True:
                try:
                    line = self.connection.read_line()
                except ConnectionReadError as e:
                    logger.warning(f"[SESSION] Client {self.client_id} disconnected. IP: {self.connection.peer} ({e})")
                    break
                if line is None:
                    break
                logger.info(f"[SESSION] Client {self.client_id}: {line}")
                self._router.dispatch(self, line)
        finally:
            self._disconnect()

    def _disconnect(self) -> None:
        with self._state_lock:
            if self._state != SessionState.ACTIVE:
                return
            self._state = SessionState.DISCONNECTING

        logger.info(f"[SESSION] Client {self.client_id} has left the chat.")
        self._router.leave(self.client_id)

        timeout = self._config.close_timeout
        if self._writer is not None and self._writer.is_alive():
            try:
                self._outbox.put(DISCONNECTED, timeout=timeout)
                self._outbox.put(_STOP, timeout=timeout)
            except queue.Full:
                logger.debug(f"[SESSION] Outbox of Client {self.client_id} still full at close")
            self._writer.join(timeout)
            if self._writer.is_alive():
                # Unblocks a writer stuck on a full socket buffer
                self.connection.shutdown()
                self._writer.join(timeout)
        self.connection.close()

        with self._state_lock:
            self._state = SessionState.CLOSED
        self._closed.set()
