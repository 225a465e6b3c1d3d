"""Registry of live client sessions."""
import logging
import threading
from typing import TYPE_CHECKING, Dict, List, Optional

from .chat_types import DuplicateClientError

if TYPE_CHECKING:
    from .session import ClientSession

logger = logging.getLogger(__name__)


class ClientRegistry:
    """Maps client id → ClientSession. Thread-safe via a single lock.

    Lookups and snapshots take the same lock as mutations, so a reader never
    sees a half-inserted entry. ``snapshot`` returns a copy which callers
    iterate without holding the lock.
    """

    def __init__(self):
        self._sessions: Dict[int, "ClientSession"] = {}
        self._lock = threading.Lock()

    def register(self, session: "ClientSession") -> None:
        """Insert a session.

        :raises DuplicateClientError: If the id is already registered
        """
        with self._lock:
            if session.client_id in self._sessions:
                raise DuplicateClientError(session.client_id)
            self._sessions[session.client_id] = session
        logger.info(f"[REGISTRY] Registered client {session.client_id}")

    def deregister(self, client_id: int) -> Optional["ClientSession"]:
        """Remove a session if present. Removing an absent id is a no-op."""
        with self._lock:
            session = self._sessions.pop(client_id, None)
        if session is not None:
            logger.info(f"[REGISTRY] Removed client {client_id}")
        return session

    def lookup(self, client_id: int) -> Optional["ClientSession"]:
        with self._lock:
            return self._sessions.get(client_id)

    def snapshot(self) -> List["ClientSession"]:
        """Point-in-time list of all sessions in registration order."""
        with self._lock:
            return list(self._sessions.values())

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __len__(self) -> int:
        return self.active_count

    def __contains__(self, client_id: int) -> bool:
        return self.lookup(client_id) is not None
