"""Shared types for relay-lodge: session states and the exception hierarchy."""
from enum import Enum


class SessionState(str, Enum):
    """Lifecycle state of a client session."""
    CONNECTING = "connecting"          # Accepted, not yet registered
    ACTIVE = "active"                  # Registered, reader loop running
    DISCONNECTING = "disconnecting"    # Reader loop ended, tearing down
    CLOSED = "closed"                  # Deregistered and connection closed


class RelayLodgeError(Exception):
    """Base class for all relay-lodge errors."""


class ConnectionClosedError(RelayLodgeError):
    """Raised when a connection can no longer be read from or written to."""
    def __init__(self, message: str, peer: str = ""):
        self.peer = peer
        super().__init__(message)


class ConnectionReadError(ConnectionClosedError):
    """Raised when reading a line from a connection fails."""


class ConnectionWriteError(ConnectionClosedError):
    """Raised when writing a line to a connection fails."""


class DuplicateClientError(RelayLodgeError):
    """Raised when a client id is registered twice."""
    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"Client {client_id} is already registered")
