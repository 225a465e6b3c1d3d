"""relay-lodge: text-line chat server package."""

from relay_lodge.chat_config import ChatServerConfig
from relay_lodge.chat_types import (
    ConnectionClosedError,
    ConnectionReadError,
    ConnectionWriteError,
    DuplicateClientError,
    RelayLodgeError,
    SessionState,
)
from relay_lodge.connection import Connection
from relay_lodge.protocol import (
    BroadcastCommand,
    CommandKind,
    MulticastCommand,
    MulticastTarget,
    PrivateCommand,
    ProtocolError,
    ProtocolErrorKind,
    parse_line,
)
from relay_lodge.registry import ClientRegistry
from relay_lodge.router import DeliveryReport, MessageRouter
from relay_lodge.session import ClientSession
from relay_lodge.server import ChatServer

__all__ = [
    "ChatServer",
    "ChatServerConfig",
    "ClientRegistry",
    "ClientSession",
    "Connection",
    "MessageRouter",
    "DeliveryReport",
    "SessionState",
    "CommandKind",
    "BroadcastCommand",
    "PrivateCommand",
    "MulticastCommand",
    "MulticastTarget",
    "ProtocolError",
    "ProtocolErrorKind",
    "parse_line",
    "RelayLodgeError",
    "ConnectionClosedError",
    "ConnectionReadError",
    "ConnectionWriteError",
    "DuplicateClientError",
]
