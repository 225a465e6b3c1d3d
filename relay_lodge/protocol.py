"""Wire protocol of the chat server.

Inbound lines are classified by their first character:

- ``@<id> <text>``: private message to one client
- ``#<id>[,<id>...] <text>``: multicast to the listed clients
- anything else: broadcast to every other client

``parse_line`` never raises for malformed input. It returns either a command
model or a :class:`ProtocolError` carrying the exact reply for the sender.
All server-to-client strings live here so the router and the session share
one source of wording.
"""
import re
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

PRIVATE_PREFIX = "@"
MULTICAST_PREFIX = "#"

# Server -> client lines
WELCOME = "Welcome to the Chat Server, you are client number {client_id}"
BROADCAST_FROM = "Broadcast from Client {sender_id}: {text}"
PRIVATE_FROM = "Private message from Client {sender_id}: {text}"
PRIVATE_SENT = "Private message sent to Client {target_id}"
MULTICAST_FROM = "Multicast message from Client {sender_id}: {text}"
MULTICAST_SENT = "Message sent to existing clients."
CLIENTS_NOT_FOUND = " Clients not found: {unresolved}"
DISCONNECTED = "You have been disconnected."

ERROR_INCOMPLETE_PRIVATE = "Error: Incomplete private message. Use format: @clientNumber message"
ERROR_INCOMPLETE_MULTICAST = "Error: Incomplete multicast message. Use format: #client1,client2,... message"
ERROR_INVALID_CLIENT = "Error: Invalid client number."
ERROR_CLIENT_NOT_FOUND = "Error: Client {target_id} does not exist."
ERROR_NO_VALID_CLIENTS = "Error: No valid clients found."

# Signed base-10 literal, ASCII digits only
_CLIENT_ID_RE = re.compile(r"[+-]?[0-9]+")
# Client numbers are 32-bit signed integers on the wire
CLIENT_ID_MIN = -2**31
CLIENT_ID_MAX = 2**31 - 1
_CLIENT_ID_MAX_DIGITS = len(str(CLIENT_ID_MAX))


class CommandKind(str, Enum):
    """Kind of an inbound chat line."""
    BROADCAST = "broadcast"
    PRIVATE = "private"
    MULTICAST = "multicast"


class ProtocolErrorKind(str, Enum):
    """Reason a line was rejected."""
    INCOMPLETE_PRIVATE = "incomplete_private"
    INCOMPLETE_MULTICAST = "incomplete_multicast"
    INVALID_CLIENT = "invalid_client"
    CLIENT_NOT_FOUND = "client_not_found"
    NO_VALID_CLIENTS = "no_valid_clients"


class BroadcastCommand(BaseModel):
    """A line to be sent to every other client."""
    kind: Literal[CommandKind.BROADCAST] = CommandKind.BROADCAST
    text: str


class PrivateCommand(BaseModel):
    """A line addressed to exactly one client."""
    kind: Literal[CommandKind.PRIVATE] = CommandKind.PRIVATE
    target_id: int
    text: str


class MulticastTarget(BaseModel):
    """One entry of a multicast id list.

    ``client_id`` is None when the token is not an integer, so malformed
    entries stay distinguishable from ids that merely are not connected.
    """
    token: str
    client_id: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.client_id is not None


class MulticastCommand(BaseModel):
    """A line addressed to an explicit list of clients."""
    kind: Literal[CommandKind.MULTICAST] = CommandKind.MULTICAST
    targets: List[MulticastTarget] = Field(default_factory=list)
    text: str

    @property
    def target_ids(self) -> List[int]:
        """Valid ids in input order with duplicates removed."""
        return list(dict.fromkeys(t.client_id for t in self.targets if t.is_valid))

    @property
    def invalid_tokens(self) -> List[str]:
        return [t.token for t in self.targets if not t.is_valid]


class ProtocolError(BaseModel):
    """A rejected line together with the reply owed to its sender."""
    kind: ProtocolErrorKind
    reply: str


Command = Union[BroadcastCommand, PrivateCommand, MulticastCommand]


def parse_client_id(token: str) -> Optional[int]:
    """Parse a client number.

    Returns None if the token is not an integer or lies outside the 32-bit
    signed range. Over-long tokens are rejected before conversion.
    """
    if not _CLIENT_ID_RE.fullmatch(token):
        return None
    if len(token.lstrip("+-").lstrip("0")) > _CLIENT_ID_MAX_DIGITS:
        return None
    value = int(token)
    if not CLIENT_ID_MIN <= value <= CLIENT_ID_MAX:
        return None
    return value


def format_unresolved(entries) -> str:
    """Render not-found ids and malformed tokens as ``[9, abc]``.

    Malformed tokens appear as typed, unquoted, alongside the ids.
    """
    return "[" + ", ".join(str(entry) for entry in entries) + "]"


def _split_command(line: str) -> tuple[str, Optional[str]]:
    """Split on the first space into the addressing token and the payload.

    The payload is None when it is missing or blank.
    """
    token, _, payload = line.partition(" ")
    if not payload.strip():
        return token, None
    return token, payload


def parse_private(line: str) -> Union[PrivateCommand, ProtocolError]:
    """Parse ``@<id> <text>``."""
    token, payload = _split_command(line)
    if payload is None:
        return ProtocolError(kind=ProtocolErrorKind.INCOMPLETE_PRIVATE, reply=ERROR_INCOMPLETE_PRIVATE)
    target_id = parse_client_id(token[len(PRIVATE_PREFIX):])
    if target_id is None:
        return ProtocolError(kind=ProtocolErrorKind.INVALID_CLIENT, reply=ERROR_INVALID_CLIENT)
    return PrivateCommand(target_id=target_id, text=payload)


def parse_multicast(line: str) -> Union[MulticastCommand, ProtocolError]:
    """Parse ``#<id>,<id>,... <text>``."""
    token, payload = _split_command(line)
    if payload is None:
        return ProtocolError(kind=ProtocolErrorKind.INCOMPLETE_MULTICAST, reply=ERROR_INCOMPLETE_MULTICAST)
    pieces = token[len(MULTICAST_PREFIX):].split(",")
    # A trailing comma does not add an empty entry
    if len(pieces) > 1:
        while pieces and pieces[-1] == "":
            pieces.pop()
    targets = []
    for piece in pieces:
        piece = piece.strip()
        targets.append(MulticastTarget(token=piece, client_id=parse_client_id(piece)))
    return MulticastCommand(targets=targets, text=payload)


def parse_line(line: str) -> Union[Command, ProtocolError]:
    """Classify one inbound line by its first character."""
    if line.startswith(PRIVATE_PREFIX):
        return parse_private(line)
    if line.startswith(MULTICAST_PREFIX):
        return parse_multicast(line)
    return BroadcastCommand(text=line)
