"""Message routing between client sessions.

The router owns the registry and is the only component that decides who
receives a line. It never writes to a socket itself: it posts lines to the
target sessions, whose writer threads do the I/O.
"""
import logging
from typing import TYPE_CHECKING, List, Optional, Union

from pydantic import BaseModel, Field

from .protocol import (
    BROADCAST_FROM,
    CLIENTS_NOT_FOUND,
    ERROR_CLIENT_NOT_FOUND,
    ERROR_NO_VALID_CLIENTS,
    MULTICAST_FROM,
    MULTICAST_SENT,
    PRIVATE_FROM,
    PRIVATE_SENT,
    CommandKind,
    MulticastCommand,
    PrivateCommand,
    ProtocolError,
    ProtocolErrorKind,
    format_unresolved,
    parse_line,
)
from .registry import ClientRegistry

if TYPE_CHECKING:
    from .session import ClientSession

logger = logging.getLogger(__name__)


class DeliveryReport(BaseModel):
    """Outcome of routing one inbound line."""
    sender_id: int
    kind: Optional[CommandKind] = None
    delivered: List[int] = Field(default_factory=list, description="Targets the line was posted to")
    failed: List[int] = Field(default_factory=list, description="Targets that could not take the line")
    not_found: List[int] = Field(default_factory=list, description="Well-formed ids with no live session")
    invalid: List[str] = Field(default_factory=list, description="Tokens that are not client numbers")
    unresolved: List[Union[int, str]] = Field(
        default_factory=list,
        description="not_found and invalid entries merged in input order",
    )
    error: Optional[ProtocolErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MessageRouter:
    """Routes broadcast, private and multicast lines through a ClientRegistry."""

    def __init__(self, registry: Optional[ClientRegistry] = None):
        self.registry = registry if registry is not None else ClientRegistry()

    # ── Membership ────────────────────────────────────────────

    def join(self, session: "ClientSession") -> None:
        """Register a session. Raises DuplicateClientError on an id clash."""
        self.registry.register(session)

    def leave(self, client_id: int) -> None:
        """Deregister a session. Idempotent."""
        self.registry.deregister(client_id)

    # ── Routing ───────────────────────────────────────────────

    def dispatch(self, sender: "ClientSession", line: str) -> DeliveryReport:
        """Classify one inbound line and route it."""
        command = parse_line(line)
        if isinstance(command, ProtocolError):
            return self._reject(sender, command)
        if isinstance(command, PrivateCommand):
            return self.send_private(sender, command)
        if isinstance(command, MulticastCommand):
            return self.multicast(sender, command)
        return self.broadcast(sender, command.text)

    def broadcast(self, sender: "ClientSession", text: str) -> DeliveryReport:
        """Send a line to every registered session except the sender."""
        report = DeliveryReport(sender_id=sender.client_id, kind=CommandKind.BROADCAST)
        line = BROADCAST_FROM.format(sender_id=sender.client_id, text=text)
        for session in self.registry.snapshot():
            if session.client_id == sender.client_id:
                continue
            self._deliver(session, line, report)
        logger.info(f"[ROUTER] {line} (to {len(report.delivered)} clients)")
        return report

    def send_private(self, sender: "ClientSession", command: PrivateCommand) -> DeliveryReport:
        """Send a line to exactly one session and confirm to the sender."""
        report = DeliveryReport(sender_id=sender.client_id, kind=CommandKind.PRIVATE)
        target = self.registry.lookup(command.target_id)
        if target is None:
            report.not_found.append(command.target_id)
            report.unresolved.append(command.target_id)
            return self._reject(sender, ProtocolError(
                kind=ProtocolErrorKind.CLIENT_NOT_FOUND,
                reply=ERROR_CLIENT_NOT_FOUND.format(target_id=command.target_id),
            ), report)

        self._deliver(target, PRIVATE_FROM.format(sender_id=sender.client_id, text=command.text), report)
        self._reply(sender, PRIVATE_SENT.format(target_id=command.target_id))
        logger.info(f"[ROUTER] Private message from Client {sender.client_id} to Client {command.target_id}")
        return report

    def multicast(self, sender: "ClientSession", command: MulticastCommand) -> DeliveryReport:
        """Send a line to each listed session once and summarise to the sender."""
        report = DeliveryReport(sender_id=sender.client_id, kind=CommandKind.MULTICAST)
        target_ids = set()
        for target in command.targets:
            if not target.is_valid:
                report.invalid.append(target.token)
                report.unresolved.append(target.token)
            elif self.registry.lookup(target.client_id) is None:
                report.not_found.append(target.client_id)
                report.unresolved.append(target.client_id)
            else:
                target_ids.add(target.client_id)

        if not target_ids:
            return self._reject(sender, ProtocolError(
                kind=ProtocolErrorKind.NO_VALID_CLIENTS, reply=ERROR_NO_VALID_CLIENTS,
            ), report)

        line = MULTICAST_FROM.format(sender_id=sender.client_id, text=command.text)
        for session in self.registry.snapshot():
            if session.client_id in target_ids:
                self._deliver(session, line, report)

        summary = ""
        if report.unresolved:
            summary = CLIENTS_NOT_FOUND.format(unresolved=format_unresolved(report.unresolved))
        self._reply(sender, MULTICAST_SENT + summary)
        logger.info(
            f"[ROUTER] Multicast message from Client {sender.client_id} "
            f"to Clients {sorted(target_ids)}{summary}"
        )
        return report

    # ── Helpers ───────────────────────────────────────────────

    def _deliver(self, target: "ClientSession", line: str, report: DeliveryReport) -> None:
        if target.deliver(line):
            report.delivered.append(target.client_id)
        else:
            report.failed.append(target.client_id)
            logger.debug(f"[ROUTER] Delivery to Client {target.client_id} failed")

    def _reply(self, sender: "ClientSession", line: str) -> None:
        if not sender.deliver(line):
            logger.debug(f"[ROUTER] Reply to Client {sender.client_id} dropped")

    def _reject(
        self,
        sender: "ClientSession",
        error: ProtocolError,
        report: Optional[DeliveryReport] = None,
    ) -> DeliveryReport:
        if report is None:
            report = DeliveryReport(sender_id=sender.client_id)
        report.error = error.kind
        self._reply(sender, error.reply)
        logger.info(f"[ROUTER] Rejected line from Client {sender.client_id}: {error.kind.value}")
        return report
