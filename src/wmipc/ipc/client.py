"""
IPC Client.

Request/reply channel to the window manager: one request frame out,
exactly one reply frame back, decoded according to the request kind.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from wmipc.ipc.exceptions import IPCStateError
from wmipc.ipc.models import DEFAULT_CAPABILITY, CapabilityLevel
from wmipc.ipc.protocol import decode_frame
from wmipc.ipc.registry import Request, TypeRegistry
from wmipc.ipc.transport import UnixSocketTransport, open_transport

if TYPE_CHECKING:
    from pathlib import Path

    from wmipc.core.config import ClientConfig
    from wmipc.ipc.replies import (
        BarConfig,
        CommandOutcome,
        ConfigReply,
        Node,
        Output,
        SuccessReply,
        Version,
        Workspace,
    )

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    """State of a request/reply channel."""

    IDLE = "idle"
    AWAITING_REPLY = "awaiting_reply"
    CLOSED = "closed"


class WMConnection:
    """
    Request/reply channel to the window manager.

    The wire format has no request ids: replies are matched to requests
    by order, so only one request may be outstanding at a time. A second
    `send` while one is in flight fails with IPCStateError.

    A connection must be driven from one thread at a time. The only
    cross-thread call supported is `close()`, which makes a pending
    read fail with IPCConnectionError.

    Failed exchanges are never retried, since commands change window
    manager state and must not run twice.
    """

    def __init__(
        self,
        transport: UnixSocketTransport,
        capability: CapabilityLevel = DEFAULT_CAPABILITY,
    ) -> None:
        """
        Initialize over an already connected transport.

        Args:
            transport: Connected transport, owned by this connection from now on
            capability: Capability level used to decode replies
        """
        self._transport = transport
        self._registry = TypeRegistry(capability)
        self._state = ChannelState.IDLE

    @classmethod
    def connect(
        cls,
        socket_path: str | Path | None = None,
        capability: CapabilityLevel = DEFAULT_CAPABILITY,
        connect_timeout: float | None = None,
        receive_timeout: float | None = None,
    ) -> WMConnection:
        """
        Connect to the window manager.

        Args:
            socket_path: Path to the IPC socket (discovered if None)
            capability: Capability level used to decode replies
            connect_timeout: Timeout for the connection attempt
            receive_timeout: Deadline applied to every socket read

        Raises:
            IPCConnectionError: If the socket cannot be located or reached
        """
        transport = open_transport(socket_path, connect_timeout, receive_timeout)
        logger.info(f"Connected to window manager at {transport.socket_path}")
        return cls(transport, capability)

    @classmethod
    def from_config(cls, config: ClientConfig) -> WMConnection:
        """Connect using the settings of a ClientConfig."""
        return cls.connect(
            socket_path=config.socket_path,
            capability=config.capability,
            connect_timeout=config.connect_timeout,
            receive_timeout=config.receive_timeout,
        )

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def capability(self) -> CapabilityLevel:
        return self._registry.capability

    @property
    def is_connected(self) -> bool:
        """Check if the connection is open."""
        return self._state is not ChannelState.CLOSED and self._transport.is_connected

    def send(self, request: Request) -> Any:
        """
        Send a request and block for its reply.

        Args:
            request: Request to send

        Returns:
            The reply decoded for the request's kind

        Raises:
            IPCStateError: If the connection is closed or a request is in flight
            IPCConnectionError: If the socket fails or closes mid-exchange
            IPCProtocolError: If the reply frame is malformed or of the wrong type
            IPCDecodeError: If the reply payload cannot be parsed
        """
        if self._state is ChannelState.CLOSED:
            raise IPCStateError("Connection is closed")
        if self._state is ChannelState.AWAITING_REPLY:
            raise IPCStateError(
                "Another request is still awaiting its reply",
                details={"request": request.type.name},
            )

        self._state = ChannelState.AWAITING_REPLY
        try:
            logger.debug(f"Sending {request.type.name}")
            self._transport.write(request.to_bytes())
            frame = decode_frame(self._transport)
            logger.debug(f"Received reply type {frame.type_code} ({len(frame.payload)} bytes)")
            return self._registry.decode_reply(request, frame)
        finally:
            if self._state is ChannelState.AWAITING_REPLY:
                self._state = ChannelState.IDLE

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._state is ChannelState.CLOSED:
            return
        self._state = ChannelState.CLOSED
        self._transport.close()
        logger.info("Disconnected from window manager")

    # Convenience methods for each request kind

    def command(self, command: str) -> list[CommandOutcome]:
        """Run one or more commands (separated by ``;`` or ``,``)."""
        return self.send(Request.run_command(command))

    def get_workspaces(self) -> list[Workspace]:
        return self.send(Request.get_workspaces())

    def get_outputs(self) -> list[Output]:
        return self.send(Request.get_outputs())

    def get_tree(self) -> Node:
        """Get the layout tree, rooted at the root container."""
        return self.send(Request.get_tree())

    def get_marks(self) -> list[str]:
        return self.send(Request.get_marks())

    def get_bar_ids(self) -> list[str]:
        """Get the ids of all configured bars."""
        return self.send(Request.get_bar_config())

    def get_bar_config(self, bar_id: str) -> BarConfig:
        return self.send(Request.get_bar_config(bar_id))

    def get_version(self) -> Version:
        return self.send(Request.get_version())

    def get_binding_modes(self) -> list[str]:
        return self.send(Request.get_binding_modes())

    def get_config(self) -> ConfigReply:
        return self.send(Request.get_config())

    def send_tick(self, payload: str = "") -> SuccessReply:
        """Broadcast a tick event to every client subscribed to ticks."""
        return self.send(Request.send_tick(payload))

    def sync(self, random: int, window: int) -> SuccessReply:
        return self.send(Request.sync(random, window))

    def __enter__(self) -> WMConnection:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit - close connection."""
        self.close()
