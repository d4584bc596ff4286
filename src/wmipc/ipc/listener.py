"""
IPC Event Listener.

Subscribes a dedicated connection to window manager events and turns the
following frames into a blocking stream of typed events.

Lifecycle:
    CREATED --subscribe()--> AWAITING_ACK --ack ok--> LISTENING --error/close()--> CLOSED
    AWAITING_ACK --ack failed--> CLOSED
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from enum import Enum
from typing import TYPE_CHECKING

from wmipc.ipc.exceptions import (
    IPCError,
    IPCErrorCode,
    IPCProtocolError,
    IPCStateError,
    IPCValidationError,
)
from wmipc.ipc.models import DEFAULT_CAPABILITY, CapabilityLevel
from wmipc.ipc.protocol import decode_frame
from wmipc.ipc.registry import Request, Subscription, TypeRegistry
from wmipc.ipc.transport import UnixSocketTransport, open_transport

if TYPE_CHECKING:
    from pathlib import Path

    from wmipc.core.config import ClientConfig
    from wmipc.ipc.events import Event

logger = logging.getLogger(__name__)


def _as_subscription(value: Subscription | str) -> Subscription:
    try:
        return Subscription(value)
    except ValueError as e:
        raise IPCValidationError(
            f"Unknown subscription: {value!r}",
            details={"subscription": str(value)},
        ) from e


class ListenerState(str, Enum):
    """State of an event listener."""

    CREATED = "created"
    AWAITING_ACK = "awaiting_ack"
    LISTENING = "listening"
    CLOSED = "closed"


class EventStream(Iterator["Event"]):
    """
    Blocking iterator over the events of a subscribed listener.

    Each ``next()`` reads one frame. Transport and protocol errors are
    raised once and end the stream; the listener is closed and further
    ``next()`` calls raise StopIteration. An IPCDecodeError only concerns
    the frame that caused it: the stream stays usable.

    Events with codes this client does not know are yielded as
    UnknownEvent values.
    """

    def __init__(self, listener: EventListener) -> None:
        self._listener = listener
        self._finished = False

    def __iter__(self) -> EventStream:
        return self

    def __next__(self) -> Event:
        if self._finished:
            raise StopIteration

        try:
            frame = decode_frame(self._listener._transport)
        except IPCError as e:
            logger.info(f"Event stream ended: {e}")
            self._finish()
            raise

        if not frame.is_event:
            self._finish()
            raise IPCProtocolError(
                f"Received non-event frame type {frame.type_code} while listening",
                code=IPCErrorCode.MISSING_EVENT_BIT,
                details={"type_code": frame.type_code},
            )

        logger.debug(f"Received event {frame.kind:#x} ({len(frame.payload)} bytes)")
        return self._listener._registry.decode_event(frame)

    def _finish(self) -> None:
        self._finished = True
        self._listener.close()


class EventListener:
    """
    Event subscription over a dedicated connection.

    `subscribe()` must be called exactly once, then `listen()` returns the
    event stream. The subscription set cannot change afterwards.

    A listener must be driven from one thread at a time. `close()` may be
    called from another thread to end a blocked read.
    """

    def __init__(
        self,
        transport: UnixSocketTransport,
        capability: CapabilityLevel = DEFAULT_CAPABILITY,
    ) -> None:
        """
        Initialize over an already connected transport.

        Args:
            transport: Connected transport, owned by this listener from now on
            capability: Capability level used to decode events
        """
        self._transport = transport
        self._registry = TypeRegistry(capability)
        self._state = ListenerState.CREATED
        self._subscriptions: frozenset[Subscription] = frozenset()
        self._stream: EventStream | None = None

    @classmethod
    def connect(
        cls,
        socket_path: str | Path | None = None,
        capability: CapabilityLevel = DEFAULT_CAPABILITY,
        connect_timeout: float | None = None,
        receive_timeout: float | None = None,
    ) -> EventListener:
        """
        Open a new connection for listening.

        Raises:
            IPCConnectionError: If the socket cannot be located or reached
        """
        transport = open_transport(socket_path, connect_timeout, receive_timeout)
        logger.info(f"Event listener connected to {transport.socket_path}")
        return cls(transport, capability)

    @classmethod
    def from_config(cls, config: ClientConfig) -> EventListener:
        """
        Connect using the settings of a ClientConfig.

        `receive_timeout` is not applied: events can be minutes apart, and
        an expired deadline would end the stream.
        """
        return cls.connect(
            socket_path=config.socket_path,
            capability=config.capability,
            connect_timeout=config.connect_timeout,
        )

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def subscriptions(self) -> frozenset[Subscription]:
        return self._subscriptions

    def subscribe(self, subscriptions: Iterable[Subscription | str]) -> None:
        """
        Subscribe to event categories and wait for the acknowledgement.

        Args:
            subscriptions: Categories to receive, as Subscription members or names

        Raises:
            IPCStateError: If subscribe was already called or the listener is closed
            IPCValidationError: If a category is newer than the capability level
            IPCProtocolError: If the window manager rejects the subscription
            IPCConnectionError: If the socket fails during the exchange
        """
        if self._state is not ListenerState.CREATED:
            raise IPCStateError(
                f"Cannot subscribe in state {self._state.value}",
                details={"state": self._state.value},
            )

        subs = list(dict.fromkeys(_as_subscription(sub) for sub in subscriptions))
        self._registry.validate_subscriptions(subs)
        request = Request.subscribe(subs)

        self._state = ListenerState.AWAITING_ACK
        try:
            self._transport.write(request.to_bytes())
            frame = decode_frame(self._transport)
            ack = self._registry.decode_reply(request, frame)
        except IPCError:
            self.close()
            raise

        if not ack.success:
            self.close()
            raise IPCProtocolError(
                "Window manager rejected the subscription",
                code=IPCErrorCode.SUBSCRIPTION_FAILED,
                details={"subscriptions": [sub.value for sub in subs]},
            )

        self._subscriptions = frozenset(subs)
        self._state = ListenerState.LISTENING
        logger.info(f"Subscribed to {', '.join(sub.value for sub in subs)}")

    def listen(self) -> EventStream:
        """
        Return the event stream.

        May be called once, after a successful `subscribe()`.

        Raises:
            IPCStateError: If not subscribed or the stream was already taken
        """
        if self._state is not ListenerState.LISTENING:
            raise IPCStateError(
                f"Cannot listen in state {self._state.value}",
                details={"state": self._state.value},
            )
        if self._stream is not None:
            raise IPCStateError("The event stream has already been taken")

        self._stream = EventStream(self)
        return self._stream

    def close(self) -> None:
        """Close the listener and its connection. Safe to call more than once."""
        if self._state is ListenerState.CLOSED:
            return
        self._state = ListenerState.CLOSED
        self._transport.close()
        logger.info("Event listener closed")

    def __enter__(self) -> EventListener:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit - close listener."""
        self.close()
