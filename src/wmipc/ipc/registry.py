"""
IPC Type Registry.

Maps numeric message and event codes to typed values. What the registry
recognizes is gated by a capability level chosen once per client; kinds
above that level decode to an Unknown value instead of failing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from pydantic import TypeAdapter, ValidationError

from wmipc.ipc.events import (
    BarConfigUpdateEvent,
    BarStateUpdateEvent,
    BindingEvent,
    Event,
    InputEvent,
    ModeEvent,
    OutputEvent,
    ShutdownEvent,
    TickEvent,
    UnknownEvent,
    WindowEvent,
    WorkspaceEvent,
)
from wmipc.ipc.exceptions import (
    IPCDecodeError,
    IPCErrorCode,
    IPCProtocolError,
    IPCValidationError,
)
from wmipc.ipc.models import DEFAULT_CAPABILITY, CapabilityLevel
from wmipc.ipc.protocol import Frame, encode_frame
from wmipc.ipc.replies import (
    BarConfig,
    CommandOutcome,
    ConfigReply,
    Node,
    Output,
    SuccessReply,
    UnknownReply,
    Version,
    Workspace,
)

logger = logging.getLogger(__name__)


class MessageType(IntEnum):
    """Request type codes, fixed by the window manager's protocol."""

    RUN_COMMAND = 0
    GET_WORKSPACES = 1
    SUBSCRIBE = 2
    GET_OUTPUTS = 3
    GET_TREE = 4
    GET_MARKS = 5
    GET_BAR_CONFIG = 6
    GET_VERSION = 7
    GET_BINDING_MODES = 8
    GET_CONFIG = 9
    SEND_TICK = 10
    SYNC = 11


class EventType(IntEnum):
    """Event codes, with the event bit stripped."""

    WORKSPACE = 0
    OUTPUT = 1
    MODE = 2
    WINDOW = 3
    BARCONFIG_UPDATE = 4
    BINDING = 5
    SHUTDOWN = 6
    TICK = 7
    BAR_STATE_UPDATE = 0x14
    INPUT = 0x15


class Subscription(str, Enum):
    """Event categories a listener can subscribe to."""

    WORKSPACE = "workspace"
    OUTPUT = "output"
    MODE = "mode"
    WINDOW = "window"
    BARCONFIG_UPDATE = "barconfig_update"
    BINDING = "binding"
    SHUTDOWN = "shutdown"
    TICK = "tick"
    BAR_STATE_UPDATE = "bar_state_update"
    INPUT = "input"

    @property
    def event_type(self) -> EventType:
        """Event code delivered for this subscription."""
        return EventType[self.name]


# Kinds newer than the base protocol and the level that introduced them
MESSAGE_CAPABILITY: dict[MessageType, CapabilityLevel] = {
    MessageType.GET_BINDING_MODES: CapabilityLevel.I3_4_13,
    MessageType.GET_CONFIG: CapabilityLevel.I3_4_14,
    MessageType.SEND_TICK: CapabilityLevel.I3_4_15,
    MessageType.SYNC: CapabilityLevel.I3_4_16,
}

EVENT_CAPABILITY: dict[EventType, CapabilityLevel] = {
    EventType.SHUTDOWN: CapabilityLevel.I3_4_14,
    EventType.TICK: CapabilityLevel.I3_4_15,
    EventType.BAR_STATE_UPDATE: CapabilityLevel.SWAY_1_1,
    EventType.INPUT: CapabilityLevel.SWAY_1_1,
}

REPLY_ADAPTERS: dict[MessageType, TypeAdapter[Any]] = {
    MessageType.RUN_COMMAND: TypeAdapter(list[CommandOutcome]),
    MessageType.GET_WORKSPACES: TypeAdapter(list[Workspace]),
    MessageType.SUBSCRIBE: TypeAdapter(SuccessReply),
    MessageType.GET_OUTPUTS: TypeAdapter(list[Output]),
    MessageType.GET_TREE: TypeAdapter(Node),
    MessageType.GET_MARKS: TypeAdapter(list[str]),
    MessageType.GET_VERSION: TypeAdapter(Version),
    MessageType.GET_BINDING_MODES: TypeAdapter(list[str]),
    MessageType.GET_CONFIG: TypeAdapter(ConfigReply),
    MessageType.SEND_TICK: TypeAdapter(SuccessReply),
    MessageType.SYNC: TypeAdapter(SuccessReply),
}

# get-bar-config answers with bar ids or with one bar, depending on the payload
BAR_IDS_ADAPTER: TypeAdapter[list[str]] = TypeAdapter(list[str])
BAR_CONFIG_ADAPTER: TypeAdapter[BarConfig] = TypeAdapter(BarConfig)

EVENT_ADAPTERS: dict[EventType, TypeAdapter[Any]] = {
    EventType.WORKSPACE: TypeAdapter(WorkspaceEvent),
    EventType.OUTPUT: TypeAdapter(OutputEvent),
    EventType.MODE: TypeAdapter(ModeEvent),
    EventType.WINDOW: TypeAdapter(WindowEvent),
    EventType.BARCONFIG_UPDATE: TypeAdapter(BarConfigUpdateEvent),
    EventType.BINDING: TypeAdapter(BindingEvent),
    EventType.SHUTDOWN: TypeAdapter(ShutdownEvent),
    EventType.TICK: TypeAdapter(TickEvent),
    EventType.BAR_STATE_UPDATE: TypeAdapter(BarStateUpdateEvent),
    EventType.INPUT: TypeAdapter(InputEvent),
}


@dataclass(frozen=True)
class Request:
    """
    An outgoing command.

    `payload` is sent as UTF-8 text when it is a string and as JSON
    otherwise.
    """

    type: MessageType
    payload: str | list[Any] | dict[str, Any] | None = None

    @classmethod
    def run_command(cls, command: str) -> Request:
        return cls(MessageType.RUN_COMMAND, command)

    @classmethod
    def get_workspaces(cls) -> Request:
        return cls(MessageType.GET_WORKSPACES)

    @classmethod
    def subscribe(cls, subscriptions: list[Subscription]) -> Request:
        return cls(MessageType.SUBSCRIBE, [sub.value for sub in subscriptions])

    @classmethod
    def get_outputs(cls) -> Request:
        return cls(MessageType.GET_OUTPUTS)

    @classmethod
    def get_tree(cls) -> Request:
        return cls(MessageType.GET_TREE)

    @classmethod
    def get_marks(cls) -> Request:
        return cls(MessageType.GET_MARKS)

    @classmethod
    def get_bar_config(cls, bar_id: str | None = None) -> Request:
        """Request one bar's config, or the list of bar ids without `bar_id`."""
        return cls(MessageType.GET_BAR_CONFIG, bar_id)

    @classmethod
    def get_version(cls) -> Request:
        return cls(MessageType.GET_VERSION)

    @classmethod
    def get_binding_modes(cls) -> Request:
        return cls(MessageType.GET_BINDING_MODES)

    @classmethod
    def get_config(cls) -> Request:
        return cls(MessageType.GET_CONFIG)

    @classmethod
    def send_tick(cls, payload: str = "") -> Request:
        return cls(MessageType.SEND_TICK, payload)

    @classmethod
    def sync(cls, random: int, window: int) -> Request:
        return cls(MessageType.SYNC, {"random": random, "window": window})

    def body(self) -> bytes:
        """Encode the payload as the frame body."""
        if self.payload is None:
            return b""
        if isinstance(self.payload, str):
            return self.payload.encode("utf-8")
        return json.dumps(self.payload, separators=(",", ":")).encode("utf-8")

    def to_bytes(self) -> bytes:
        """Encode the complete wire frame."""
        return encode_frame(int(self.type), self.body())


class TypeRegistry:
    """
    Decodes frames into typed replies and events.

    The capability level is fixed for the registry's lifetime.
    """

    def __init__(self, capability: CapabilityLevel = DEFAULT_CAPABILITY) -> None:
        self.capability = capability
        self._context = {"capability": capability}

    def supports_message(self, message_type: MessageType) -> bool:
        """Check if replies of this kind are understood at this level."""
        required = MESSAGE_CAPABILITY.get(message_type)
        return required is None or self.capability.supports(required)

    def supports_event(self, event_type: EventType) -> bool:
        """Check if events of this kind are understood at this level."""
        required = EVENT_CAPABILITY.get(event_type)
        return required is None or self.capability.supports(required)

    def validate_subscriptions(self, subscriptions: list[Subscription]) -> None:
        """
        Check every subscription is available at this level.

        Raises:
            IPCValidationError: If a subscription is newer than the capability level
        """
        unsupported = [sub.value for sub in subscriptions if not self.supports_event(sub.event_type)]
        if unsupported:
            raise IPCValidationError(
                f"Subscriptions not available at {self.capability.value}: {unsupported}",
                details={"subscriptions": unsupported, "capability": self.capability.value},
            )

    def decode_reply(self, request: Request, frame: Frame) -> Any:
        """
        Decode the reply frame for `request`.

        Returns:
            The typed reply, or UnknownReply if the reply kind is above
            the capability level

        Raises:
            IPCProtocolError: If the frame is not a reply to `request`
            IPCDecodeError: If the payload is not valid JSON of the expected shape
        """
        if frame.is_event or frame.type_code != request.type:
            raise IPCProtocolError(
                f"Expected reply type {int(request.type)} but got {frame.type_code:#x}",
                code=IPCErrorCode.UNEXPECTED_REPLY,
                details={"expected": int(request.type), "received": frame.type_code},
            )

        if not self.supports_message(request.type):
            logger.warning(
                f"Reply to {request.type.name} is not understood at "
                f"{self.capability.value}, returning it undecoded"
            )
            return UnknownReply(type_code=frame.type_code, payload=frame.payload)

        data = self._parse(frame.payload)

        if request.type == MessageType.GET_BAR_CONFIG:
            adapter = BAR_IDS_ADAPTER if isinstance(data, list) else BAR_CONFIG_ADAPTER
        else:
            adapter = REPLY_ADAPTERS[request.type]

        return self._validate(adapter, data, request.type.name)

    def decode_event(self, frame: Frame) -> Event:
        """
        Decode an event frame.

        Returns:
            The typed event, or UnknownEvent for codes above the capability level

        Raises:
            IPCDecodeError: If a known event's payload is not valid JSON of the expected shape
        """
        try:
            event_type = EventType(frame.kind)
        except ValueError:
            event_type = None

        if event_type is None or not self.supports_event(event_type):
            logger.warning(
                f"Event code {frame.kind:#x} is not understood at "
                f"{self.capability.value}, returning it undecoded"
            )
            return UnknownEvent(type_code=frame.kind, payload=frame.payload)

        data = self._parse(frame.payload)
        return self._validate(EVENT_ADAPTERS[event_type], data, event_type.name)

    def _parse(self, payload: bytes) -> Any:
        try:
            return json.loads(payload.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise IPCDecodeError(
                f"Invalid UTF-8 encoding: {e}",
                code=IPCErrorCode.MALFORMED_JSON,
            ) from e
        except json.JSONDecodeError as e:
            raise IPCDecodeError(
                f"Invalid JSON: {e}",
                code=IPCErrorCode.MALFORMED_JSON,
                details={"raw": payload[:100].decode("utf-8", "replace")},
            ) from e

    def _validate(self, adapter: TypeAdapter[Any], data: Any, kind: str) -> Any:
        try:
            return adapter.validate_python(data, context=self._context)
        except ValidationError as e:
            raise IPCDecodeError(
                f"Unexpected {kind} payload: {e}",
                code=IPCErrorCode.INVALID_PAYLOAD,
                details={"kind": kind, "errors": e.error_count()},
            ) from e
