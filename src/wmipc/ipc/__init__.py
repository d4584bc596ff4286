"""
wmipc IPC - window manager control protocol.

Provides a blocking request/reply connection and a blocking event
listener over the window manager's Unix socket.
"""

from wmipc.ipc.client import ChannelState, WMConnection
from wmipc.ipc.events import (
    BarConfigUpdateEvent,
    BarStateUpdateEvent,
    BindingChange,
    BindingEvent,
    BindingInfo,
    Event,
    InputChange,
    InputEvent,
    InputType,
    ModeEvent,
    OutputChange,
    OutputEvent,
    ShutdownChange,
    ShutdownEvent,
    TickEvent,
    UnknownEvent,
    WindowChange,
    WindowEvent,
    WorkspaceChange,
    WorkspaceEvent,
)
from wmipc.ipc.exceptions import (
    IPCConnectionError,
    IPCDecodeError,
    IPCError,
    IPCErrorCode,
    IPCProtocolError,
    IPCStateError,
    IPCTimeoutError,
    IPCValidationError,
)
from wmipc.ipc.listener import EventListener, EventStream, ListenerState
from wmipc.ipc.models import DEFAULT_CAPABILITY, CapabilityLevel, Rect
from wmipc.ipc.protocol import EVENT_BIT, HEADER_SIZE, MAGIC, Frame, decode_frame, encode_frame
from wmipc.ipc.registry import EventType, MessageType, Request, Subscription, TypeRegistry
from wmipc.ipc.replies import (
    BarConfig,
    CommandOutcome,
    ConfigReply,
    Node,
    NodeBorder,
    NodeLayout,
    NodeType,
    Output,
    OutputMode,
    SuccessReply,
    UnknownReply,
    Version,
    WindowProperties,
    Workspace,
)
from wmipc.ipc.transport import UnixSocketTransport, discover_socket_path, open_transport

__all__ = [
    # Frame codec
    "EVENT_BIT",
    "HEADER_SIZE",
    "MAGIC",
    "Frame",
    "decode_frame",
    "encode_frame",
    # Type registry
    "CapabilityLevel",
    "DEFAULT_CAPABILITY",
    "EventType",
    "MessageType",
    "Request",
    "Subscription",
    "TypeRegistry",
    # Replies
    "BarConfig",
    "CommandOutcome",
    "ConfigReply",
    "Node",
    "NodeBorder",
    "NodeLayout",
    "NodeType",
    "Output",
    "OutputMode",
    "Rect",
    "SuccessReply",
    "UnknownReply",
    "Version",
    "WindowProperties",
    "Workspace",
    # Events
    "BarConfigUpdateEvent",
    "BarStateUpdateEvent",
    "BindingChange",
    "BindingEvent",
    "BindingInfo",
    "Event",
    "InputChange",
    "InputEvent",
    "InputType",
    "ModeEvent",
    "OutputChange",
    "OutputEvent",
    "ShutdownChange",
    "ShutdownEvent",
    "TickEvent",
    "UnknownEvent",
    "WindowChange",
    "WindowEvent",
    "WorkspaceChange",
    "WorkspaceEvent",
    # Transport
    "UnixSocketTransport",
    "discover_socket_path",
    "open_transport",
    # Client
    "ChannelState",
    "WMConnection",
    # Listener
    "EventListener",
    "EventStream",
    "ListenerState",
    # Exceptions
    "IPCError",
    "IPCErrorCode",
    "IPCConnectionError",
    "IPCDecodeError",
    "IPCProtocolError",
    "IPCStateError",
    "IPCTimeoutError",
    "IPCValidationError",
]
