"""
Typed events sent by the window manager to subscribed listeners.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, ClassVar

from pydantic import BeforeValidator, Field, model_validator

from wmipc.ipc.models import CapabilityLevel, LenientEnum, WMModel
from wmipc.ipc.replies import BarConfig, Node


class WorkspaceChange(LenientEnum):
    FOCUS = "focus"
    INIT = "init"
    EMPTY = "empty"
    URGENT = "urgent"
    RENAME = "rename"
    RELOAD = "reload"
    RESTORED = "restored"
    MOVE = "move"
    UNKNOWN = "unknown"


class OutputChange(LenientEnum):
    UNSPECIFIED = "unspecified"
    UNKNOWN = "unknown"


class WindowChange(LenientEnum):
    NEW = "new"
    CLOSE = "close"
    FOCUS = "focus"
    TITLE = "title"
    FULLSCREEN_MODE = "fullscreen_mode"
    MOVE = "move"
    FLOATING = "floating"
    URGENT = "urgent"
    MARK = "mark"
    UNKNOWN = "unknown"


class BindingChange(LenientEnum):
    RUN = "run"
    UNKNOWN = "unknown"


class InputType(LenientEnum):
    KEYBOARD = "keyboard"
    MOUSE = "mouse"
    UNKNOWN = "unknown"


class ShutdownChange(LenientEnum):
    RESTART = "restart"
    EXIT = "exit"
    UNKNOWN = "unknown"


class InputChange(LenientEnum):
    ADDED = "added"
    REMOVED = "removed"
    XKB_KEYMAP = "xkb_keymap"
    XKB_LAYOUT = "xkb_layout"
    LIBINPUT_CONFIG = "libinput_config"
    UNKNOWN = "unknown"


class WorkspaceEvent(WMModel):
    """A workspace was focused, created, emptied, renamed, ..."""

    change: Annotated[WorkspaceChange, BeforeValidator(WorkspaceChange)] = WorkspaceChange.UNKNOWN
    current: Node | None = None
    # only set on focus changes with a previous workspace
    old: Node | None = None


class OutputEvent(WMModel):
    """The output configuration changed."""

    change: Annotated[OutputChange, BeforeValidator(OutputChange)] = OutputChange.UNKNOWN


class ModeEvent(WMModel):
    """The binding mode changed; `change` is the new mode's name."""

    gated_fields: ClassVar[dict[str, CapabilityLevel]] = {
        "pango_markup": CapabilityLevel.I3_4_13,
    }

    change: str = ""
    pango_markup: bool | None = None


class WindowEvent(WMModel):
    """A window was created, closed, focused, retitled, ..."""

    change: Annotated[WindowChange, BeforeValidator(WindowChange)] = WindowChange.UNKNOWN
    container: Node | None = None


class BarConfigUpdateEvent(BarConfig):
    """A bar's configuration was reloaded."""


class BindingInfo(WMModel):
    """Details of the binding that ran a command."""

    command: str = ""
    mods: list[str] = Field(default_factory=list)
    # key code for bindcode, click count for mouse bindings, 0 otherwise
    input_code: int = 0
    symbol: str | None = None
    input_type: Annotated[InputType, BeforeValidator(InputType)] = InputType.UNKNOWN


BINDING_KEYS = frozenset(BindingInfo.model_fields)


class BindingEvent(WMModel):
    """A binding ran a command because of user input."""

    change: Annotated[BindingChange, BeforeValidator(BindingChange)] = BindingChange.UNKNOWN
    binding: BindingInfo = Field(default_factory=BindingInfo)

    @model_validator(mode="before")
    @classmethod
    def _flat_binding(cls, data: Any) -> Any:
        # Accept binding details given next to "change" instead of nested.
        if isinstance(data, dict) and "binding" not in data:
            flat = {key: value for key, value in data.items() if key in BINDING_KEYS}
            if flat:
                data = {**data, "binding": flat}
        return data

    @property
    def command(self) -> str:
        """The command configured for the binding."""
        return self.binding.command


class ShutdownEvent(WMModel):
    """The window manager is restarting or exiting."""

    change: Annotated[ShutdownChange, BeforeValidator(ShutdownChange)] = ShutdownChange.UNKNOWN


class TickEvent(WMModel):
    """
    A tick sent by some client through send-tick.

    `first` is true only for the tick delivered right after subscribing.
    """

    first: bool = False
    payload: str = ""


class BarStateUpdateEvent(WMModel):
    """A bar's visibility changed because of its modifier key (sway)."""

    id: str = ""
    visible_by_modifier: bool = False


class InputEvent(WMModel):
    """An input device was added, removed or reconfigured (sway)."""

    change: Annotated[InputChange, BeforeValidator(InputChange)] = InputChange.UNKNOWN
    input: dict[str, Any] = Field(default_factory=dict)


@dataclass(frozen=True)
class UnknownEvent:
    """
    An event whose code this client's capability level does not cover.

    `type_code` is the event code with the event bit stripped.
    """

    type_code: int
    payload: bytes


Event = (
    WorkspaceEvent
    | OutputEvent
    | ModeEvent
    | WindowEvent
    | BarConfigUpdateEvent
    | BindingEvent
    | ShutdownEvent
    | TickEvent
    | BarStateUpdateEvent
    | InputEvent
    | UnknownEvent
)
