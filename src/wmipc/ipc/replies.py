"""
Typed replies to window manager requests.

Every field is optional on the wire: a missing key leaves the neutral
default in place, and keys this client does not know are ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar

from pydantic import BeforeValidator, Field, ValidationInfo, field_validator

from wmipc.ipc.models import (
    CapabilityLevel,
    LenientEnum,
    Rect,
    WMModel,
    context_capability,
)

logger = logging.getLogger(__name__)


class CommandOutcome(WMModel):
    """The outcome of a single command from a run-command request."""

    success: bool = False
    error: str | None = None
    parse_error: bool | None = None


class SuccessReply(WMModel):
    """Reply carrying only a success flag (subscribe, send-tick, sync)."""

    success: bool = False


class Workspace(WMModel):
    """A single workspace."""

    id: int | None = None
    # -1 for named workspaces
    num: int = -1
    name: str = ""
    visible: bool = False
    focused: bool = False
    urgent: bool = False
    rect: Rect = Field(default_factory=Rect)
    output: str = ""


class OutputMode(WMModel):
    """A video mode supported by an output."""

    width: int = 0
    height: int = 0
    refresh: int = 0


class Output(WMModel):
    """A single output (display)."""

    gated_fields: ClassVar[dict[str, CapabilityLevel]] = {
        "make": CapabilityLevel.SWAY_1_1,
        "model": CapabilityLevel.SWAY_1_1,
        "serial": CapabilityLevel.SWAY_1_1,
        "dpms": CapabilityLevel.SWAY_1_1,
        "scale": CapabilityLevel.SWAY_1_1,
        "subpixel_hinting": CapabilityLevel.SWAY_1_1,
        "transform": CapabilityLevel.SWAY_1_1,
        "modes": CapabilityLevel.SWAY_1_1,
        "current_mode": CapabilityLevel.SWAY_1_1,
    }

    name: str = ""
    active: bool = False
    primary: bool = False
    current_workspace: str | None = None
    rect: Rect = Field(default_factory=Rect)

    # sway only
    make: str | None = None
    model: str | None = None
    serial: str | None = None
    dpms: bool | None = None
    scale: float | None = None
    subpixel_hinting: str | None = None
    transform: str | None = None
    modes: list[OutputMode] = Field(default_factory=list)
    current_mode: OutputMode | None = None


class NodeType(LenientEnum):
    """Container type in the layout tree."""

    ROOT = "root"
    OUTPUT = "output"
    CON = "con"
    FLOATING_CON = "floating_con"
    WORKSPACE = "workspace"
    DOCKAREA = "dockarea"
    UNKNOWN = "unknown"


class NodeBorder(LenientEnum):
    """Border style of a container."""

    NORMAL = "normal"
    NONE = "none"
    PIXEL = "pixel"
    UNKNOWN = "unknown"


class NodeLayout(LenientEnum):
    """Layout of a container."""

    SPLITH = "splith"
    SPLITV = "splitv"
    STACKED = "stacked"
    TABBED = "tabbed"
    DOCKAREA = "dockarea"
    OUTPUT = "output"
    UNKNOWN = "unknown"


NodeTypeField = Annotated[NodeType, BeforeValidator(NodeType)]
NodeBorderField = Annotated[NodeBorder, BeforeValidator(NodeBorder)]
NodeLayoutField = Annotated[NodeLayout, BeforeValidator(NodeLayout)]


class WindowProperties(WMModel):
    """X11 window properties of a container's client window."""

    title: str | None = None
    instance: str | None = None
    window_class: str | None = Field(default=None, alias="class")
    window_role: str | None = None
    transient_for: int | None = None
    machine: str | None = None


class Node(WMModel):
    """
    A container in the layout tree, as returned by get-tree.

    Children are nested in `nodes` and `floating_nodes`; `focus` lists
    child ids in focus order.
    """

    id: int = 0
    name: str | None = None
    type: NodeTypeField = NodeType.UNKNOWN
    border: NodeBorderField = NodeBorder.UNKNOWN
    current_border_width: int = 0
    layout: NodeLayoutField = NodeLayout.UNKNOWN
    percent: float | None = None
    rect: Rect = Field(default_factory=Rect)
    window_rect: Rect = Field(default_factory=Rect)
    deco_rect: Rect = Field(default_factory=Rect)
    geometry: Rect = Field(default_factory=Rect)
    window: int | None = None
    window_properties: WindowProperties | None = None
    urgent: bool = False
    focused: bool = False
    marks: list[str] = Field(default_factory=list)
    focus: list[int] = Field(default_factory=list)
    nodes: list[Node] = Field(default_factory=list)
    floating_nodes: list[Node] = Field(default_factory=list)

    def descendants(self) -> list[Node]:
        """All containers below this one, depth first."""
        result: list[Node] = []
        for child in [*self.nodes, *self.floating_nodes]:
            result.append(child)
            result.extend(child.descendants())
        return result

    def find_focused(self) -> Node | None:
        """Return the focused container in this subtree, if any."""
        if self.focused:
            return self
        for child in self.descendants():
            if child.focused:
                return child
        return None


# color key -> level that introduced it
BAR_COLORS: dict[str, CapabilityLevel] = {
    "background": CapabilityLevel.I3_4_11,
    "statusline": CapabilityLevel.I3_4_11,
    "separator": CapabilityLevel.I3_4_11,
    "focused_background": CapabilityLevel.I3_4_12,
    "focused_statusline": CapabilityLevel.I3_4_12,
    "focused_separator": CapabilityLevel.I3_4_12,
    "focused_workspace_text": CapabilityLevel.I3_4_11,
    "focused_workspace_bg": CapabilityLevel.I3_4_11,
    "focused_workspace_border": CapabilityLevel.I3_4_11,
    "active_workspace_text": CapabilityLevel.I3_4_11,
    "active_workspace_bg": CapabilityLevel.I3_4_11,
    "active_workspace_border": CapabilityLevel.I3_4_11,
    "inactive_workspace_text": CapabilityLevel.I3_4_11,
    "inactive_workspace_bg": CapabilityLevel.I3_4_11,
    "inactive_workspace_border": CapabilityLevel.I3_4_11,
    "urgent_workspace_text": CapabilityLevel.I3_4_11,
    "urgent_workspace_bg": CapabilityLevel.I3_4_11,
    "urgent_workspace_border": CapabilityLevel.I3_4_11,
    "binding_mode_text": CapabilityLevel.I3_4_11,
    "binding_mode_bg": CapabilityLevel.I3_4_11,
    "binding_mode_border": CapabilityLevel.I3_4_11,
}


class BarConfig(WMModel):
    """Configuration of one workspace bar."""

    id: str = ""
    mode: str = ""
    position: str = ""
    status_command: str | None = None
    font: str = ""
    workspace_buttons: bool = True
    binding_mode_indicator: bool = True
    verbose: bool = False
    # color name -> "#rrggbb"
    colors: dict[str, str] = Field(default_factory=dict)

    @field_validator("colors", mode="before")
    @classmethod
    def _known_colors(cls, value: Any, info: ValidationInfo) -> Any:
        if not isinstance(value, dict):
            return value
        capability = context_capability(info)
        colors = {}
        for key, color in value.items():
            required = BAR_COLORS.get(key)
            if required is None:
                logger.warning(f"Unknown bar color {key!r}, ignoring")
                continue
            if capability is not None and not capability.supports(required):
                continue
            colors[key] = color
        return colors


class Version(WMModel):
    """Version of the running window manager."""

    gated_fields: ClassVar[dict[str, CapabilityLevel]] = {
        "loaded_config_file_name": CapabilityLevel.I3_4_13,
    }

    major: int = 0
    minor: int = 0
    patch: int = 0
    human_readable: str = ""
    loaded_config_file_name: str | None = None


class ConfigReply(WMModel):
    """The configuration file as last loaded by the window manager."""

    config: str = ""


@dataclass(frozen=True)
class UnknownReply:
    """A reply whose kind this client's capability level does not cover."""

    type_code: int
    payload: bytes
