"""
Shared building blocks for typed replies and events.

Payload models are pydantic models validated with a context carrying the
client's capability level. Keys introduced by a newer window manager than
the configured level are dropped before validation and unknown keys are
ignored. Enum-valued fields fall back to an UNKNOWN member, and a known
key whose value does not fit is dropped so the field keeps its default.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, ClassVar

from pydantic import (
    BaseModel,
    ConfigDict,
    ModelWrapValidatorHandler,
    ValidationError,
    ValidationInfo,
    model_validator,
)

logger = logging.getLogger(__name__)


class CapabilityLevel(str, Enum):
    """Window manager releases this client can be built against, oldest first."""

    I3_4_11 = "i3-4.11"
    I3_4_12 = "i3-4.12"
    I3_4_13 = "i3-4.13"
    I3_4_14 = "i3-4.14"
    I3_4_15 = "i3-4.15"
    I3_4_16 = "i3-4.16"
    SWAY_1_1 = "sway-1.1"

    @property
    def rank(self) -> int:
        """Position in release order."""
        return list(CapabilityLevel).index(self)

    def supports(self, required: CapabilityLevel) -> bool:
        """Check if this level includes everything introduced at `required`."""
        return self.rank >= required.rank


DEFAULT_CAPABILITY = CapabilityLevel.I3_4_16


def context_capability(info: ValidationInfo | None) -> CapabilityLevel | None:
    """Capability level passed through the validation context, if any."""
    if info is None or not info.context:
        return None
    return info.context.get("capability")


class LenientEnum(str, Enum):
    """
    String enum that maps values it does not know to ``UNKNOWN``.

    Subclasses must define an ``UNKNOWN`` member.
    """

    @classmethod
    def _missing_(cls, value: object) -> Any:
        logger.warning(f"Unknown {cls.__name__} value {value!r}, using UNKNOWN")
        return cls["UNKNOWN"]


class WMModel(BaseModel):
    """Base model for every payload sent by the window manager."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # field name -> level that introduced it
    gated_fields: ClassVar[dict[str, CapabilityLevel]] = {}

    @model_validator(mode="before")
    @classmethod
    def _drop_gated_fields(cls, data: Any, info: ValidationInfo) -> Any:
        capability = context_capability(info)
        if capability is None or not cls.gated_fields or not isinstance(data, dict):
            return data
        return {
            key: value
            for key, value in data.items()
            if key not in cls.gated_fields or capability.supports(cls.gated_fields[key])
        }

    @model_validator(mode="wrap")
    @classmethod
    def _drop_invalid_fields(cls, data: Any, handler: ModelWrapValidatorHandler[WMModel]) -> WMModel:
        # A value this client cannot take falls back to the field default.
        try:
            return handler(data)
        except ValidationError as e:
            if not isinstance(data, dict):
                raise
            invalid = {err["loc"][0] for err in e.errors() if err["loc"] and err["loc"][0] in data}
            if not invalid:
                raise
            logger.warning(f"Ignoring unexpected values in {cls.__name__} fields: {sorted(invalid)}")
            return handler({key: value for key, value in data.items() if key not in invalid})


class Rect(WMModel):
    """Rectangle in display coordinates."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
