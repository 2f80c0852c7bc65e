"""
Controller State
================
Live telemetry values held for one named controller.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping

# Decimal places used when values leave the process (list-all, broadcasts)
DISPLAY_PRECISION = 2


@dataclass
class ControllerState:
    """
    Mutable state of a single controller.

    Only the ControllerRegistry keeps instances across calls; everybody else
    works with copies obtained from it.
    """
    temperature: float = 0.0
    level: float = 0.0
    enabled: bool = True

    def copy(self) -> "ControllerState":
        return replace(self)

    def to_dict(self, precision: int | None = None) -> Dict[str, Any]:
        """Convert to dictionary, optionally rounding the numeric fields."""
        temperature = float(self.temperature)
        level = float(self.level)
        if precision is not None:
            temperature = round(temperature, precision)
            level = round(level, precision)
        return {
            "temperature": temperature,
            "level": level,
            "enabled": bool(self.enabled),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ControllerState":
        """
        Build a state from a persisted record.

        Raises:
            TypeError: if a field has the wrong type
            ValueError: if a number is NaN or infinite
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"controller record must be an object, got {type(data).__name__}")

        temperature = data.get("temperature", 0.0)
        level = data.get("level", 0.0)
        enabled = data.get("enabled", True)

        # bool is an int subclass; reject it where a number is expected
        for field_name, value in (("temperature", temperature), ("level", level)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError(f"{field_name} must be a number, got {value!r}")
            try:
                finite = math.isfinite(value)
            except OverflowError:
                finite = False
            if not finite:
                raise ValueError(f"{field_name} must be finite, got {value!r}")
        if not isinstance(enabled, bool):
            raise TypeError(f"enabled must be a boolean, got {enabled!r}")

        return cls(temperature=float(temperature), level=float(level), enabled=enabled)
