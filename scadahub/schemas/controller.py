"""
Controller Schemas
==================

Pydantic models for control-plane request bodies, telemetry broadcasts and
the list-all snapshot, plus the text serializers built on top of them.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from scadahub.domain.controller import DISPLAY_PRECISION, ControllerState
from scadahub.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


class _FormRequest(BaseModel):
    """Base for form-encoded control-plane requests."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    @classmethod
    def from_form(cls, form: Mapping[str, Any]):
        """
        Validate a form body.

        Pairs without a value (``temperature=``) are treated as absent, so the
        field falls back to its default.

        Raises:
            ValidationError: if a present value cannot be coerced
        """
        data = {key: value for key, value in form.items() if value not in (None, "")}
        try:
            return cls(**data)
        except PydanticValidationError as ve:
            fields = sorted({str(err["loc"][0]) for err in ve.errors() if err.get("loc")})
            logger.warning("Rejected %s: %s raw=%s", cls.__name__, ve.errors(), data)
            raise ValidationError(
                f"invalid value for: {', '.join(fields)}" if fields else "invalid request",
                detail={"errors": ve.errors(include_url=False)},
            ) from None


class SetValuesRequest(_FormRequest):
    """Body of ``POST /controller/set``; absent numbers default to 0."""

    id: str | None = Field(default=None, description="Controller name")
    temperature: float = Field(default=0.0, description="Temperature in degrees")
    level: float = Field(default=0.0, description="Fill level in percent")


class SetEnabledRequest(_FormRequest):
    """Body of ``POST /controller/state``; an absent flag means disable."""

    id: str | None = Field(default=None, description="Controller name")
    enable: bool = Field(default=False, description="New enabled flag")


class ControllerStatePayload(BaseModel):
    """One controller as it appears in list-all and in the state file."""

    temperature: float
    level: float
    enabled: bool

    @classmethod
    def from_state(cls, state: ControllerState, precision: int | None = DISPLAY_PRECISION) -> "ControllerStatePayload":
        return cls(**state.to_dict(precision))


class ControllerTelemetryPayload(BaseModel):
    """Per-controller message pushed to subscribers on every tick."""

    controller: str
    temperature: float
    level: float
    enabled: bool

    @classmethod
    def from_state(cls, name: str, state: ControllerState) -> "ControllerTelemetryPayload":
        return cls(controller=name, **state.to_dict(DISPLAY_PRECISION))


def serialize_controllers(
    snapshot: Iterable[Tuple[str, ControllerState]],
    precision: int | None = DISPLAY_PRECISION,
) -> str:
    """Render a snapshot as a JSON object keyed by controller name."""
    body = {name: ControllerStatePayload.from_state(state, precision).model_dump() for name, state in snapshot}
    return json.dumps(body)


def serialize_telemetry(name: str, state: ControllerState) -> str:
    """Render one broadcast message."""
    return ControllerTelemetryPayload.from_state(name, state).model_dump_json()
