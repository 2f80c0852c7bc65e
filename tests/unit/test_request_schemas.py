import json

import pytest

from scadahub.domain.controller import ControllerState
from scadahub.domain.exceptions import ValidationError
from scadahub.schemas.controller import (
    SetEnabledRequest,
    SetValuesRequest,
    serialize_controllers,
    serialize_telemetry,
)


def test_set_values_defaults():
    body = SetValuesRequest.from_form({})

    assert body.id is None
    assert body.temperature == 0.0
    assert body.level == 0.0


def test_set_values_parses_form_strings():
    body = SetValuesRequest.from_form({"id": "ctrl1", "temperature": "42.5", "level": "77"})

    assert body.id == "ctrl1"
    assert body.temperature == 42.5
    assert body.level == 77.0


def test_empty_values_count_as_absent():
    body = SetValuesRequest.from_form({"id": "ctrl1", "temperature": "", "level": "-4.25"})

    assert body.temperature == 0.0
    assert body.level == -4.25


def test_unknown_fields_are_ignored():
    body = SetValuesRequest.from_form({"id": "ctrl1", "pressure": "3"})

    assert not hasattr(body, "pressure")


@pytest.mark.parametrize("raw", ["abc", "nan", "inf", "1,5"])
def test_set_values_rejects_unparsable_numbers(raw):
    with pytest.raises(ValidationError) as exc_info:
        SetValuesRequest.from_form({"id": "ctrl1", "temperature": raw})

    assert "temperature" in str(exc_info.value)
    assert exc_info.value.http_status == 400


@pytest.mark.parametrize(
    "raw,expected",
    [("true", True), ("false", False), ("1", True), ("0", False), ("yes", True), ("off", False)],
)
def test_set_enabled_parses_booleans(raw, expected):
    assert SetEnabledRequest.from_form({"id": "ctrl1", "enable": raw}).enable is expected


def test_set_enabled_absent_flag_means_disable():
    assert SetEnabledRequest.from_form({"id": "ctrl1"}).enable is False
    assert SetEnabledRequest.from_form({"id": "ctrl1", "enable": ""}).enable is False


def test_set_enabled_rejects_unparsable_boolean():
    with pytest.raises(ValidationError) as exc_info:
        SetEnabledRequest.from_form({"id": "ctrl1", "enable": "maybe"})

    assert "enable" in str(exc_info.value)


def test_serialize_telemetry_rounds_to_two_decimals():
    message = json.loads(serialize_telemetry("ctrl1", ControllerState(temperature=23.4567, level=1.0)))

    assert message == {"controller": "ctrl1", "temperature": 23.46, "level": 1.0, "enabled": True}


def test_serialize_controllers_full_precision_on_request():
    snapshot = [("ctrl1", ControllerState(temperature=23.4567, level=0.001, enabled=False))]

    assert json.loads(serialize_controllers(snapshot))["ctrl1"]["temperature"] == 23.46
    assert json.loads(serialize_controllers(snapshot, precision=None))["ctrl1"] == {
        "temperature": 23.4567,
        "level": 0.001,
        "enabled": False,
    }
