"""Tests for JSON configuration loading."""

from __future__ import annotations

import json
from unittest.mock import Mock

import pytest
from tick_machine import ConfigurationError, create_service, load_config, load_machine

TRAFFIC_LIGHT = {
    "initial": "green",
    "states": {
        "green": {"entry": "startTimer", "on": {"TIMER": "yellow"}},
        "yellow": {"on": {"TIMER": {"target": "red", "actions": ["logChange"]}}},
        "red": {"exit": "stopTimer", "on": {"TIMER": "green", "PING": {"actions": "logChange"}}},
    },
}


def _write(tmp_path, data) -> str:
    path = tmp_path / "machine.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return str(path)


def test_load_config_round_trips_json(tmp_path):
    path = _write(tmp_path, TRAFFIC_LIGHT)
    assert load_config(path) == TRAFFIC_LIGHT


def test_load_machine_with_named_actions(tmp_path):
    """A loaded machine resolves its string actions through the service table."""
    machine = load_machine(_write(tmp_path, TRAFFIC_LIGHT))
    actions = {"startTimer": Mock(), "stopTimer": Mock(), "logChange": Mock()}
    service = create_service(machine, {"actions": actions})

    service.start()
    service.send("TIMER")
    service.send("TIMER")
    assert service.state.value == "red"
    assert service.state.actions == ("logChange",)

    service.send("TIMER")
    assert service.state.value == "green"
    assert actions["startTimer"].call_count == 2
    assert actions["stopTimer"].call_count == 1
    assert actions["logChange"].call_count == 1


def test_invalid_json(tmp_path):
    path = _write(tmp_path, "{not json")
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(path)
    assert excinfo.value.path == path


def test_non_utf8_file(tmp_path):
    """Undecodable bytes are reported as a configuration error."""
    path = tmp_path / "machine.json"
    path.write_bytes(b"\xff\xfe{\"initial\": \"A\"}")
    with pytest.raises(ConfigurationError) as excinfo:
        load_config(path)
    assert excinfo.value.path == str(path)


def test_missing_top_level_keys(tmp_path):
    path = _write(tmp_path, {"states": {"A": {}}})
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_dangling_target_in_file(tmp_path):
    broken = {"initial": "A", "states": {"A": {"on": {"GO": "B"}}}}
    with pytest.raises(ConfigurationError):
        load_machine(_write(tmp_path, broken))
