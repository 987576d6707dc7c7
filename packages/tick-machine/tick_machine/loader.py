"""JSON configuration loading.

JSON cannot carry callables, so loaded machines reference their actions
by name and resolve them through the service's action table.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from tick_machine.machine import Machine, create_machine
from tick_machine.types import ConfigurationError


def load_config(path: str | Path) -> dict[str, Any]:
    """Read a machine configuration from a JSON file."""
    path = Path(path)
    try:
        config = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(str(path), f"invalid JSON: {exc.msg}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigurationError(str(path), f"not UTF-8 text: {exc.reason}") from exc
    if not isinstance(config, dict) or "initial" not in config or "states" not in config:
        raise ConfigurationError(str(path), "machine must have 'initial' and 'states'")
    return config


def load_machine(path: str | Path) -> Machine:
    """Build a machine from a JSON configuration file."""
    return create_machine(load_config(path))
