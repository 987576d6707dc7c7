"""Shared types, action references, and errors for tick-machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence, Union

StateKey = str

# A declared action slot: a single reference or an ordered list of them.
ActionFn = Callable[[], Any]
ActionSpec = Union[str, ActionFn, Sequence[Union[str, ActionFn]]]


@dataclass(frozen=True, slots=True)
class Event:
    """An event dispatched to a service. Matched by ``type`` only."""

    type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Direct:
    """Action reference holding the callable itself."""

    fn: ActionFn


@dataclass(frozen=True, slots=True)
class Named:
    """Action reference resolved by name against an action registry."""

    name: str


ActionRef = Union[Direct, Named]


class ConfigurationError(ValueError):
    """Raised when a machine configuration is malformed."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class UnknownActionError(KeyError):
    """Raised when a named action has no entry in the action registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown action {name!r}")


class AlreadyStartedError(RuntimeError):
    """Raised by ``start()`` on a service that is already running."""


def event_type(event: Any) -> str:
    """Extract the type string from any accepted event shape."""
    if isinstance(event, str):
        return event
    if isinstance(event, Mapping):
        etype = event.get("type")
    else:
        etype = getattr(event, "type", None)
    if not isinstance(etype, str):
        raise TypeError(f"Event has no string 'type': {event!r}")
    return etype
