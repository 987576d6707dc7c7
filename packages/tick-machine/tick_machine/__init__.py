"""tick-machine - Declarative finite state machines and their interpreters."""

from __future__ import annotations

from tick_machine.actions import ActionRegistry
from tick_machine.loader import load_config, load_machine
from tick_machine.machine import (
    Machine,
    StateNode,
    Transition,
    TransitionResult,
    create_machine,
)
from tick_machine.service import (
    Service,
    ServiceOptions,
    State,
    Subscription,
    create_service,
)
from tick_machine.types import (
    AlreadyStartedError,
    ConfigurationError,
    Direct,
    Event,
    Named,
    UnknownActionError,
)

__all__ = [
    "ActionRegistry",
    "AlreadyStartedError",
    "ConfigurationError",
    "Direct",
    "Event",
    "Machine",
    "Named",
    "Service",
    "ServiceOptions",
    "State",
    "StateNode",
    "Subscription",
    "Transition",
    "TransitionResult",
    "UnknownActionError",
    "create_machine",
    "create_service",
    "load_config",
    "load_machine",
]
