"""Machine - normalized transition table and pure transition resolver."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from tick_machine.types import (
    ActionRef,
    ActionSpec,
    ConfigurationError,
    Direct,
    Named,
    StateKey,
    event_type,
)

_LOG = logging.getLogger(__name__)

_STATE_FIELDS = frozenset({"on", "entry", "exit"})
_TRANSITION_FIELDS = frozenset({"target", "actions"})


@dataclass(frozen=True, slots=True)
class Transition:
    """Normalized transition. ``target=None`` marks an internal transition.

    ``declared`` keeps the actions exactly as configured (scalar, or a
    tuple for list declarations) so snapshots can expose the original shape.
    """

    target: StateKey | None = None
    actions: tuple[ActionRef, ...] = ()
    declared: ActionSpec | None = None

    @property
    def internal(self) -> bool:
        return self.target is None


@dataclass(frozen=True, slots=True)
class StateNode:
    key: StateKey
    entry: tuple[ActionRef, ...] = ()
    exit: tuple[ActionRef, ...] = ()
    on: Mapping[str, Transition] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Everything a service needs to apply one matched transition.

    External transitions carry the source ``exit`` and destination ``entry``
    actions; internal ones leave both empty and have ``target=None``.
    """

    source: StateKey
    event: str
    target: StateKey | None
    exit: tuple[ActionRef, ...]
    actions: tuple[ActionRef, ...]
    entry: tuple[ActionRef, ...]
    declared: ActionSpec | None

    @property
    def external(self) -> bool:
        return self.target is not None

    @property
    def value(self) -> StateKey:
        """State key the subject is in once the transition is applied."""
        return self.target if self.target is not None else self.source


class Machine:
    """Immutable transition table built by ``create_machine``. Safe to share."""

    def __init__(self, initial: StateKey, nodes: Mapping[StateKey, StateNode]) -> None:
        self._initial = initial
        self._nodes = MappingProxyType(dict(nodes))

    @property
    def initial(self) -> StateKey:
        return self._initial

    @property
    def states(self) -> tuple[StateKey, ...]:
        return tuple(self._nodes)

    def state_node(self, key: StateKey) -> StateNode:
        node = self._nodes.get(key)
        if node is None:
            raise KeyError(f"Machine has no state {key!r}")
        return node

    def event_types(self, key: StateKey) -> list[str]:
        """Event types the given state reacts to, in declaration order."""
        return list(self.state_node(key).on)

    def resolve(self, key: StateKey, event: Any) -> TransitionResult | None:
        """Resolve ``event`` from state ``key``. Returns None when unmatched.

        Pure: reads only the normalized table, executes nothing.
        """
        node = self.state_node(key)
        etype = event_type(event)
        transition = node.on.get(etype)
        if transition is None:
            return None
        if transition.internal:
            return TransitionResult(
                source=key,
                event=etype,
                target=None,
                exit=(),
                actions=transition.actions,
                entry=(),
                declared=transition.declared,
            )
        return TransitionResult(
            source=key,
            event=etype,
            target=transition.target,
            exit=node.exit,
            actions=transition.actions,
            entry=self._nodes[transition.target].entry,
            declared=transition.declared,
        )

    def transition(self, key: StateKey, event: Any) -> StateKey:
        """Next state key for ``event`` from ``key`` (``key`` itself if unmatched)."""
        result = self.resolve(key, event)
        return key if result is None else result.value

    def __repr__(self) -> str:
        return f"Machine(initial={self._initial!r}, states={list(self._nodes)!r})"


def create_machine(config: Mapping[str, Any]) -> Machine:
    """Validate and normalize a declarative configuration into a Machine.

    ``config`` has the shape ``{"initial": key, "states": {key: node}}``
    where each node may declare ``entry``, ``exit`` and ``on``. The mapping
    is read once; mutating it afterwards does not affect the machine.

    Raises ConfigurationError on a malformed shape, an unknown ``initial``,
    or a transition ``target`` that names no declared state.
    """
    if not isinstance(config, Mapping):
        raise ConfigurationError("", f"config must be a mapping, got {type(config).__name__}")

    states = config.get("states")
    if not isinstance(states, Mapping) or not states:
        raise ConfigurationError("states", "must be a non-empty mapping")

    nodes: dict[StateKey, StateNode] = {}
    for key, spec in states.items():
        if not isinstance(key, str):
            raise ConfigurationError("states", f"state key must be a string, got {key!r}")
        nodes[key] = _normalize_node(key, spec)

    initial = config.get("initial")
    if initial not in nodes:
        raise ConfigurationError("initial", f"unknown state {initial!r}")

    for key, node in nodes.items():
        for etype, transition in node.on.items():
            if transition.target is not None and transition.target not in nodes:
                raise ConfigurationError(
                    f"states.{key}.on.{etype}.target",
                    f"unknown state {transition.target!r}",
                )

    _LOG.debug("built machine: initial=%r states=%d", initial, len(nodes))
    return Machine(initial, nodes)


def _normalize_node(key: StateKey, spec: Any) -> StateNode:
    path = f"states.{key}"
    if spec is None:
        return StateNode(key)
    if not isinstance(spec, Mapping):
        raise ConfigurationError(path, f"state must be a mapping, got {type(spec).__name__}")
    unknown = set(spec) - _STATE_FIELDS
    if unknown:
        raise ConfigurationError(path, f"unknown fields {sorted(unknown)}")

    on_spec = spec.get("on") or {}
    if not isinstance(on_spec, Mapping):
        raise ConfigurationError(f"{path}.on", "must be a mapping of event type to transition")
    on: dict[str, Transition] = {}
    for etype, tspec in on_spec.items():
        if not isinstance(etype, str):
            raise ConfigurationError(f"{path}.on", f"event type must be a string, got {etype!r}")
        on[etype] = _normalize_transition(tspec, f"{path}.on.{etype}")

    entry, _ = _normalize_actions(spec.get("entry"), f"{path}.entry")
    exit_, _ = _normalize_actions(spec.get("exit"), f"{path}.exit")
    return StateNode(key, entry=entry, exit=exit_, on=MappingProxyType(on))


def _normalize_transition(spec: Any, path: str) -> Transition:
    # Shorthand: the target key itself.
    if isinstance(spec, str):
        return Transition(target=spec)
    if not isinstance(spec, Mapping):
        raise ConfigurationError(
            path, f"transition must be a state key or a mapping, got {type(spec).__name__}"
        )
    unknown = set(spec) - _TRANSITION_FIELDS
    if unknown:
        raise ConfigurationError(path, f"unknown fields {sorted(unknown)}")
    target = spec.get("target")
    if target is not None and not isinstance(target, str):
        raise ConfigurationError(f"{path}.target", f"must be a state key, got {target!r}")
    actions, declared = _normalize_actions(spec.get("actions"), f"{path}.actions")
    return Transition(target=target, actions=actions, declared=declared)


def _normalize_actions(
    spec: Any, path: str,
) -> tuple[tuple[ActionRef, ...], ActionSpec | None]:
    """Return ``(refs, declared)``. List declarations are frozen to tuples."""
    if spec is None:
        return (), None
    if isinstance(spec, str) or callable(spec):
        return (_action_ref(spec, path),), spec
    if isinstance(spec, (list, tuple)):
        refs = tuple(_action_ref(item, f"{path}[{i}]") for i, item in enumerate(spec))
        return refs, tuple(spec)
    raise ConfigurationError(
        path, f"expected an action name, a callable or a list, got {type(spec).__name__}"
    )


def _action_ref(item: Any, path: str) -> ActionRef:
    if isinstance(item, str):
        if not item:
            raise ConfigurationError(path, "action name must be non-empty")
        return Named(item)
    if callable(item):
        return Direct(item)
    raise ConfigurationError(
        path, f"expected an action name or a callable, got {type(item).__name__}"
    )
