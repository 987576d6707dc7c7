"""Service - stateful interpreter that drives a Machine over time."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from tick_machine.actions import ActionRegistry
from tick_machine.machine import Machine
from tick_machine.types import (
    ActionFn,
    ActionSpec,
    AlreadyStartedError,
    Event,
    StateKey,
)

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class State:
    """Observable snapshot of a service.

    ``actions`` holds the declared actions of the transition that produced
    this snapshot, in their declared shape (scalar or tuple), or None when
    that transition declared none. Entry/exit actions never appear here.
    """

    value: StateKey
    actions: ActionSpec | None = None


Listener = Callable[[State], None]


@dataclass(frozen=True)
class ServiceOptions:
    """Immutable construction options for a service.

    Attributes:
        actions: Lookup table used to resolve string action references.
    """

    actions: Mapping[str, ActionFn] = field(default_factory=dict)


class Subscription:
    """Handle returned by ``Service.subscribe``."""

    def __init__(self, remove: Callable[[], None]) -> None:
        self._remove: Callable[[], None] | None = remove

    @property
    def active(self) -> bool:
        return self._remove is not None

    def unsubscribe(self) -> None:
        """Detach the listener. Repeated calls are no-ops."""
        remove, self._remove = self._remove, None
        if remove is not None:
            remove()


class Service:
    """Owns the current snapshot of one subject and applies transitions.

    All operations are synchronous. A ``send`` issued by an exit or
    transition action is queued and applied once the current transition has
    entered its target and notified listeners. A ``send`` issued by an entry
    action or a listener runs to completion before the outer send resumes.
    Exceptions raised by actions propagate to the caller and any snapshot
    update already applied stays in place.
    """

    def __init__(
        self,
        machine: Machine,
        actions: ActionRegistry | Mapping[str, ActionFn] | None = None,
    ) -> None:
        self._machine = machine
        if isinstance(actions, ActionRegistry):
            self._actions = actions
        else:
            self._actions = ActionRegistry(actions)
        self._state: State | None = None
        self._running: bool = False
        self._listeners: dict[int, Listener] = {}
        self._next_token: int = 0
        self._deferring: bool = False
        self._deferred: deque[Any] = deque()

    @property
    def machine(self) -> Machine:
        return self._machine

    @property
    def actions(self) -> ActionRegistry:
        return self._actions

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> State | None:
        """Current snapshot; None until the first ``start()``."""
        return self._state

    def start(self) -> None:
        """Enter the initial state and run its entry actions.

        Subscribers are not notified. Raises AlreadyStartedError if the
        service is running; a stopped service restarts from ``initial``.
        """
        if self._running:
            raise AlreadyStartedError("Service is already running")
        initial = self._machine.initial
        self._state = State(initial)
        self._running = True
        _LOG.debug("service started in %r", initial)
        self._actions.run(self._machine.state_node(initial).entry)

    def stop(self) -> None:
        """Stop reacting to events. Exit actions do not run; the snapshot is kept."""
        if not self._running:
            return
        self._running = False
        _LOG.debug("service stopped in %r", self._state.value if self._state else None)

    def send(self, event: Any, **data: Any) -> bool:
        """Dispatch an event. Returns True if a transition matched.

        ``event`` may be a type string (keyword arguments become the
        payload), an ``Event``, a mapping with a ``type`` key, or any object
        with a ``type`` attribute. Ignored when the service is not running.
        Returns False for an event queued during exit or transition actions;
        its outcome is applied after the current transition completes.
        """
        if isinstance(event, str) and data:
            event = Event(event, data)
        elif data:
            raise TypeError("Keyword payload is only accepted with a string event type")
        if not self._running or self._state is None:
            return False
        if self._deferring:
            self._deferred.append(event)
            _LOG.debug("deferred event %r", event)
            return False

        result = self._machine.resolve(self._state.value, event)
        if result is None:
            _LOG.debug("ignored event %r in state %r", event, self._state.value)
            return False

        try:
            self._deferring = True
            try:
                if result.external:
                    self._actions.run(result.exit)
                self._actions.run(result.actions)
            finally:
                self._deferring = False

            if result.external:
                self._state = State(result.target, result.declared)
                _LOG.debug("%r --%s--> %r", result.source, result.event, result.target)
                self._actions.run(result.entry)
            else:
                self._state = State(result.source, result.declared)
                _LOG.debug("%r --%s--> (internal)", result.source, result.event)

            self._notify()
        except Exception:
            # Events queued by a failed transition are dropped with it.
            self._deferred.clear()
            raise

        while self._deferred:
            self.send(self._deferred.popleft())
        return True

    def can(self, event: Any) -> bool:
        """Would ``send(event)`` match a transition right now?"""
        if not self._running or self._state is None:
            return False
        return self._machine.resolve(self._state.value, event) is not None

    def subscribe(self, listener: Listener) -> Subscription:
        """Register a listener called with each new snapshot after ``send``.

        Listeners run in subscription order. One added or removed during a
        notification takes effect from the next notification onward.
        """
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener
        return Subscription(lambda: self._remove_listener(token))

    def _remove_listener(self, token: int) -> None:
        self._listeners.pop(token, None)

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners.values()):
            listener(state)


def create_service(
    machine: Machine,
    options: ServiceOptions | Mapping[str, Any] | None = None,
) -> Service:
    """Create a stopped service bound to ``machine``.

    ``options`` is a ``ServiceOptions`` or a plain ``{"actions": {...}}``
    mapping; its ``actions`` table resolves string action references.
    """
    if options is None:
        return Service(machine)
    if isinstance(options, ServiceOptions):
        return Service(machine, options.actions)
    if isinstance(options, Mapping):
        return Service(machine, options.get("actions"))
    raise TypeError(f"Unsupported service options: {options!r}")
