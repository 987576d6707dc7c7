"""ActionRegistry - lookup table for named action references."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping

from tick_machine.types import ActionFn, ActionRef, Direct, UnknownActionError


class ActionRegistry:
    """Maps action name strings to callables."""

    def __init__(self, actions: Mapping[str, ActionFn] | None = None) -> None:
        self._actions: dict[str, ActionFn] = {}
        if actions:
            for name, fn in actions.items():
                self.register(name, fn)

    def register(self, name: str, fn: ActionFn) -> None:
        """Register a named action. Overwrites if already registered."""
        if not callable(fn):
            raise TypeError(f"Action {name!r} is not callable: {fn!r}")
        self._actions[name] = fn

    def has(self, name: str) -> bool:
        """Check if action name is registered."""
        return name in self._actions

    def names(self) -> list[str]:
        """List all registered action names."""
        return list(self._actions)

    def resolve(self, ref: ActionRef) -> Callable[[], object]:
        """Return the callable behind a reference. Raises UnknownActionError."""
        if isinstance(ref, Direct):
            return ref.fn
        fn = self._actions.get(ref.name)
        if fn is None:
            raise UnknownActionError(ref.name)
        return fn

    def run(self, refs: Iterable[ActionRef]) -> None:
        """Invoke each reference in order. Return values are ignored.

        Resolution happens per element, so actions before an unknown name
        have already run when UnknownActionError propagates.
        """
        for ref in refs:
            self.resolve(ref)()
