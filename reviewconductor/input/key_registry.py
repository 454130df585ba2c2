"""Key-token to action dispatch table used by the selector modes."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class KeyBinding:
    """Mapping from one or more key tokens to a single action callback."""

    keys: tuple[str, ...]
    handler: Callable[[], None]


class KeyRegistry:
    """Exact-match key dispatch table.

    Bindings registered later win for shared tokens, so callers register
    generic navigation first and caller-configured action keys last.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[], None]] = {}

    def bind(self, keys: tuple[str, ...] | str, handler: Callable[[], None]) -> KeyRegistry:
        """Register ``handler`` for ``keys`` and return ``self`` for chaining."""
        if isinstance(keys, str):
            keys = (keys,)
        return self.register(KeyBinding(keys=keys, handler=handler))

    def register(self, *bindings: KeyBinding) -> KeyRegistry:
        for binding in bindings:
            for key in binding.keys:
                if key:
                    self._handlers[key] = binding.handler
        return self

    def __contains__(self, key: str) -> bool:
        return key in self._handlers

    def dispatch(self, key: str) -> bool:
        """Invoke the handler bound to ``key``; return whether one existed."""
        handler = self._handlers.get(key)
        if handler is None:
            return False
        handler()
        return True
