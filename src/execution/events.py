"""Synchronous in-process observer hooks."""

from __future__ import annotations

from typing import Any, Callable


class EventHook:
    """Ordered list of callbacks invoked synchronously on ``emit``.

    Callbacks run on the emitting thread, in the order they were connected.
    An exception raised by a callback propagates to the emitter.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: list[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> Callable[..., Any]:
        """Register ``callback``. Returns it, so this also works as a decorator."""
        self._callbacks.append(callback)
        return callback

    def disconnect(self, callback: Callable[..., Any]) -> None:
        """Remove ``callback``; a callback that was never connected is ignored."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def emit(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            callback(*args)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __repr__(self) -> str:
        return f"EventHook({self.name!r}, callbacks={len(self._callbacks)})"
