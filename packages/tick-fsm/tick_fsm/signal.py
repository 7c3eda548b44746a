"""Synchronous signal used for state-change and completion notifications."""
from __future__ import annotations

from typing import Any, Callable

_Handler = Callable[..., None]


class Signal:
    """Ordered list of callbacks invoked immediately on :meth:`emit`.

    Connecting the same callback twice is a no-op, so re-wiring a
    reused handler never doubles its notifications.
    """

    def __init__(self) -> None:
        self._handlers: list[_Handler] = []

    def connect(self, handler: _Handler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def disconnect(self, handler: _Handler) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    def is_connected(self, handler: _Handler) -> bool:
        return handler in self._handlers

    def emit(self, *args: Any) -> None:
        for handler in list(self._handlers):
            handler(*args)

    def __len__(self) -> int:
        return len(self._handlers)
