"""Shared types, sentinels and exceptions for tick-fsm."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Hashable

StateId = Hashable

PREVIOUS = -1
"""Transition target meaning "return to the last distinct state"."""


@dataclass(frozen=True)
class StateDef:
    """Static definition of one state.

    ``next_state`` wins over ``transitions`` when a handler completes.
    ``state_class`` is called with no arguments to build the handler;
    ``None`` marks a manual-only state driven from outside.
    """

    id: StateId
    next_state: StateId | None = None
    transitions: Mapping[str, StateId] = field(default_factory=dict)
    state_class: Callable[[], Any] | None = None

    def __post_init__(self) -> None:
        # Frozen copy; later edits to the caller's dict never reach the table.
        object.__setattr__(self, "transitions", MappingProxyType(dict(self.transitions)))


class FSMError(Exception):
    """Base class for state machine errors."""


class UnknownStateError(FSMError, KeyError):
    """Raised when a state id is not registered on the machine."""

    def __init__(self, state_id: StateId, message: str | None = None) -> None:
        self.state_id = state_id
        super().__init__(message or f"Unknown state {state_id!r}")


class StateDataError(FSMError):
    """Raised when save data cannot be loaded."""
