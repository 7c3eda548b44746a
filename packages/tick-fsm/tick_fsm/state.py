"""State handler base class."""
from __future__ import annotations

from typing import Any

from tick_fsm.signal import Signal


class State:
    """Behaviour attached to one state of a :class:`StateMachine`.

    Every hook defaults to a no-op; override only what the state needs.
    ``context`` is the only data included in save data, so anything that
    must survive a save/load round trip belongs there.

    Call :meth:`complete` to ask the owning machine for the next state.
    The request takes effect on the machine's next ``tick``.
    """

    def __init__(self) -> None:
        self.context: dict[str, Any] = {}
        self.completed = Signal()

    def init(self, owner: Any) -> None:
        """Called once after construction, when the state is entered."""

    def update(self, delta: float, owner: Any) -> None:
        """Called once per frame while active."""

    def fixed_update(self, delta: float, owner: Any) -> None:
        """Called once per fixed physics step while active."""

    def handle_input(self, event: Any, owner: Any) -> None:
        """Called for each input event while active."""

    def exit(self, owner: Any) -> None:
        """Called before the machine leaves this state."""

    def load_context(self, saved: dict[str, Any]) -> None:
        self.context = dict(saved)

    def complete(self, transition_key: str | None = None) -> None:
        self.completed.emit(transition_key)
