"""tick-fsm - Handler-driven finite state machine for the tick engine."""
from __future__ import annotations

from tick_fsm.config import FSMConfig, build_state_table
from tick_fsm.machine import StateMachine
from tick_fsm.signal import Signal
from tick_fsm.state import State
from tick_fsm.systems import make_state_machine_system
from tick_fsm.types import (
    PREVIOUS,
    FSMError,
    StateDataError,
    StateDef,
    StateId,
    UnknownStateError,
)

__all__ = [
    "StateMachine",
    "State",
    "StateDef",
    "StateId",
    "PREVIOUS",
    "FSMConfig",
    "Signal",
    "build_state_table",
    "make_state_machine_system",
    "FSMError",
    "UnknownStateError",
    "StateDataError",
]
