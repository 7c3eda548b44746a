"""StateMachine - drives State handlers for one owner."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

import structlog

from tick_fsm.config import FSMConfig, build_state_table
from tick_fsm.signal import Signal
from tick_fsm.state import State
from tick_fsm.types import (
    PREVIOUS,
    FSMError,
    StateDataError,
    StateDef,
    StateId,
    UnknownStateError,
)

logger = structlog.get_logger(__name__)


class StateMachine:
    """Finite state machine with per-state handler objects.

    The host calls :meth:`tick` once per frame, :meth:`tick_physics` once
    per fixed step and :meth:`handle_input` per input event. Transition
    requests are buffered and applied at the start of the next ``tick``,
    so a handler never sees its own replacement mid-call and at most one
    transition is committed per tick.

    ``state_changed`` emits the new state id after every committed
    transition, including restores of the previous state.
    """

    def __init__(self, owner: Any = None, config: FSMConfig | None = None) -> None:
        self._owner = owner
        self._config = config or FSMConfig()
        self._states: dict[StateId, StateDef] = {}
        self._initial_state: StateId | None = None
        self._current_id: StateId | None = None
        self._previous_id: StateId | None = None
        self._current_handler: State | None = None
        self._previous_handler: State | None = None
        self._pending: StateId | None = None
        self._initialized = False
        self._handler_cache: dict[StateId, State] = {}
        self.state_changed = Signal()

    # --- Configuration ---

    def configure(
        self,
        states_config: Iterable[StateId] | Mapping[StateId, Any],
        initial_state: StateId,
    ) -> None:
        """Register the state table and the state entered on the first tick.

        Replaces any previous table. Configure once, before the first tick.
        """
        table = build_state_table(states_config)
        if initial_state not in table:
            raise UnknownStateError(
                initial_state, f"Initial state {initial_state!r} is not registered"
            )
        self._states = table
        self._initial_state = initial_state

    # --- Driving ---

    def tick(self, delta: float) -> None:
        if not self._initialized:
            if self._initial_state is None:
                raise FSMError("configure() must be called before the first tick")
            self._initialized = True
            self._enter(self._initial_state)
            return

        # Cleared first so requests made by the incoming handler's init survive.
        pending = self._pending
        self._pending = None
        if pending is not None and pending != self._current_id:
            if pending == PREVIOUS:
                self._restore_previous()
            elif pending in self._states:
                self._enter(pending)
            else:
                self._drop_current(pending)

        if self._current_handler is not None:
            self._current_handler.update(delta, self._owner)

    def tick_physics(self, delta: float) -> None:
        if self._current_handler is not None:
            self._current_handler.fixed_update(delta, self._owner)

    def handle_input(self, event: Any) -> None:
        if self._current_handler is not None:
            self._current_handler.handle_input(event, self._owner)

    # --- Transition requests ---

    def request_transition(self, state_id: StateId) -> None:
        """Queue a transition for the next tick, replacing any queued one."""
        self._pending = state_id

    def request_next_state(self, transition_key: str | None = None) -> None:
        """Queue the successor of the current state.

        ``next_state`` is preferred; otherwise ``transition_key`` is looked
        up in the current state's ``transitions``. Ignored while another
        transition is already queued.
        """
        if self._pending is not None and self._pending != self._current_id:
            return

        definition = self._states.get(self._current_id)
        if definition is None:
            logger.warning("next_state_unresolved", state=self._current_id, key=transition_key)
            return

        if definition.next_state is not None:
            self._pending = definition.next_state
        elif transition_key is not None and transition_key in definition.transitions:
            self._pending = definition.transitions[transition_key]
        else:
            logger.warning(
                "next_state_unresolved",
                state=self._current_id,
                key=transition_key,
                known_keys=sorted(definition.transitions),
            )

    def request_previous_state(self) -> None:
        if self._previous_id is not None:
            self._pending = PREVIOUS

    # --- Queries ---

    def get_current_state(self) -> StateId | None:
        return self._current_id

    def get_previous_state(self) -> StateId | None:
        return self._previous_id

    def is_current_state(self, state_id: StateId) -> bool:
        return self._current_id is not None and self._current_id == state_id

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def config(self) -> FSMConfig:
        return self._config

    @property
    def states(self) -> Mapping[StateId, StateDef]:
        return MappingProxyType(self._states)

    @property
    def initial_state(self) -> StateId | None:
        return self._initial_state

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def current_handler(self) -> State | None:
        return self._current_handler

    @property
    def previous_handler(self) -> State | None:
        return self._previous_handler

    @property
    def pending_transition(self) -> StateId | None:
        return self._pending

    # --- Save / load ---

    def get_save_data(self) -> dict[str, Any]:
        handler = self._current_handler
        return {
            "current_state_id": self._current_id,
            "current_context": dict(handler.context) if handler is not None else {},
        }

    def load_state(self, data: Mapping[str, Any]) -> None:
        """Jump straight to a saved state and restore its handler context.

        Intermediate states are not replayed. Marks the machine as
        initialized so the next tick does not enter the initial state.
        """
        try:
            state_id = data["current_state_id"]
        except KeyError:
            raise StateDataError("Save data has no 'current_state_id'") from None
        context = data.get("current_context") or {}
        if not isinstance(context, Mapping):
            raise StateDataError(
                f"'current_context' must be a mapping, got {type(context).__qualname__}"
            )

        if state_id not in self._states:
            raise UnknownStateError(state_id)
        self._pending = None
        if state_id != self._current_id:
            self._enter(state_id)
        self._initialized = True
        if self._current_handler is not None:
            self._current_handler.load_context(dict(context))

    # --- Handler cache ---

    def clear_handler_cache(self, state_id: StateId | None = None) -> None:
        """Forget cached handlers so the next visit constructs a fresh one.

        The active handler keeps running until the state is left.
        """
        if state_id is None:
            dropped = list(self._handler_cache.values())
            self._handler_cache.clear()
        else:
            dropped = [self._handler_cache.pop(state_id, None)]
        for handler in dropped:
            self._release(handler)

    # --- Internals ---

    def _enter(self, state_id: StateId) -> None:
        definition = self._states.get(state_id)
        if definition is None:
            raise UnknownStateError(state_id)

        outgoing = self._current_handler
        dropped = self._previous_handler
        self._previous_id = self._current_id
        self._previous_handler = outgoing
        self._current_id = state_id
        self._current_handler = None

        if outgoing is not None:
            outgoing.exit(self._owner)

        if definition.state_class is not None:
            self._current_handler = self._obtain_handler(definition)
        self._release(dropped)

        logger.debug("state_entered", state=state_id, previous=self._previous_id)
        self.state_changed.emit(state_id)

    def _obtain_handler(self, definition: StateDef) -> State:
        handler = None
        if self._config.cache_states:
            handler = self._handler_cache.get(definition.id)
        created = handler is None
        if created:
            handler = definition.state_class()
        if self._config.cache_states:
            self._handler_cache[definition.id] = handler

        # Wired before init so a state may complete from its init hook.
        handler.completed.connect(self._on_handler_completed)
        self._current_handler = handler
        if created:
            handler.init(self._owner)
        return handler

    def _restore_previous(self) -> None:
        if self._previous_id is None or self._previous_id == self._current_id:
            return
        self._current_id = self._previous_id
        self._current_handler = self._previous_handler
        logger.debug("state_restored", state=self._current_id)
        self.state_changed.emit(self._current_id)

    def _drop_current(self, target: StateId) -> None:
        if self._config.strict:
            raise UnknownStateError(
                target, f"Pending transition targets unknown state {target!r}"
            )
        logger.warning(
            "transition_target_unknown", state=self._current_id, target=target
        )
        dropped = self._current_handler
        self._current_id = None
        self._current_handler = None
        self._release(dropped)

    def _release(self, handler: State | None) -> None:
        """Unwire a handler the machine no longer keeps anywhere."""
        if handler is None:
            return
        kept = [self._current_handler, self._previous_handler, *self._handler_cache.values()]
        if any(h is handler for h in kept):
            return
        handler.completed.disconnect(self._on_handler_completed)

    def _on_handler_completed(self, transition_key: str | None = None) -> None:
        self.request_next_state(transition_key)
