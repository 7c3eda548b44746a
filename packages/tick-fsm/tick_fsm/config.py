"""Machine options and state-table normalization."""
from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from tick_fsm.types import PREVIOUS, StateDef, StateId

logger = structlog.get_logger(__name__)

_DEF_KEYS = frozenset({"next_state", "transitions", "state_class"})
_KEY_HINTS = {"transition": "transitions", "next": "next_state", "class": "state_class"}


@dataclass(frozen=True)
class FSMConfig:
    """Immutable options for a :class:`StateMachine`.

    Attributes:
        cache_states: Keep handlers alive between visits and reuse them
            on re-entry. Reused handlers keep their ``context`` and are
            not re-initialized.
        strict: Raise :class:`UnknownStateError` when a pending
            transition names an unregistered state instead of clearing
            the current state.
    """

    cache_states: bool = False
    strict: bool = False


def build_state_table(
    states_config: Iterable[StateId] | Mapping[StateId, Any],
) -> dict[StateId, StateDef]:
    """Normalize a state configuration into ``{id: StateDef}``.

    Accepts a flat iterable of ids (an ``Enum`` class works too) or a
    mapping whose values are ``StateDef`` objects, dicts with
    ``next_state``/``transitions``/``state_class`` keys, bare handler
    classes, or ``None``.
    """
    if isinstance(states_config, Mapping):
        items: Iterable[tuple[StateId, Any]] = states_config.items()
    elif isinstance(states_config, (str, bytes)):
        raise TypeError("states_config must be a collection of ids, not a string")
    else:
        items = ((state_id, None) for state_id in states_config)

    table: dict[StateId, StateDef] = {}
    for state_id, raw in items:
        if state_id is None or state_id == PREVIOUS:
            raise ValueError(f"State id {state_id!r} is reserved")
        table[state_id] = _to_def(state_id, raw)

    _check_targets(table)
    return table


def _to_def(state_id: StateId, raw: Any) -> StateDef:
    if raw is None:
        return StateDef(id=state_id)
    if isinstance(raw, StateDef):
        return raw if raw.id == state_id else dataclasses.replace(raw, id=state_id)
    if isinstance(raw, type):
        return StateDef(id=state_id, state_class=raw)
    if isinstance(raw, Mapping):
        for key in raw:
            if key not in _DEF_KEYS:
                logger.warning(
                    "state_config_unknown_key",
                    state=state_id,
                    key=key,
                    hint=_KEY_HINTS.get(key),
                )
        return StateDef(
            id=state_id,
            next_state=raw.get("next_state"),
            transitions=dict(raw.get("transitions") or {}),
            state_class=raw.get("state_class"),
        )
    raise TypeError(
        f"Invalid definition for state {state_id!r}: {type(raw).__qualname__}"
    )


def _check_targets(table: dict[StateId, StateDef]) -> None:
    for state_id, definition in table.items():
        targets = list(definition.transitions.items())
        if definition.next_state is not None:
            targets.append(("next_state", definition.next_state))
        for key, target in targets:
            if target != PREVIOUS and target not in table:
                logger.warning(
                    "state_config_unknown_target",
                    state=state_id,
                    key=key,
                    target=target,
                )
