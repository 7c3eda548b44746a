"""System factory for driving StateMachine components."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from tick_fsm.machine import StateMachine

if TYPE_CHECKING:
    from tick import EntityId, TickContext, World


def make_state_machine_system(
    fixed_step: bool = False,
    on_change: Callable[[World, TickContext, EntityId, Any, Any], None] | None = None,
) -> Callable[[World, TickContext], None]:
    """Return a system that ticks every StateMachine component.

    By default each machine gets ``tick(ctx.dt)``, which applies queued
    transitions and runs ``update``. With ``fixed_step`` the system calls
    ``tick_physics(ctx.dt)`` instead; add one of each when frame and
    physics rates differ.

    ``on_change`` receives ``(world, ctx, eid, old, new)`` whenever a
    machine's current state differs after its tick.
    """

    def state_machine_system(world: World, ctx: TickContext) -> None:
        for eid, (machine,) in list(world.query(StateMachine)):
            old = machine.get_current_state()
            if fixed_step:
                machine.tick_physics(ctx.dt)
            else:
                machine.tick(ctx.dt)
            new = machine.get_current_state()
            if on_change is not None and new != old:
                on_change(world, ctx, eid, old, new)

    return state_machine_system
