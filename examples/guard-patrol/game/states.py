"""Guard behaviour states."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum

import pygame

from tick_fsm import PREVIOUS, State


class Mode(Enum):
    PATROL = "patrol"
    ALERT = "alert"
    PAUSED = "paused"
    RESTING = "resting"


@dataclass
class Guard:
    """Owner object shared by every state handler."""

    x: float
    y: float
    waypoints: list[tuple[float, float]]
    speed: float = 120.0
    color: tuple[int, int, int] = (80, 160, 255)
    trail: list[tuple[int, int]] = field(default_factory=list)


class Patrol(State):
    """Walk the waypoint loop. Space raises the alarm."""

    def init(self, guard: Guard) -> None:
        self.context["waypoint"] = 0
        self.context["laps"] = 0
        guard.color = (80, 160, 255)

    def fixed_update(self, delta: float, guard: Guard) -> None:
        tx, ty = guard.waypoints[self.context["waypoint"]]
        dx, dy = tx - guard.x, ty - guard.y
        dist = math.hypot(dx, dy)
        step = guard.speed * delta
        if dist <= step:
            guard.x, guard.y = tx, ty
            nxt = (self.context["waypoint"] + 1) % len(guard.waypoints)
            if nxt == 0:
                self.context["laps"] += 1
            self.context["waypoint"] = nxt
        else:
            guard.x += dx / dist * step
            guard.y += dy / dist * step

    def update(self, delta: float, guard: Guard) -> None:
        # Restoring from pause skips init, so the colour is reapplied here.
        guard.color = (80, 160, 255)
        guard.trail.append((int(guard.x), int(guard.y)))
        del guard.trail[:-40]

    def handle_input(self, event: pygame.event.Event, guard: Guard) -> None:
        if event.type == pygame.KEYDOWN and event.key == pygame.K_SPACE:
            self.complete("alarm")

    def exit(self, guard: Guard) -> None:
        guard.trail.clear()


class Alert(State):
    """Flash red for a while, then hand back to the patrol."""

    DURATION = 1.5

    def init(self, guard: Guard) -> None:
        self.context["remaining"] = self.DURATION

    def update(self, delta: float, guard: Guard) -> None:
        self.context["remaining"] -= delta
        blink = int(self.context["remaining"] * 8) % 2
        guard.color = (255, 60, 60) if blink else (120, 20, 20)
        if self.context["remaining"] <= 0:
            self.complete()


class Paused(State):
    """Freeze everything until P is pressed again."""

    def init(self, guard: Guard) -> None:
        guard.color = (140, 140, 140)

    def handle_input(self, event: pygame.event.Event, guard: Guard) -> None:
        if event.type == pygame.KEYDOWN and event.key == pygame.K_p:
            self.complete("resume")


STATES = {
    Mode.PATROL: {
        "transitions": {"alarm": Mode.ALERT},
        "state_class": Patrol,
    },
    Mode.ALERT: {"next_state": Mode.PATROL, "state_class": Alert},
    Mode.PAUSED: {"transitions": {"resume": PREVIOUS}, "state_class": Paused},
    # No handler: main.py draws and drives this one itself.
    Mode.RESTING: None,
}
