"""Guard Patrol - interactive tick-fsm demo.

A guard walks a waypoint loop. Movement runs at a fixed physics rate,
behaviour at the display frame rate.

Controls:
  Space   Raise the alarm (patrol -> alert -> patrol)
  P       Pause / resume (resume returns to the interrupted state)
  R       Toggle resting (manual state with no handler)
  S       Save current state to memory
  L       Load the saved state
  Esc     Quit
"""
from __future__ import annotations

import json
import logging
import sys

import pygame
import structlog

from tick_fsm import FSMConfig, StateMachine

from game.states import STATES, Guard, Mode

SCREEN_W, SCREEN_H = 640, 420
FPS = 60
PHYSICS_TPS = 30
BG_COLOR = (18, 18, 24)
TEXT_COLOR = (220, 220, 220)


def configure_logging() -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    )


class Demo:
    """Owns the guard, its state machine and the save slot."""

    def __init__(self) -> None:
        self.guard = Guard(
            x=100, y=100,
            waypoints=[(100, 100), (540, 100), (540, 320), (100, 320)],
        )
        self.machine = StateMachine(owner=self.guard, config=FSMConfig(cache_states=True))
        self.machine.configure(STATES, Mode.PATROL)
        self.machine.state_changed.connect(self._on_state_changed)
        self.saved: str | None = None
        self.message = ""
        self.log = structlog.get_logger("guard-patrol")

    def _on_state_changed(self, state: Mode) -> None:
        self.log.info("guard_state_changed", state=state.value)
        if state is Mode.RESTING:
            self.guard.color = (90, 200, 120)

    def on_key(self, event: pygame.event.Event) -> None:
        if event.key == pygame.K_p and not self.machine.is_current_state(Mode.PAUSED):
            self.machine.request_transition(Mode.PAUSED)
        elif event.key == pygame.K_r:
            if self.machine.is_current_state(Mode.RESTING):
                self.machine.request_previous_state()
            else:
                self.machine.request_transition(Mode.RESTING)
        elif event.key == pygame.K_s:
            data = self.machine.get_save_data()
            self.saved = json.dumps(
                {"current_state_id": data["current_state_id"].value,
                 "current_context": data["current_context"]}
            )
            self.message = f"saved {self.saved}"
        elif event.key == pygame.K_l and self.saved is not None:
            data = json.loads(self.saved)
            data["current_state_id"] = Mode(data["current_state_id"])
            self.machine.load_state(data)
            self.message = "loaded"


def draw(screen: pygame.Surface, font: pygame.font.Font, demo: Demo) -> None:
    screen.fill(BG_COLOR)
    guard = demo.guard
    pygame.draw.lines(screen, (50, 50, 70), True, guard.waypoints, 1)
    for px, py in guard.trail:
        pygame.draw.circle(screen, (40, 80, 130), (px, py), 2)
    pygame.draw.circle(screen, guard.color, (int(guard.x), int(guard.y)), 12)

    state = demo.machine.get_current_state()
    previous = demo.machine.get_previous_state()
    lines = [
        f"state: {state.value if state else '-'}",
        f"previous: {previous.value if previous else '-'}",
        f"context: {demo.machine.get_save_data()['current_context']}",
        demo.message,
    ]
    for i, text in enumerate(lines):
        surf = font.render(text, True, TEXT_COLOR)
        screen.blit(surf, (10, SCREEN_H - 80 + i * 18))


def main() -> None:
    configure_logging()
    pygame.init()
    screen = pygame.display.set_mode((SCREEN_W, SCREEN_H))
    pygame.display.set_caption("Guard Patrol - tick-fsm demo")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont("monospace", 14)

    demo = Demo()
    step = 1.0 / PHYSICS_TPS
    accumulator = 0.0
    running = True

    while running:
        dt = clock.tick(FPS) / 1000.0
        accumulator += dt

        # --- Events ---
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False
            else:
                demo.machine.handle_input(event)
                if event.type == pygame.KEYDOWN:
                    demo.on_key(event)

        # --- Fixed step ---
        while accumulator >= step:
            demo.machine.tick_physics(step)
            accumulator -= step

        # --- Frame ---
        demo.machine.tick(dt)
        draw(screen, font, demo)
        pygame.display.flip()

    pygame.quit()
    sys.exit()


if __name__ == "__main__":
    main()
