"""Scripted stimuli for driving a simulation: button holds and moving obstacles."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from urbanite_parking.app import Simulation


def advance(sim: Simulation, ms: int, on_tick: Callable[[int], None] | None = None) -> None:
    """Step the engine for ``ms`` milliseconds of simulated time."""
    ticks = max(ms // sim.engine.clock.tick_ms, 0)
    for _ in range(ticks):
        if on_tick is not None:
            on_tick(sim.engine.clock.now_ms)
        sim.engine.step()


def press_for(sim: Simulation, duration_ms: int, settle_ms: int | None = None) -> None:
    """Hold the button for ``duration_ms``, release it, then let it settle.

    The settle time defaults to one debounce interval plus one tick, enough
    for the button to report its duration and return to RELEASED.
    """
    button_id = sim.config.button_id
    sim.hw.press(button_id)
    advance(sim, duration_ms)
    sim.hw.release(button_id)
    if settle_ms is None:
        settle_ms = sim.config.debounce_time_ms + 2 * sim.engine.clock.tick_ms
    advance(sim, settle_ms)


@dataclass
class Approach:
    """Obstacle moving towards one sensor at constant speed."""

    sensor_id: int
    start_cm: float
    speed_cm_s: float
    started_ms: int = 0

    def __call__(self, now_ms: int) -> float:
        travelled = self.speed_cm_s * (now_ms - self.started_ms) / 1000.0
        return max(self.start_cm - travelled, 0.0)


def approach(sim: Simulation, obstacle: Approach, ms: int) -> None:
    """Advance while moving the obstacle in front of ``obstacle.sensor_id``."""
    obstacle.started_ms = sim.engine.clock.now_ms

    def move(now_ms: int) -> None:
        sim.hw.set_obstacle(obstacle.sensor_id, obstacle(now_ms))

    advance(sim, ms, on_tick=move)
