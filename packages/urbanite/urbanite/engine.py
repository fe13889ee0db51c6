"""Engine - polling loop, pacing, and lifecycle hooks."""

import os
import random
import time
from typing import Callable

from urbanite.clock import Clock
from urbanite.types import System, TickContext


class Engine:
    """Calls every registered system once per tick, in registration order.

    Systems never observe a change made by a later system in the same
    tick; they see it on the next one.
    """

    def __init__(self, tick_ms: int = 1, seed: int | None = None) -> None:
        self._clock = Clock(tick_ms)
        self._systems: list[System] = []
        self._start_hooks: list[Callable[[TickContext], None]] = []
        self._stop_hooks: list[Callable[[TickContext], None]] = []
        self._stop_requested: bool = False

        if seed is None:
            seed = int.from_bytes(os.urandom(8))
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def systems(self) -> list[System]:
        return list(self._systems)

    def add_system(self, system: System) -> None:
        self._systems.append(system)

    def on_start(self, hook: Callable[[TickContext], None]) -> None:
        self._start_hooks.append(hook)

    def on_stop(self, hook: Callable[[TickContext], None]) -> None:
        self._stop_hooks.append(hook)

    def _request_stop(self) -> None:
        self._stop_requested = True

    def _tick(self) -> None:
        self._clock.advance()
        ctx = self._clock.context(self._request_stop, self._rng)
        for system in self._systems:
            system(ctx)
            if self._stop_requested:
                break

    def _fire_hooks(self, hooks: list[Callable[[TickContext], None]]) -> None:
        ctx = self._clock.context(self._request_stop, self._rng)
        for hook in hooks:
            hook(ctx)

    def step(self) -> None:
        self._stop_requested = False
        self._tick()

    def run(self, n: int) -> None:
        self._stop_requested = False
        self._fire_hooks(self._start_hooks)

        for _ in range(n):
            self._tick()
            if self._stop_requested:
                break

        self._fire_hooks(self._stop_hooks)

    def run_forever(self) -> None:
        self._stop_requested = False
        self._fire_hooks(self._start_hooks)

        dt = self._clock.tick_ms / 1000.0
        while not self._stop_requested:
            start = time.monotonic()
            self._tick()
            if self._stop_requested:
                break
            elapsed = time.monotonic() - start
            sleep_time = dt - elapsed
            if sleep_time > 0:
                time.sleep(sleep_time)

        self._fire_hooks(self._stop_hooks)
