"""Millisecond clock and TickContext for the polling loop."""

import random
from typing import Callable

from urbanite.types import TickContext


class Clock:
    """Virtual monotonic millisecond counter advanced once per tick."""

    def __init__(self, tick_ms: int = 1) -> None:
        if tick_ms <= 0:
            raise ValueError("tick_ms must be positive")
        self._tick_ms = tick_ms
        self._tick_number = 0
        self._now_ms = 0

    @property
    def tick_ms(self) -> int:
        return self._tick_ms

    @property
    def tick_number(self) -> int:
        return self._tick_number

    @property
    def now_ms(self) -> int:
        return self._now_ms

    def advance(self) -> int:
        self._tick_number += 1
        self._now_ms += self._tick_ms
        return self._tick_number

    def context(self, stop_fn: Callable[[], None], rng: random.Random) -> TickContext:
        return TickContext(
            tick_number=self._tick_number,
            now_ms=self._now_ms,
            dt_ms=self._tick_ms,
            request_stop=stop_fn,
            random=rng,
        )

    def reset(self, tick_number: int = 0, now_ms: int | None = None) -> None:
        self._tick_number = tick_number
        self._now_ms = tick_number * self._tick_ms if now_ms is None else now_ms
