"""Shared type aliases for the polling engine."""

from __future__ import annotations

import random as _random
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True, slots=True)
class TickContext:
    tick_number: int
    now_ms: int
    dt_ms: int
    request_stop: Callable[[], None]
    random: _random.Random


System = Callable[[TickContext], None]
