"""urbanite - Millisecond clock and fixed-order polling engine."""

from urbanite.clock import Clock
from urbanite.engine import Engine
from urbanite.types import System, TickContext

__all__ = [
    "Engine",
    "Clock",
    "TickContext",
    "System",
]
