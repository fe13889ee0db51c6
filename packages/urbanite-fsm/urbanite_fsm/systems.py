"""System factory for FSM dispatch."""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Protocol, TypeVar

if TYPE_CHECKING:
    from urbanite import TickContext


class Fireable(Protocol):
    def fire(self) -> tuple[int, int] | None: ...


M = TypeVar("M", bound=Fireable)


def make_fsm_system(
    machine: M,
    on_transition: Callable[[TickContext, M, int, int], None] | None = None,
) -> Callable[[TickContext], None]:
    """Return a system that dispatches ``machine`` once per tick.

    ``on_transition`` is called after the state has changed, with the old
    and new state.
    """

    def fsm_system(ctx: TickContext) -> None:
        result = machine.fire()
        if result is None or on_transition is None:
            return
        old, new = result
        on_transition(ctx, machine, old, new)

    return fsm_system
