"""FSM and Transition components."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Transition(Generic[T]):
    """One row of a transition table.

    ``guard`` is a predicate over the owning object. ``action`` runs only
    when the transition fires, before the state changes.
    """

    source: int
    guard: Callable[[T], bool]
    target: int
    action: Callable[[T], None] | None = None


@dataclass
class FSM(Generic[T]):
    """Run-to-completion dispatcher over a priority-ordered transition table.

    The table is kept by reference and never copied. The initial state is
    the source of the first row. Rows are evaluated in declared order, so
    when several guards hold at once the earlier row wins.
    """

    owner: T
    table: Sequence[Transition[T]]
    _state: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.table:
            raise ValueError("FSM transition table must not be empty")
        self._state = self.table[0].source

    @property
    def state(self) -> int:
        return self._state

    def fire(self) -> tuple[int, int] | None:
        """Fire at most one transition. Returns ``(old, new)`` or None."""
        current = self._state
        for row in self.table:
            if row.source != current:
                continue
            if row.guard(self.owner):
                if row.action is not None:
                    row.action(self.owner)
                self._state = row.target
                return current, row.target
        return None
