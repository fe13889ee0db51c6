"""Button FSM: anti-debounce and press-duration measurement."""
from __future__ import annotations

from enum import IntEnum

from urbanite_fsm import FSM, Transition

from urbanite_parking.ports import ButtonPort, PortId


class ButtonState(IntEnum):
    RELEASED = 0
    RELEASED_WAIT = 1
    PRESSED = 2
    PRESSED_WAIT = 3


class ButtonFSM:
    """Debounces a raw pressed signal and measures press durations.

    Presses (or bounces) shorter than ``debounce_time_ms`` are filtered out.
    The duration of the last completed press is the status flag of this
    machine: 0 means there has been no new press. The consumer must call
    :meth:`reset_duration` after reading it, otherwise the same press is
    read again on the next poll.
    """

    def __init__(self, port: ButtonPort, debounce_time_ms: int, button_id: PortId) -> None:
        self._port = port
        self._debounce_time_ms = debounce_time_ms
        self._button_id = button_id
        self._next_timeout = 0
        self._tick_pressed = 0
        self._duration = 0
        self._fsm: FSM[ButtonFSM] = FSM(self, self._TRANSITIONS)

    # -- Guards --

    def _check_button_pressed(self) -> bool:
        return self._port.is_pressed(self._button_id)

    def _check_button_released(self) -> bool:
        return not self._port.is_pressed(self._button_id)

    def _check_timeout(self) -> bool:
        return self._port.now_ms() > self._next_timeout

    def _check_bounce(self) -> bool:
        return self._check_timeout() and self._check_button_released()

    # -- Actions --

    def _do_store_tick_pressed(self) -> None:
        now = self._port.now_ms()
        self._tick_pressed = now
        self._next_timeout = now + self._debounce_time_ms

    def _do_set_duration(self) -> None:
        now = self._port.now_ms()
        self._duration = now - self._tick_pressed
        self._next_timeout = now + self._debounce_time_ms

    _TRANSITIONS = (
        Transition(ButtonState.RELEASED, _check_button_pressed,
                   ButtonState.PRESSED_WAIT, _do_store_tick_pressed),
        # Released again before the debounce ended: a bounce, not a press.
        Transition(ButtonState.PRESSED_WAIT, _check_bounce, ButtonState.RELEASED),
        Transition(ButtonState.PRESSED_WAIT, _check_timeout, ButtonState.PRESSED),
        Transition(ButtonState.PRESSED, _check_button_released,
                   ButtonState.RELEASED_WAIT, _do_set_duration),
        Transition(ButtonState.RELEASED_WAIT, _check_timeout, ButtonState.RELEASED),
    )

    # -- Public interface --

    @property
    def button_id(self) -> PortId:
        return self._button_id

    @property
    def debounce_time_ms(self) -> int:
        return self._debounce_time_ms

    @property
    def state(self) -> ButtonState:
        return ButtonState(self._fsm.state)

    def fire(self) -> tuple[int, int] | None:
        return self._fsm.fire()

    def get_duration(self) -> int:
        return self._duration

    def reset_duration(self) -> None:
        self._duration = 0

    def check_activity(self) -> bool:
        """True while a press or its debounce is in progress."""
        return self._fsm.state != ButtonState.RELEASED
