"""Buzzer FSM: distance to audible intensity."""
from __future__ import annotations

from enum import IntEnum

from urbanite_fsm import FSM, Transition

from urbanite_parking.ports import BuzzerPort, PortId

HIGH_DANGER_MIN_CM = 0
OK_MAX_CM = 200

BUZZER_MAX_VALUE = 255
BUZZER_MIN_VALUE = 0


class BuzzerState(IntEnum):
    WAIT = 0
    SET = 1


def compute_buzzer_levels(distance_cm: int) -> int:
    """Louder as the obstacle gets closer; silent outside 0..200 cm."""
    if HIGH_DANGER_MIN_CM <= distance_cm <= OK_MAX_CM:
        return BUZZER_MAX_VALUE * (OK_MAX_CM - distance_cm) // OK_MAX_CM
    return BUZZER_MIN_VALUE


class BuzzerFSM:
    def __init__(self, port: BuzzerPort, buzzer_id: PortId) -> None:
        self._port = port
        self._buzzer_id = buzzer_id
        self._distance_cm = -1
        self._new_sound = False
        self._status = False
        self._idle = False
        self._last_level = BUZZER_MIN_VALUE
        self._fsm: FSM[BuzzerFSM] = FSM(self, self._TRANSITIONS)

    def _sound(self, level: int) -> None:
        self._last_level = level
        self._port.sound(self._buzzer_id, level)

    def _check_set_new_sound(self) -> bool:
        return self._new_sound

    def _check_active(self) -> bool:
        return self._status

    def _check_off(self) -> bool:
        return not self._status

    def _do_set_on(self) -> None:
        self._sound(BUZZER_MIN_VALUE)

    def _do_set_sound(self) -> None:
        self._sound(compute_buzzer_levels(self._distance_cm))
        self._new_sound = False
        self._idle = True

    def _do_set_off(self) -> None:
        self._sound(BUZZER_MIN_VALUE)
        self._idle = False

    _TRANSITIONS = (
        Transition(BuzzerState.WAIT, _check_active, BuzzerState.SET, _do_set_on),
        Transition(BuzzerState.SET, _check_set_new_sound, BuzzerState.SET, _do_set_sound),
        Transition(BuzzerState.SET, _check_off, BuzzerState.WAIT, _do_set_off),
    )

    @property
    def buzzer_id(self) -> PortId:
        return self._buzzer_id

    @property
    def state(self) -> BuzzerState:
        return BuzzerState(self._fsm.state)

    @property
    def last_level(self) -> int:
        return self._last_level

    def fire(self) -> tuple[int, int] | None:
        return self._fsm.fire()

    def set_distance(self, distance_cm: int) -> None:
        self._distance_cm = distance_cm
        self._new_sound = True
        self._idle = False

    def get_distance(self) -> int:
        return self._distance_cm

    def get_status(self) -> bool:
        return self._status

    def set_status(self, status: bool) -> None:
        self._status = status

    def check_activity(self) -> bool:
        """True only between a new level being requested and it being applied."""
        return self._status and not self._idle
