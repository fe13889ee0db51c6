"""Display FSM: distance to RGB color band."""
from __future__ import annotations

from enum import IntEnum
from typing import NamedTuple

from urbanite_fsm import FSM, Transition

from urbanite_parking.ports import DisplayPort, PortId

HIGH_DANGER_MIN_CM = 0
DANGER_MIN_CM = 5
WARNING_MIN_CM = 25
NO_PROBLEM_MIN_CM = 50
INFO_MIN_CM = 150
OK_MIN_CM = 175
OK_MAX_CM = 200

RGB_MAX_VALUE = 255


class RGBColor(NamedTuple):
    r: int
    g: int
    b: int


COLOR_RED = RGBColor(RGB_MAX_VALUE, 0, 0)
COLOR_GREEN = RGBColor(0, RGB_MAX_VALUE, 0)
COLOR_BLUE = RGBColor(0, 0, RGB_MAX_VALUE)
COLOR_YELLOW = RGBColor(RGB_MAX_VALUE * 37 // 100, RGB_MAX_VALUE * 37 // 100, 0)
COLOR_TURQUOISE = RGBColor(
    RGB_MAX_VALUE // 10, RGB_MAX_VALUE * 35 // 100, RGB_MAX_VALUE * 32 // 100,
)
COLOR_OFF = RGBColor(0, 0, 0)

# (lower bound, upper bound, color at lower bound, color at upper bound)
_BANDS = (
    (DANGER_MIN_CM, WARNING_MIN_CM, COLOR_RED, COLOR_YELLOW),
    (WARNING_MIN_CM, NO_PROBLEM_MIN_CM, COLOR_YELLOW, COLOR_GREEN),
    (NO_PROBLEM_MIN_CM, INFO_MIN_CM, COLOR_GREEN, COLOR_TURQUOISE),
    (INFO_MIN_CM, OK_MIN_CM, COLOR_TURQUOISE, COLOR_BLUE),
    (OK_MIN_CM, OK_MAX_CM, COLOR_BLUE, COLOR_OFF),
)


class DisplayState(IntEnum):
    WAIT = 0
    SET = 1


def linear_interp(
    color_inf: RGBColor,
    color_sup: RGBColor,
    distance_inf: int,
    distance_sup: int,
    distance_cm: int,
) -> RGBColor:
    """Blend two colors channel by channel with integer arithmetic."""
    span = distance_sup - distance_inf
    below = distance_sup - distance_cm
    above = distance_cm - distance_inf
    return RGBColor(*(
        inf * below // span + sup * above // span
        for inf, sup in zip(color_inf, color_sup)
    ))


def compute_display_levels(distance_cm: int) -> RGBColor:
    """Map a distance to its color.

    Red up to 5 cm, then red to yellow, yellow to green, green to
    turquoise, turquoise to blue and blue fading out at 200 cm. Negative
    distances and anything beyond 200 cm are off.
    """
    if HIGH_DANGER_MIN_CM <= distance_cm <= DANGER_MIN_CM:
        return COLOR_RED
    for lower, upper, color_inf, color_sup in _BANDS:
        if lower < distance_cm <= upper:
            return linear_interp(color_inf, color_sup, lower, upper, distance_cm)
    return COLOR_OFF


class DisplayFSM:
    """Shows the last distance it was given on one RGB indicator.

    The distance is written by the orchestrator; this machine reads no
    sensor. It is switched on and off through :meth:`set_status`.
    """

    def __init__(self, port: DisplayPort, display_id: PortId) -> None:
        self._port = port
        self._display_id = display_id
        self._distance_cm = -1
        self._new_color = False
        self._status = False
        self._idle = False
        self._last_color = COLOR_OFF
        self._fsm: FSM[DisplayFSM] = FSM(self, self._TRANSITIONS)

    def _render(self, color: RGBColor) -> None:
        self._last_color = color
        self._port.render(self._display_id, color.r, color.g, color.b)

    # -- Guards --

    def _check_set_new_color(self) -> bool:
        return self._new_color

    def _check_active(self) -> bool:
        return self._status

    def _check_off(self) -> bool:
        return not self._status

    # -- Actions --

    def _do_set_on(self) -> None:
        self._render(COLOR_OFF)

    def _do_set_color(self) -> None:
        self._render(compute_display_levels(self._distance_cm))
        self._new_color = False
        self._idle = True

    def _do_set_off(self) -> None:
        self._render(COLOR_OFF)
        self._idle = False

    _TRANSITIONS = (
        Transition(DisplayState.WAIT, _check_active, DisplayState.SET, _do_set_on),
        Transition(DisplayState.SET, _check_set_new_color, DisplayState.SET, _do_set_color),
        Transition(DisplayState.SET, _check_off, DisplayState.WAIT, _do_set_off),
    )

    # -- Public interface --

    @property
    def display_id(self) -> PortId:
        return self._display_id

    @property
    def state(self) -> DisplayState:
        return DisplayState(self._fsm.state)

    @property
    def last_color(self) -> RGBColor:
        return self._last_color

    def fire(self) -> tuple[int, int] | None:
        return self._fsm.fire()

    def set_distance(self, distance_cm: int) -> None:
        self._distance_cm = distance_cm
        self._new_color = True
        self._idle = False

    def get_distance(self) -> int:
        return self._distance_cm

    def get_status(self) -> bool:
        return self._status

    def set_status(self, status: bool) -> None:
        self._status = status

    def check_activity(self) -> bool:
        return self._status and not self._idle
