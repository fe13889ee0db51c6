"""Urbanite FSM: the parking-assistant orchestrator.

A single push-button drives the whole system. The duration of each
completed press is classified against three thresholds:

* ``duration >= on_off_press_time_ms``: power on or off.
* ``change_press_time_ms <= duration < on_off_press_time_ms``: switch
  between the front and the rear sensor.
* ``pause_display_time_ms <= duration < change_press_time_ms``: pause or
  resume the outputs. While paused, only distances in the danger zone are
  shown.

A duration of 0 means no new press and never matches. Thresholds are
independent values; the guards are evaluated in table order, so power
wins over pause, pause over a pending measurement, and a measurement over
a direction change.

When no collaborator reports activity the orchestrator asks the platform
for low-power mode and wakes again on the next measurement (while on) or
on any activity (while off).
"""
from __future__ import annotations

import logging
from enum import IntEnum

from urbanite_fsm import FSM, Transition

from urbanite_parking.button import ButtonFSM
from urbanite_parking.buzzer import BuzzerFSM
from urbanite_parking.display import WARNING_MIN_CM, DisplayFSM
from urbanite_parking.ports import SystemPort
from urbanite_parking.ultrasound import UltrasoundFSM

log = logging.getLogger(__name__)

# While paused, distances below this still reach the outputs.
PAUSED_ALERT_CM = WARNING_MIN_CM // 2


class UrbaniteState(IntEnum):
    OFF = 0
    MEASURE_FRONT = 1
    MEASURE_REAR = 2
    SLEEP_WHILE_OFF = 3
    SLEEP_WHILE_ON_FRONT = 4
    SLEEP_WHILE_ON_REAR = 5


class UrbaniteFSM:
    """Composes the button, both sensors, both displays and the buzzer.

    The collaborators are borrowed: they are built before this object by
    the composition root and must outlive it. Nothing here fires them;
    the polling loop dispatches every machine once per iteration, this one
    last.
    """

    def __init__(
        self,
        system: SystemPort,
        button: ButtonFSM,
        on_off_press_time_ms: int,
        change_press_time_ms: int,
        pause_display_time_ms: int,
        ultrasound_front: UltrasoundFSM,
        display_front: DisplayFSM,
        ultrasound_rear: UltrasoundFSM,
        display_rear: DisplayFSM,
        buzzer: BuzzerFSM,
    ) -> None:
        self._system = system
        self._button = button
        self._on_off_press_time_ms = on_off_press_time_ms
        self._change_press_time_ms = change_press_time_ms
        self._pause_display_time_ms = pause_display_time_ms
        self._ultrasound_front = ultrasound_front
        self._display_front = display_front
        self._ultrasound_rear = ultrasound_rear
        self._display_rear = display_rear
        self._buzzer = buzzer
        self._is_paused = False
        self._is_rear = False
        self._fsm: FSM[UrbaniteFSM] = FSM(self, self._TRANSITIONS)

    def _log(self, level: int, msg: str, *args: object) -> None:
        log.log(level, "[URBANITE][%d] " + msg, self._system.now_ms(), *args)

    def _active_pair(self) -> tuple[UltrasoundFSM, DisplayFSM]:
        if self._is_rear:
            return self._ultrasound_rear, self._display_rear
        return self._ultrasound_front, self._display_front

    def _inactive_display(self) -> DisplayFSM:
        return self._display_front if self._is_rear else self._display_rear

    # -- Press classification --

    def _check_on(self) -> bool:
        duration = self._button.get_duration()
        return duration > 0 and duration >= self._on_off_press_time_ms

    def _check_off(self) -> bool:
        return self._check_on()

    def _check_pause(self) -> bool:
        duration = self._button.get_duration()
        return (
            duration > 0
            and self._pause_display_time_ms <= duration < self._change_press_time_ms
        )

    def _check_change_direction(self) -> bool:
        duration = self._button.get_duration()
        return (
            duration > 0
            and self._change_press_time_ms <= duration < self._on_off_press_time_ms
        )

    # -- Activity --

    def _check_new_measure(self) -> bool:
        ultrasound, _ = self._active_pair()
        return ultrasound.get_new_measurement_ready()

    def _check_activity(self) -> bool:
        return (
            self._button.check_activity()
            or self._ultrasound_front.check_activity()
            or self._display_front.check_activity()
            or self._ultrasound_rear.check_activity()
            or self._display_rear.check_activity()
            or self._buzzer.check_activity()
        )

    def _check_no_activity(self) -> bool:
        return not self._check_activity()

    def _check_activity_in_measure(self) -> bool:
        return self._check_new_measure()

    # -- Actions --

    def _do_start_up_measure(self) -> None:
        self._button.reset_duration()
        self._is_rear = False
        self._ultrasound_front.start()
        self._display_front.set_status(False)
        self._buzzer.set_status(False)
        self._log(logging.INFO, "Urbanite system ON")

    def _do_distance(self) -> None:
        ultrasound, display = self._active_pair()
        self._inactive_display().set_status(False)
        distance = ultrasound.get_distance()
        if self._is_paused and distance >= PAUSED_ALERT_CM:
            display.set_status(False)
            self._buzzer.set_status(False)
        else:
            display.set_distance(distance)
            self._buzzer.set_distance(distance)
            display.set_status(True)
            self._buzzer.set_status(True)
        self._log(logging.DEBUG, "Distance %s: %d cm",
                  "REAR" if self._is_rear else "FRONT", distance)

    def _do_pause(self) -> None:
        self._button.reset_duration()
        self._is_paused = not self._is_paused
        _, display = self._active_pair()
        display.set_status(self._is_paused)
        self._buzzer.set_status(self._is_paused)
        self._log(logging.INFO, "Urbanite system display %s",
                  "PAUSE" if self._is_paused else "RESUME")

    def _do_stop_urbanite(self) -> None:
        self._button.reset_duration()
        self._ultrasound_front.stop()
        self._display_front.set_status(False)
        self._ultrasound_rear.stop()
        self._display_rear.set_status(False)
        self._buzzer.set_status(False)
        self._is_paused = False
        self._log(logging.INFO, "Urbanite system OFF")

    def _switch_direction(self, to_rear: bool) -> None:
        self._button.reset_duration()
        ultrasound, display = self._active_pair()
        ultrasound.stop()
        display.set_status(False)
        self._is_rear = to_rear
        ultrasound, display = self._active_pair()
        ultrasound.start()
        display.set_status(False)
        self._log(logging.INFO, "Urbanite change %s", "REAR" if to_rear else "FRONT")

    def _do_change_rear(self) -> None:
        self._switch_direction(True)

    def _do_change_front(self) -> None:
        self._switch_direction(False)

    def _do_sleep(self) -> None:
        self._system.enter_low_power_mode()

    _TRANSITIONS = (
        Transition(UrbaniteState.OFF, _check_on,
                   UrbaniteState.MEASURE_FRONT, _do_start_up_measure),
        Transition(UrbaniteState.OFF, _check_no_activity,
                   UrbaniteState.SLEEP_WHILE_OFF, _do_sleep),

        Transition(UrbaniteState.MEASURE_FRONT, _check_off,
                   UrbaniteState.OFF, _do_stop_urbanite),
        Transition(UrbaniteState.MEASURE_FRONT, _check_pause,
                   UrbaniteState.MEASURE_FRONT, _do_pause),
        Transition(UrbaniteState.MEASURE_FRONT, _check_new_measure,
                   UrbaniteState.MEASURE_FRONT, _do_distance),
        Transition(UrbaniteState.MEASURE_FRONT, _check_change_direction,
                   UrbaniteState.MEASURE_REAR, _do_change_rear),
        Transition(UrbaniteState.MEASURE_FRONT, _check_no_activity,
                   UrbaniteState.SLEEP_WHILE_ON_FRONT, _do_sleep),

        Transition(UrbaniteState.MEASURE_REAR, _check_off,
                   UrbaniteState.OFF, _do_stop_urbanite),
        Transition(UrbaniteState.MEASURE_REAR, _check_pause,
                   UrbaniteState.MEASURE_REAR, _do_pause),
        Transition(UrbaniteState.MEASURE_REAR, _check_new_measure,
                   UrbaniteState.MEASURE_REAR, _do_distance),
        Transition(UrbaniteState.MEASURE_REAR, _check_change_direction,
                   UrbaniteState.MEASURE_FRONT, _do_change_front),
        Transition(UrbaniteState.MEASURE_REAR, _check_no_activity,
                   UrbaniteState.SLEEP_WHILE_ON_REAR, _do_sleep),

        Transition(UrbaniteState.SLEEP_WHILE_ON_FRONT, _check_activity_in_measure,
                   UrbaniteState.MEASURE_FRONT),
        Transition(UrbaniteState.SLEEP_WHILE_ON_FRONT, _check_no_activity,
                   UrbaniteState.SLEEP_WHILE_ON_FRONT, _do_sleep),

        Transition(UrbaniteState.SLEEP_WHILE_ON_REAR, _check_activity_in_measure,
                   UrbaniteState.MEASURE_REAR),
        Transition(UrbaniteState.SLEEP_WHILE_ON_REAR, _check_no_activity,
                   UrbaniteState.SLEEP_WHILE_ON_REAR, _do_sleep),

        Transition(UrbaniteState.SLEEP_WHILE_OFF, _check_activity,
                   UrbaniteState.OFF),
        Transition(UrbaniteState.SLEEP_WHILE_OFF, _check_no_activity,
                   UrbaniteState.SLEEP_WHILE_OFF, _do_sleep),
    )

    # -- Public interface --

    @property
    def state(self) -> UrbaniteState:
        return UrbaniteState(self._fsm.state)

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def is_rear(self) -> bool:
        return self._is_rear

    @property
    def is_on(self) -> bool:
        return self._fsm.state not in (UrbaniteState.OFF, UrbaniteState.SLEEP_WHILE_OFF)

    def fire(self) -> tuple[int, int] | None:
        return self._fsm.fire()

    def check_activity(self) -> bool:
        """Logical OR of every collaborator's activity."""
        return self._check_activity()
