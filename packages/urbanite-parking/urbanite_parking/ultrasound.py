"""Ultrasound FSM: trigger/echo timing and median-filtered distance."""
from __future__ import annotations

import logging
from enum import IntEnum

from urbanite_fsm import FSM, Transition

from urbanite_parking.ports import PortId, UltrasoundPort

log = logging.getLogger(__name__)

NUM_MEASUREMENTS = 5
SPEED_OF_SOUND_MS = 343
# Ticks are 1 us: cm/us = m/s / 10000, halved for the round trip.
DISTANCE_SCALE = 20000
ECHO_TIMER_WRAP = 65536


class UltrasoundState(IntEnum):
    WAIT_START = 0
    TRIGGER_START = 1
    WAIT_ECHO_START = 2
    WAIT_ECHO_END = 3
    SET_DISTANCE = 4


def echo_distance_cm(overflows: int, start_tick: int, end_tick: int) -> int:
    """Convert captured echo ticks to a distance in centimetres."""
    elapsed = overflows * ECHO_TIMER_WRAP + end_tick - start_tick
    return elapsed * SPEED_OF_SOUND_MS // DISTANCE_SCALE


def median(samples: list[int]) -> int:
    """Middle element of a sorted copy. ``samples`` must have odd length."""
    ordered = sorted(samples)
    return ordered[len(ordered) // 2]


class UltrasoundFSM:
    """Drives trigger/echo cycles of one transceiver.

    Raw samples go to a circular buffer of ``num_measurements`` entries.
    Each time the last slot is written, the median of the buffer becomes
    the published distance and the new-measurement flag is raised. Until
    the buffer has been filled once after :meth:`start`, nothing is
    published.
    """

    def __init__(
        self,
        port: UltrasoundPort,
        sensor_id: PortId,
        num_measurements: int = NUM_MEASUREMENTS,
    ) -> None:
        if num_measurements <= 0 or num_measurements % 2 == 0:
            raise ValueError(f"num_measurements must be odd and positive, got {num_measurements}")
        self._port = port
        self._sensor_id = sensor_id
        self._distance_cm = 0
        self._status = False
        self._new_measurement = False
        self._samples = [0] * num_measurements
        self._idx = 0
        self._fsm: FSM[UltrasoundFSM] = FSM(self, self._TRANSITIONS)

    # -- Guards --

    def _check_on(self) -> bool:
        return self._port.trigger_ready(self._sensor_id) and self._status

    def _check_off(self) -> bool:
        return not self._status

    def _check_trigger_end(self) -> bool:
        return self._port.trigger_pulse_elapsed(self._sensor_id)

    def _check_echo_init(self) -> bool:
        return self._port.echo_rising_captured(self._sensor_id)

    def _check_echo_received(self) -> bool:
        return self._port.echo_falling_captured(self._sensor_id)

    def _check_new_measurement(self) -> bool:
        return self._port.trigger_ready(self._sensor_id)

    def _check_echo_timeout(self) -> bool:
        # A whole re-trigger window went by without a complete echo.
        return self._status and self._port.trigger_ready(self._sensor_id)

    # -- Actions --

    def _do_start_measurement(self) -> None:
        self._port.start_trigger(self._sensor_id)

    def _do_stop_trigger(self) -> None:
        self._port.stop_trigger(self._sensor_id)

    def _do_set_distance(self) -> None:
        overflows, start_tick, end_tick = self._port.echo_ticks(self._sensor_id)
        n = len(self._samples)
        self._samples[self._idx] = echo_distance_cm(overflows, start_tick, end_tick)
        if self._idx >= n - 1:
            self._distance_cm = median(self._samples)
            self._new_measurement = True
        self._idx = (self._idx + 1) % n
        self._port.stop_echo_timer(self._sensor_id)
        self._port.reset_echo_state(self._sensor_id)

    def _do_abandon_echo(self) -> None:
        log.warning("Ultrasound %s: no echo within the measurement window", self._sensor_id)
        self._port.stop_echo_timer(self._sensor_id)
        self._port.reset_echo_state(self._sensor_id)

    def _do_stop_measurement(self) -> None:
        self._port.stop_all_timers(self._sensor_id)

    # Order matters from SET_DISTANCE: a ready trigger window is honored
    # before a stop request so the running cycle always completes.
    _TRANSITIONS = (
        Transition(UltrasoundState.WAIT_START, _check_on,
                   UltrasoundState.TRIGGER_START, _do_start_measurement),
        Transition(UltrasoundState.TRIGGER_START, _check_trigger_end,
                   UltrasoundState.WAIT_ECHO_START, _do_stop_trigger),
        Transition(UltrasoundState.TRIGGER_START, _check_off,
                   UltrasoundState.WAIT_START, _do_stop_measurement),
        Transition(UltrasoundState.WAIT_ECHO_START, _check_echo_init,
                   UltrasoundState.WAIT_ECHO_END),
        Transition(UltrasoundState.WAIT_ECHO_START, _check_off,
                   UltrasoundState.WAIT_START, _do_stop_measurement),
        Transition(UltrasoundState.WAIT_ECHO_START, _check_echo_timeout,
                   UltrasoundState.WAIT_START, _do_abandon_echo),
        Transition(UltrasoundState.WAIT_ECHO_END, _check_echo_received,
                   UltrasoundState.SET_DISTANCE, _do_set_distance),
        Transition(UltrasoundState.WAIT_ECHO_END, _check_off,
                   UltrasoundState.WAIT_START, _do_stop_measurement),
        Transition(UltrasoundState.WAIT_ECHO_END, _check_echo_timeout,
                   UltrasoundState.WAIT_START, _do_abandon_echo),
        Transition(UltrasoundState.SET_DISTANCE, _check_new_measurement,
                   UltrasoundState.TRIGGER_START, _do_start_measurement),
        Transition(UltrasoundState.SET_DISTANCE, _check_off,
                   UltrasoundState.WAIT_START, _do_stop_measurement),
    )

    # -- Public interface --

    @property
    def sensor_id(self) -> PortId:
        return self._sensor_id

    @property
    def state(self) -> UltrasoundState:
        return UltrasoundState(self._fsm.state)

    @property
    def num_measurements(self) -> int:
        return len(self._samples)

    def fire(self) -> tuple[int, int] | None:
        return self._fsm.fire()

    def start(self) -> None:
        self._status = True
        self._idx = 0
        self._distance_cm = 0
        self._new_measurement = False
        self._port.reset_echo_state(self._sensor_id)
        self._port.set_trigger_ready(self._sensor_id, True)
        self._port.arm_periodic_retrigger(self._sensor_id)

    def stop(self) -> None:
        self._status = False
        self._new_measurement = False
        self._port.stop_all_timers(self._sensor_id)

    def get_status(self) -> bool:
        return self._status

    def set_status(self, status: bool) -> None:
        self._status = status

    def get_ready(self) -> bool:
        return self._port.trigger_ready(self._sensor_id)

    def get_distance(self) -> int:
        """Return the last published distance and clear the new-measurement flag."""
        self._new_measurement = False
        return self._distance_cm

    def get_new_measurement_ready(self) -> bool:
        return self._new_measurement

    def check_activity(self) -> bool:
        """Always False: only the outputs fed by this sensor keep the system awake."""
        return False
