"""In-memory hardware for tests, demos and host-side development.

``SimulatedHardware`` implements every port protocol. Signals that real
hardware raises from interrupts (trigger end, echo edges, the periodic
re-trigger timer) are produced by :meth:`SimulatedHardware.update`, which
:func:`make_hardware_system` runs first on every engine tick.

The echo timer counts 1 us ticks and wraps at ``ECHO_TIMER_WRAP``, so
long echoes exercise the overflow path of the distance formula.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from urbanite_parking.ports import PortId
from urbanite_parking.ultrasound import DISTANCE_SCALE, ECHO_TIMER_WRAP, SPEED_OF_SOUND_MS

if TYPE_CHECKING:
    from urbanite import Clock, TickContext

TRIGGER_PULSE_US = 10
# Delay between the end of the trigger pulse and the echo rising edge.
ECHO_LATENCY_US = 500


def round_trip_us(distance_cm: float) -> int:
    """Echo pulse width that the distance formula maps back to ``distance_cm``."""
    return math.ceil(distance_cm * DISTANCE_SCALE / SPEED_OF_SOUND_MS)


@dataclass
class SimSensor:
    """Interrupt-side state of one simulated transceiver."""

    obstacle_cm: float | None = None
    period_ms: int = 100
    noise_cm: float = 0.0
    trigger_ready: bool = False
    trigger_end: bool = False
    trigger_high: bool = False
    trigger_started_us: int | None = None
    echo_origin_us: int = 0
    periodic_deadline_ms: int | None = None
    echo_rise_us: int | None = None
    echo_fall_us: int | None = None
    echo_init_tick: int = 0
    echo_end_tick: int = 0
    echo_overflows: int = 0
    echo_rising: bool = False
    echo_received: bool = False
    triggers: int = 0


@dataclass
class SimOutput:
    """Last value and full history of a display or buzzer."""

    value: tuple[int, ...] = ()
    history: list[tuple[int, tuple[int, ...]]] = field(default_factory=list)


class SimulatedHardware:
    """Implements the system, button, ultrasound, display and buzzer ports.

    Args:
        clock: Time source, normally the engine's clock.
    """

    def __init__(self, clock: Clock) -> None:
        self._clock = clock
        self._buttons: dict[PortId, bool] = {}
        self._sensors: dict[PortId, SimSensor] = {}
        self._displays: dict[PortId, SimOutput] = {}
        self._buzzers: dict[PortId, SimOutput] = {}
        self._sleep_count = 0

    # -- Setup --

    def add_button(self, button_id: PortId) -> None:
        self._buttons[button_id] = False

    def add_sensor(
        self,
        sensor_id: PortId,
        obstacle_cm: float | None = None,
        period_ms: int = 100,
        noise_cm: float = 0.0,
    ) -> SimSensor:
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {period_ms}")
        sensor = SimSensor(obstacle_cm=obstacle_cm, period_ms=period_ms, noise_cm=noise_cm)
        self._sensors[sensor_id] = sensor
        return sensor

    def add_display(self, display_id: PortId) -> None:
        self._displays[display_id] = SimOutput(value=(0, 0, 0))

    def add_buzzer(self, buzzer_id: PortId) -> None:
        self._buzzers[buzzer_id] = SimOutput(value=(0,))

    # -- Stimuli --

    def press(self, button_id: PortId) -> None:
        self._set_button(button_id, True)

    def release(self, button_id: PortId) -> None:
        self._set_button(button_id, False)

    def set_obstacle(self, sensor_id: PortId, obstacle_cm: float | None) -> None:
        self.sensor(sensor_id).obstacle_cm = obstacle_cm

    # -- Inspection --

    def sensor(self, sensor_id: PortId) -> SimSensor:
        return self._sensors[sensor_id]

    def display(self, display_id: PortId) -> SimOutput:
        return self._displays[display_id]

    def buzzer(self, buzzer_id: PortId) -> SimOutput:
        return self._buzzers[buzzer_id]

    @property
    def sleep_count(self) -> int:
        return self._sleep_count

    def _button(self, button_id: PortId) -> bool:
        if button_id not in self._buttons:
            raise KeyError(f"Unknown button {button_id!r}")
        return self._buttons[button_id]

    def _set_button(self, button_id: PortId, pressed: bool) -> None:
        if button_id not in self._buttons:
            raise KeyError(f"Unknown button {button_id!r}")
        self._buttons[button_id] = pressed

    def _now_us(self) -> int:
        return self._clock.now_ms * 1000

    # -- SystemPort --

    def now_ms(self) -> int:
        return self._clock.now_ms

    def enter_low_power_mode(self) -> None:
        self._sleep_count += 1

    # -- ButtonPort --

    def is_pressed(self, button_id: PortId) -> bool:
        return self._button(button_id)

    # -- UltrasoundPort --

    def trigger_ready(self, sensor_id: PortId) -> bool:
        return self.sensor(sensor_id).trigger_ready

    def set_trigger_ready(self, sensor_id: PortId, ready: bool) -> None:
        self.sensor(sensor_id).trigger_ready = ready

    def start_trigger(self, sensor_id: PortId) -> None:
        s = self.sensor(sensor_id)
        now_us = self._now_us()
        s.trigger_ready = False
        s.trigger_high = True
        s.trigger_end = False
        s.trigger_started_us = now_us
        s.echo_origin_us = now_us
        s.triggers += 1
        # The measurement window restarts with every trigger.
        s.periodic_deadline_ms = self._clock.now_ms + s.period_ms
        s.echo_rise_us = None
        s.echo_fall_us = None

    def trigger_pulse_elapsed(self, sensor_id: PortId) -> bool:
        return self.sensor(sensor_id).trigger_end

    def stop_trigger(self, sensor_id: PortId) -> None:
        s = self.sensor(sensor_id)
        s.trigger_high = False
        s.trigger_end = False
        s.trigger_started_us = None

    def echo_rising_captured(self, sensor_id: PortId) -> bool:
        return self.sensor(sensor_id).echo_rising

    def echo_falling_captured(self, sensor_id: PortId) -> bool:
        return self.sensor(sensor_id).echo_received

    def echo_ticks(self, sensor_id: PortId) -> tuple[int, int, int]:
        s = self.sensor(sensor_id)
        return s.echo_overflows, s.echo_init_tick, s.echo_end_tick

    def reset_echo_state(self, sensor_id: PortId) -> None:
        s = self.sensor(sensor_id)
        s.echo_init_tick = 0
        s.echo_end_tick = 0
        s.echo_overflows = 0
        s.echo_rising = False
        s.echo_received = False

    def stop_echo_timer(self, sensor_id: PortId) -> None:
        s = self.sensor(sensor_id)
        s.echo_rise_us = None
        s.echo_fall_us = None

    def arm_periodic_retrigger(self, sensor_id: PortId) -> None:
        s = self.sensor(sensor_id)
        s.periodic_deadline_ms = self._clock.now_ms + s.period_ms

    def stop_all_timers(self, sensor_id: PortId) -> None:
        s = self.sensor(sensor_id)
        s.trigger_high = False
        s.trigger_end = False
        s.trigger_started_us = None
        s.trigger_ready = False
        s.periodic_deadline_ms = None
        self.stop_echo_timer(sensor_id)
        self.reset_echo_state(sensor_id)

    # -- DisplayPort / BuzzerPort --

    def render(self, display_id: PortId, r: int, g: int, b: int) -> None:
        out = self._displays[display_id]
        out.value = (r, g, b)
        out.history.append((self._clock.now_ms, out.value))

    def sound(self, buzzer_id: PortId, level: int) -> None:
        out = self._buzzers[buzzer_id]
        out.value = (level,)
        out.history.append((self._clock.now_ms, out.value))

    # -- Interrupt emulation --

    def update(self, ctx: TickContext | None = None) -> None:
        """Raise every timer and capture flag that is due at the current time."""
        now_us = self._now_us()
        for s in self._sensors.values():
            self._update_trigger(s, now_us, ctx)
            self._update_echo(s, now_us)
            if s.periodic_deadline_ms is not None and self._clock.now_ms >= s.periodic_deadline_ms:
                s.trigger_ready = True
                s.periodic_deadline_ms += s.period_ms

    def _update_trigger(self, s: SimSensor, now_us: int, ctx: TickContext | None) -> None:
        if not s.trigger_high or s.trigger_started_us is None:
            return
        end_us = s.trigger_started_us + TRIGGER_PULSE_US
        if now_us < end_us or s.trigger_end:
            return
        s.trigger_end = True
        if s.obstacle_cm is None:
            return
        distance = s.obstacle_cm
        if s.noise_cm > 0.0 and ctx is not None:
            distance += ctx.random.gauss(0.0, s.noise_cm)
        distance = max(distance, 0.0)
        s.echo_rise_us = end_us + ECHO_LATENCY_US
        s.echo_fall_us = s.echo_rise_us + round_trip_us(distance)

    def _update_echo(self, s: SimSensor, now_us: int) -> None:
        if s.echo_rise_us is None or s.echo_fall_us is None:
            return
        # The echo timer counts from the trigger start.
        origin = s.echo_origin_us
        if not s.echo_rising and now_us >= s.echo_rise_us:
            s.echo_rising = True
            s.echo_init_tick = (s.echo_rise_us - origin) % ECHO_TIMER_WRAP
        if s.echo_rising and not s.echo_received and now_us >= s.echo_fall_us:
            rise = s.echo_rise_us - origin
            fall = s.echo_fall_us - origin
            s.echo_end_tick = fall % ECHO_TIMER_WRAP
            s.echo_overflows = fall // ECHO_TIMER_WRAP - rise // ECHO_TIMER_WRAP
            s.echo_received = True


def make_hardware_system(hw: SimulatedHardware) -> Callable[[TickContext], None]:
    """Return a system that runs the simulated interrupt layer each tick."""

    def hardware_system(ctx: TickContext) -> None:
        hw.update(ctx)

    return hardware_system
