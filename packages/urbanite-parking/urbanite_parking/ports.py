"""Hardware port protocols consumed by the parking FSMs.

The FSMs never touch registers or pins. Every signal they read and every
output they drive goes through one of these protocols, keyed by an opaque
identifier that only the port implementation interprets.

Implementations are expected to be updated asynchronously by an interrupt
layer (or, in simulation, by ``SimulatedHardware.update``). Multi-field
values such as the echo tick triple must be updated atomically by that
layer.
"""
from __future__ import annotations

from collections.abc import Hashable
from typing import Protocol, runtime_checkable

PortId = Hashable


@runtime_checkable
class SystemPort(Protocol):
    """Time source and power management."""

    def now_ms(self) -> int:
        """Monotonic millisecond counter."""
        ...

    def enter_low_power_mode(self) -> None:
        """Sleep until the next timer or external interrupt."""
        ...


@runtime_checkable
class ButtonPort(Protocol):
    def now_ms(self) -> int: ...

    def is_pressed(self, button_id: PortId) -> bool: ...


@runtime_checkable
class UltrasoundPort(Protocol):
    """Trigger/echo transceiver with its three timers.

    The trigger timer bounds the trigger pulse, the echo timer captures
    both echo edges in ticks, and the periodic timer raises
    ``trigger_ready`` once per measurement window.
    """

    def trigger_ready(self, sensor_id: PortId) -> bool: ...

    def set_trigger_ready(self, sensor_id: PortId, ready: bool) -> None: ...

    def start_trigger(self, sensor_id: PortId) -> None:
        """Raise the trigger line, clear ``trigger_ready`` and start the timers."""
        ...

    def trigger_pulse_elapsed(self, sensor_id: PortId) -> bool: ...

    def stop_trigger(self, sensor_id: PortId) -> None:
        """Lower the trigger line, stop the trigger timer and clear its flag."""
        ...

    def echo_rising_captured(self, sensor_id: PortId) -> bool: ...

    def echo_falling_captured(self, sensor_id: PortId) -> bool: ...

    def echo_ticks(self, sensor_id: PortId) -> tuple[int, int, int]:
        """Return ``(overflow_count, start_tick, end_tick)``."""
        ...

    def reset_echo_state(self, sensor_id: PortId) -> None: ...

    def stop_echo_timer(self, sensor_id: PortId) -> None: ...

    def arm_periodic_retrigger(self, sensor_id: PortId) -> None: ...

    def stop_all_timers(self, sensor_id: PortId) -> None:
        """Stop trigger, echo and periodic timers and reset echo state."""
        ...


@runtime_checkable
class DisplayPort(Protocol):
    def render(self, display_id: PortId, r: int, g: int, b: int) -> None: ...


@runtime_checkable
class BuzzerPort(Protocol):
    def sound(self, buzzer_id: PortId, level: int) -> None: ...


@runtime_checkable
class ParkingHardware(SystemPort, ButtonPort, UltrasoundPort, DisplayPort, BuzzerPort, Protocol):
    """Everything one parking assistant needs from its platform."""
