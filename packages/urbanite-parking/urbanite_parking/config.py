"""Urbanite configuration dataclass."""
from __future__ import annotations

from dataclasses import dataclass, fields


@dataclass(frozen=True)
class UrbaniteConfig:
    """Immutable timing and wiring configuration for the parking assistant.

    Attributes:
        on_off_press_time_ms: Minimum press that toggles power.
        change_press_time_ms: Minimum press that switches front/rear.
        pause_display_time_ms: Minimum press that pauses the outputs.
        debounce_time_ms: Button anti-debounce interval.
        measurement_period_ms: Re-trigger period of each ultrasound sensor.
        button_id: Identifier of the single push-button.
        front_sensor_id: Identifier of the front ultrasound transceiver.
        rear_sensor_id: Identifier of the rear ultrasound transceiver.
        front_display_id: Identifier of the front RGB indicator.
        rear_display_id: Identifier of the rear RGB indicator.
        buzzer_id: Identifier of the shared buzzer.
    """

    on_off_press_time_ms: int = 3000
    change_press_time_ms: int = 1000
    pause_display_time_ms: int = 500
    debounce_time_ms: int = 100
    measurement_period_ms: int = 100
    button_id: int = 0
    front_sensor_id: int = 1
    rear_sensor_id: int = 0
    front_display_id: int = 1
    rear_display_id: int = 0
    buzzer_id: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name.endswith("_ms") and getattr(self, f.name) <= 0:
                raise ValueError(f"{f.name} must be positive, got {getattr(self, f.name)}")
        if self.front_sensor_id == self.rear_sensor_id:
            raise ValueError("front and rear sensors need distinct identifiers")
        if self.front_display_id == self.rear_display_id:
            raise ValueError("front and rear displays need distinct identifiers")
