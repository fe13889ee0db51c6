"""Composition root: builds every FSM and wires them into the polling loop."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from urbanite import Engine
from urbanite_fsm import make_fsm_system

from urbanite_parking.button import ButtonFSM
from urbanite_parking.buzzer import BuzzerFSM
from urbanite_parking.config import UrbaniteConfig
from urbanite_parking.display import DisplayFSM
from urbanite_parking.sim import SimulatedHardware, make_hardware_system
from urbanite_parking.ultrasound import UltrasoundFSM
from urbanite_parking.urbanite import UrbaniteFSM

if TYPE_CHECKING:
    from urbanite import TickContext

    from urbanite_parking.ports import ParkingHardware

log = logging.getLogger(__name__)


@dataclass
class ParkingSystem:
    """Every machine of one parking assistant, in dispatch order."""

    button: ButtonFSM
    ultrasound_front: UltrasoundFSM
    ultrasound_rear: UltrasoundFSM
    display_front: DisplayFSM
    display_rear: DisplayFSM
    buzzer: BuzzerFSM
    urbanite: UrbaniteFSM

    def machines(self) -> list[Any]:
        return [
            self.button,
            self.ultrasound_front,
            self.ultrasound_rear,
            self.display_front,
            self.display_rear,
            self.buzzer,
            self.urbanite,
        ]


def _log_transition(ctx: TickContext, machine: Any, old: int, new: int) -> None:
    if not log.isEnabledFor(logging.DEBUG):
        return
    states = type(machine.state)
    log.debug("[%d] %s: %s -> %s", ctx.now_ms, type(machine).__name__,
              states(old).name, states(new).name)


def build_parking_system(
    hw: ParkingHardware,
    config: UrbaniteConfig | None = None,
) -> ParkingSystem:
    """Construct the collaborators first, then the orchestrator that borrows them."""
    config = config or UrbaniteConfig()
    button = ButtonFSM(hw, config.debounce_time_ms, config.button_id)
    ultrasound_front = UltrasoundFSM(hw, config.front_sensor_id)
    ultrasound_rear = UltrasoundFSM(hw, config.rear_sensor_id)
    display_front = DisplayFSM(hw, config.front_display_id)
    display_rear = DisplayFSM(hw, config.rear_display_id)
    buzzer = BuzzerFSM(hw, config.buzzer_id)
    urbanite = UrbaniteFSM(
        hw,
        button,
        config.on_off_press_time_ms,
        config.change_press_time_ms,
        config.pause_display_time_ms,
        ultrasound_front,
        display_front,
        ultrasound_rear,
        display_rear,
        buzzer,
    )
    return ParkingSystem(
        button=button,
        ultrasound_front=ultrasound_front,
        ultrasound_rear=ultrasound_rear,
        display_front=display_front,
        display_rear=display_rear,
        buzzer=buzzer,
        urbanite=urbanite,
    )


def register_parking_systems(engine: Engine, parking: ParkingSystem) -> None:
    """Add one FSM system per machine; the orchestrator goes last."""
    for machine in parking.machines():
        engine.add_system(make_fsm_system(machine, on_transition=_log_transition))


@dataclass
class Simulation:
    engine: Engine
    hw: SimulatedHardware
    parking: ParkingSystem
    config: UrbaniteConfig


def build_simulation(
    config: UrbaniteConfig | None = None,
    front_obstacle_cm: float | None = None,
    rear_obstacle_cm: float | None = None,
    noise_cm: float = 0.0,
    seed: int | None = None,
    tick_ms: int = 1,
) -> Simulation:
    """Engine + simulated hardware + parking system, ready to step."""
    config = config or UrbaniteConfig()
    engine = Engine(tick_ms=tick_ms, seed=seed)
    hw = SimulatedHardware(engine.clock)
    hw.add_button(config.button_id)
    hw.add_sensor(config.front_sensor_id, front_obstacle_cm,
                  period_ms=config.measurement_period_ms, noise_cm=noise_cm)
    hw.add_sensor(config.rear_sensor_id, rear_obstacle_cm,
                  period_ms=config.measurement_period_ms, noise_cm=noise_cm)
    hw.add_display(config.front_display_id)
    hw.add_display(config.rear_display_id)
    hw.add_buzzer(config.buzzer_id)

    parking = build_parking_system(hw, config)
    engine.add_system(make_hardware_system(hw))
    register_parking_systems(engine, parking)
    log.debug("Simulation built with seed %d", engine.seed)
    return Simulation(engine=engine, hw=hw, parking=parking, config=config)
