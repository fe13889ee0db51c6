"""urbanite-parking - Parking-assistant state machines built on urbanite-fsm."""
from __future__ import annotations

from urbanite_parking.button import ButtonFSM, ButtonState
from urbanite_parking.ultrasound import UltrasoundFSM, UltrasoundState
from urbanite_parking.display import DisplayFSM, DisplayState, RGBColor, compute_display_levels
from urbanite_parking.buzzer import BuzzerFSM, BuzzerState, compute_buzzer_levels
from urbanite_parking.urbanite import UrbaniteFSM, UrbaniteState
from urbanite_parking.config import UrbaniteConfig
from urbanite_parking.ports import (
    BuzzerPort, ButtonPort, DisplayPort, ParkingHardware, SystemPort, UltrasoundPort,
)
from urbanite_parking.sim import SimulatedHardware, make_hardware_system
from urbanite_parking.app import (
    ParkingSystem, Simulation, build_parking_system, build_simulation,
    register_parking_systems,
)

__all__ = [
    "ButtonFSM", "ButtonState",
    "UltrasoundFSM", "UltrasoundState",
    "DisplayFSM", "DisplayState", "RGBColor", "compute_display_levels",
    "BuzzerFSM", "BuzzerState", "compute_buzzer_levels",
    "UrbaniteFSM", "UrbaniteState",
    "UrbaniteConfig",
    "SystemPort", "ButtonPort", "UltrasoundPort", "DisplayPort", "BuzzerPort",
    "ParkingHardware",
    "SimulatedHardware", "make_hardware_system",
    "ParkingSystem", "Simulation", "build_parking_system", "build_simulation",
    "register_parking_systems",
]
