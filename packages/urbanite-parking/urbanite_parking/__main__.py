"""Command-line demo: a scripted parking manoeuvre on simulated hardware.

With ``--forever`` the simulation is instead paced to wall-clock time by
the engine's forever loop, as the firmware main loop would run.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from urbanite_parking.app import Simulation, build_simulation
from urbanite_parking.config import UrbaniteConfig
from urbanite_parking.scenario import Approach, advance, approach, press_for

if TYPE_CHECKING:
    from urbanite import TickContext

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="urbanite-sim",
        description="Urbanite parking assistant on simulated hardware",
    )
    p.add_argument("--front", type=float, default=180.0,
                   help="Initial front obstacle distance in cm (default: 180)")
    p.add_argument("--rear", type=float, default=60.0,
                   help="Rear obstacle distance in cm (default: 60)")
    p.add_argument("--speed", type=float, default=40.0,
                   help="Approach speed towards the front obstacle in cm/s (default: 40)")
    p.add_argument("--approach-ms", type=int, default=4000,
                   help="Duration of the front approach in ms (default: 4000)")
    p.add_argument("--noise", type=float, default=0.0,
                   help="Standard deviation of sensor noise in cm (default: 0)")
    p.add_argument("--forever", action="store_true",
                   help="Run paced to wall-clock time instead of the scripted demo")
    p.add_argument("--duration-ms", type=int, default=0,
                   help="Stop a --forever run after this many ms (default: 0, until Ctrl-C)")
    p.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                   help="Logging level (default: INFO)")
    return p.parse_args(argv)


def run_demo(args: argparse.Namespace) -> Simulation:
    config = UrbaniteConfig()
    sim = build_simulation(
        config,
        front_obstacle_cm=args.front,
        rear_obstacle_cm=args.rear,
        noise_cm=args.noise,
        seed=args.seed,
    )

    advance(sim, 200)
    press_for(sim, config.on_off_press_time_ms + 100)
    approach(sim, Approach(config.front_sensor_id, args.front, args.speed), args.approach_ms)
    press_for(sim, config.change_press_time_ms + 200)
    advance(sim, 1000)
    press_for(sim, config.pause_display_time_ms + 100)
    advance(sim, 500)
    press_for(sim, config.on_off_press_time_ms + 100)
    advance(sim, 200)
    return sim


def run_live(args: argparse.Namespace) -> Simulation:
    """Pace the simulation in real time: power on, then approach the front obstacle.

    The button is held for the on/off time at start-up. The run ends after
    ``--duration-ms`` of simulated time, or on Ctrl-C when it is 0.
    """
    config = UrbaniteConfig()
    sim = build_simulation(
        config,
        front_obstacle_cm=args.front,
        rear_obstacle_cm=args.rear,
        noise_cm=args.noise,
        seed=args.seed,
    )
    engine = sim.engine
    release_ms = config.on_off_press_time_ms + 1
    obstacle = Approach(config.front_sensor_id, args.front, args.speed, started_ms=release_ms)

    def driver(ctx: TickContext) -> None:
        if args.duration_ms and ctx.now_ms >= args.duration_ms:
            ctx.request_stop()
            return
        if ctx.now_ms == 1:
            sim.hw.press(config.button_id)
        elif ctx.now_ms == release_ms:
            sim.hw.release(config.button_id)
        elif ctx.now_ms > release_ms:
            sim.hw.set_obstacle(config.front_sensor_id, obstacle(ctx.now_ms))

    engine.add_system(driver)
    engine.on_start(lambda ctx: log.info("Live run started (seed %d)", engine.seed))
    engine.on_stop(lambda ctx: log.info("Live run stopped at %d ms", ctx.now_ms))
    try:
        engine.run_forever()
    except KeyboardInterrupt:
        log.info("Interrupted at %d ms", engine.clock.now_ms)
    return sim


def _summary(sim: Simulation) -> str:
    cfg = sim.config
    hw = sim.hw
    lines = [
        f"simulated time:   {sim.engine.clock.now_ms} ms",
        f"final state:      {sim.parking.urbanite.state.name}",
        f"low-power sleeps: {hw.sleep_count}",
        f"front triggers:   {hw.sensor(cfg.front_sensor_id).triggers}",
        f"rear triggers:    {hw.sensor(cfg.rear_sensor_id).triggers}",
        f"front renders:    {len(hw.display(cfg.front_display_id).history)}",
        f"rear renders:     {len(hw.display(cfg.rear_display_id).history)}",
        f"buzzer updates:   {len(hw.buzzer(cfg.buzzer_id).history)}",
    ]
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)-7s %(name)s: %(message)s",
    )
    sim = run_live(args) if args.forever else run_demo(args)
    print(_summary(sim))
    return 0


if __name__ == "__main__":
    sys.exit(main())
