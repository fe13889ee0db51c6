"""Tests for SimulatedHardware and the scenario helpers."""
import pytest
from urbanite import Clock, Engine
from urbanite_parking import ParkingHardware, SimulatedHardware, make_hardware_system
from urbanite_parking.scenario import Approach
from urbanite_parking.sim import ECHO_LATENCY_US, round_trip_us
from urbanite_parking.ultrasound import ECHO_TIMER_WRAP


class TestSimulatedHardware:

    def test_implements_every_port(self):
        assert isinstance(SimulatedHardware(Clock()), ParkingHardware)

    def test_unknown_button(self):
        hw = SimulatedHardware(Clock())
        with pytest.raises(KeyError):
            hw.press(7)
        with pytest.raises(KeyError):
            hw.is_pressed(7)

    def test_unknown_sensor(self):
        hw = SimulatedHardware(Clock())
        with pytest.raises(KeyError):
            hw.start_trigger(3)

    def test_bad_period(self):
        hw = SimulatedHardware(Clock())
        with pytest.raises(ValueError):
            hw.add_sensor(0, 50, period_ms=0)

    def test_button_level(self):
        hw = SimulatedHardware(Clock())
        hw.add_button(0)
        assert not hw.is_pressed(0)
        hw.press(0)
        assert hw.is_pressed(0)
        hw.release(0)
        assert not hw.is_pressed(0)

    def test_now_follows_clock(self):
        clock = Clock(tick_ms=5)
        hw = SimulatedHardware(clock)
        clock.advance()
        assert hw.now_ms() == 5

    def test_low_power_counted(self):
        hw = SimulatedHardware(Clock())
        hw.enter_low_power_mode()
        hw.enter_low_power_mode()
        assert hw.sleep_count == 2

    def test_outputs_record_history(self):
        clock = Clock()
        hw = SimulatedHardware(clock)
        hw.add_display(0)
        hw.add_buzzer(0)
        clock.advance()
        hw.render(0, 1, 2, 3)
        hw.sound(0, 99)
        assert hw.display(0).history == [(1, (1, 2, 3))]
        assert hw.buzzer(0).value == (99,)


class TestEchoEmulation:

    def make_rig(self, obstacle_cm):
        engine = Engine(seed=42)
        hw = SimulatedHardware(engine.clock)
        hw.add_sensor(0, obstacle_cm)
        engine.add_system(make_hardware_system(hw))
        return engine, hw

    def test_trigger_pulse_ends(self):
        engine, hw = self.make_rig(50)
        hw.start_trigger(0)
        assert not hw.trigger_pulse_elapsed(0)
        engine.step()
        assert hw.trigger_pulse_elapsed(0)

    def test_echo_edges_captured(self):
        engine, hw = self.make_rig(50)
        hw.start_trigger(0)
        engine.run(10)

        overflows, start, end = hw.echo_ticks(0)
        assert hw.echo_rising_captured(0)
        assert hw.echo_falling_captured(0)
        assert overflows == 0
        assert end - start == round_trip_us(50)

    def test_no_obstacle_no_echo(self):
        engine, hw = self.make_rig(None)
        hw.start_trigger(0)
        engine.run(50)
        assert hw.trigger_pulse_elapsed(0)
        assert not hw.echo_rising_captured(0)

    def test_long_echo_wraps_timer(self):
        engine, hw = self.make_rig(1500)
        hw.start_trigger(0)
        engine.run(95)

        overflows, start, end = hw.echo_ticks(0)
        assert overflows == 1
        assert overflows * ECHO_TIMER_WRAP + end - start == round_trip_us(1500)

    def test_periodic_retrigger(self):
        engine, hw = self.make_rig(50)
        hw.arm_periodic_retrigger(0)
        engine.run(99)
        assert not hw.trigger_ready(0)
        engine.step()
        assert hw.trigger_ready(0)

    def test_stop_all_timers(self):
        engine, hw = self.make_rig(50)
        hw.start_trigger(0)
        hw.stop_all_timers(0)
        engine.run(200)
        assert not hw.trigger_pulse_elapsed(0)
        assert not hw.echo_rising_captured(0)
        assert not hw.trigger_ready(0)

    def test_noise_is_seeded(self):
        """Same seed, same noisy echoes."""
        widths = []
        for _ in range(2):
            engine = Engine(seed=7)
            hw = SimulatedHardware(engine.clock)
            hw.add_sensor(0, 100, noise_cm=3.0)
            engine.add_system(make_hardware_system(hw))
            hw.start_trigger(0)
            engine.run(10)
            _, start, end = hw.echo_ticks(0)
            widths.append(end - start)
        assert widths[0] == widths[1]

    def test_latency_before_rise(self):
        engine, hw = self.make_rig(50)
        hw.start_trigger(0)
        engine.run(5)
        _, start, _ = hw.echo_ticks(0)
        assert start == 10 + ECHO_LATENCY_US


class TestApproach:

    def test_moves_towards_sensor(self):
        obstacle = Approach(sensor_id=1, start_cm=100, speed_cm_s=50)
        assert obstacle(0) == 100
        assert obstacle(1000) == 50

    def test_clamps_at_zero(self):
        obstacle = Approach(sensor_id=1, start_cm=10, speed_cm_s=50)
        assert obstacle(5000) == 0
