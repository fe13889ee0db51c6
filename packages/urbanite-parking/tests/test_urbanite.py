"""Tests for the Urbanite orchestrator on a full simulated parking system."""
import logging

from urbanite_parking import (
    UrbaniteConfig,
    UrbaniteState,
    build_simulation,
    compute_buzzer_levels,
    compute_display_levels,
)
from urbanite_parking.display import COLOR_OFF
from urbanite_parking.scenario import advance, press_for

FRONT_CM = 100
REAR_CM = 60

AWAKE_FRONT = (UrbaniteState.MEASURE_FRONT, UrbaniteState.SLEEP_WHILE_ON_FRONT)
AWAKE_REAR = (UrbaniteState.MEASURE_REAR, UrbaniteState.SLEEP_WHILE_ON_REAR)
POWERED_OFF = (UrbaniteState.OFF, UrbaniteState.SLEEP_WHILE_OFF)


def make_sim(**kwargs):
    return build_simulation(front_obstacle_cm=FRONT_CM, rear_obstacle_cm=REAR_CM, seed=42, **kwargs)


def power_on(sim):
    advance(sim, 10)
    press_for(sim, sim.config.on_off_press_time_ms)


def front_display(sim):
    return sim.hw.display(sim.config.front_display_id)


def rear_display(sim):
    return sim.hw.display(sim.config.rear_display_id)


def buzzer(sim):
    return sim.hw.buzzer(sim.config.buzzer_id)


class TestPower:

    def test_starts_off(self):
        sim = make_sim()
        urbanite = sim.parking.urbanite
        assert urbanite.state == UrbaniteState.OFF
        assert not urbanite.is_on
        assert not urbanite.is_paused
        assert not urbanite.is_rear

    def test_on_at_threshold(self):
        """A press of exactly the on/off time powers the system on."""
        sim = make_sim()
        power_on(sim)

        assert sim.parking.urbanite.is_on
        assert sim.parking.urbanite.state in AWAKE_FRONT
        assert sim.parking.ultrasound_front.get_status()
        assert not sim.parking.ultrasound_rear.get_status()

    def test_one_ms_short_stays_off(self):
        sim = make_sim()
        advance(sim, 10)
        press_for(sim, sim.config.on_off_press_time_ms - 1)

        assert not sim.parking.urbanite.is_on
        assert sim.parking.urbanite.state in POWERED_OFF

    def test_bounce_does_nothing(self):
        sim = make_sim()
        press_for(sim, 40)
        assert sim.parking.urbanite.state in POWERED_OFF
        assert sim.parking.button.get_duration() == 0

    def test_power_on_logged(self, caplog):
        caplog.set_level(logging.INFO, logger="urbanite_parking.urbanite")
        sim = make_sim()
        power_on(sim)
        assert "[URBANITE]" in caplog.text
        assert "Urbanite system ON" in caplog.text

    def test_press_consumed(self):
        """The power press is read once."""
        sim = make_sim()
        power_on(sim)
        assert sim.parking.button.get_duration() == 0

    def test_off_from_front(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)

        press_for(sim, 3200)
        advance(sim, 1000)

        assert sim.parking.urbanite.state in POWERED_OFF
        assert not sim.parking.ultrasound_front.get_status()
        assert not sim.parking.ultrasound_rear.get_status()
        assert front_display(sim).value == tuple(COLOR_OFF)
        assert buzzer(sim).value == (0,)

    def test_off_from_rear(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        press_for(sim, 1200)
        advance(sim, 1000)
        assert sim.parking.urbanite.is_rear

        press_for(sim, 3200)
        advance(sim, 1000)

        assert sim.parking.urbanite.state in POWERED_OFF
        assert not sim.parking.ultrasound_rear.get_status()
        assert rear_display(sim).value == tuple(COLOR_OFF)

    def test_power_cycle(self):
        """Off then on again measures the front sensor."""
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        press_for(sim, 3200)
        advance(sim, 1000)

        press_for(sim, 3000)
        assert sim.parking.urbanite.state in AWAKE_FRONT

    def test_power_cycle_from_rear_restarts_front(self):
        """Power-on always measures the front first."""
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        press_for(sim, 1200)
        advance(sim, 1000)
        press_for(sim, 3200)
        advance(sim, 1000)

        press_for(sim, 3000)
        advance(sim, 600)

        assert not sim.parking.urbanite.is_rear
        assert front_display(sim).value == compute_display_levels(FRONT_CM)


class TestMeasure:

    def test_front_distance_shown(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)

        assert sim.parking.display_front.last_color == compute_display_levels(FRONT_CM)
        assert front_display(sim).value == compute_display_levels(FRONT_CM)
        assert buzzer(sim).value == (compute_buzzer_levels(FRONT_CM),)

    def test_nothing_shown_before_first_window(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 200)
        assert sim.parking.display_front.get_distance() == -1

    def test_inactive_display_dark(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        assert rear_display(sim).history == []


class TestChangeDirection:

    def test_change_to_rear(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)

        press_for(sim, 1200)
        advance(sim, 1000)

        urbanite = sim.parking.urbanite
        assert urbanite.is_rear
        assert urbanite.state in AWAKE_REAR
        assert not sim.parking.ultrasound_front.get_status()
        assert sim.parking.ultrasound_rear.get_status()

    def test_rear_distance_shown(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        press_for(sim, 1200)
        advance(sim, 1000)

        assert rear_display(sim).value == compute_display_levels(REAR_CM)
        assert front_display(sim).value == tuple(COLOR_OFF)
        assert buzzer(sim).value == (compute_buzzer_levels(REAR_CM),)

    def test_change_back_to_front(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        press_for(sim, 1200)
        advance(sim, 1000)

        press_for(sim, 1200)
        advance(sim, 1000)

        assert not sim.parking.urbanite.is_rear
        assert sim.parking.urbanite.state in AWAKE_FRONT
        assert front_display(sim).value == compute_display_levels(FRONT_CM)


class TestPause:

    def paused_sim(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        press_for(sim, 600)
        advance(sim, 1000)
        return sim

    def test_pause_hides_far_obstacles(self):
        sim = self.paused_sim()
        assert sim.parking.urbanite.is_paused
        assert front_display(sim).value == tuple(COLOR_OFF)
        assert buzzer(sim).value == (0,)

    def test_paused_still_warns_close_obstacles(self):
        sim = self.paused_sim()
        sim.hw.set_obstacle(sim.config.front_sensor_id, 8)
        advance(sim, 1100)

        assert sim.parking.urbanite.is_paused
        assert front_display(sim).value == compute_display_levels(8)
        assert buzzer(sim).value == (compute_buzzer_levels(8),)

    def test_resume(self):
        sim = self.paused_sim()
        press_for(sim, 600)
        advance(sim, 1000)

        assert not sim.parking.urbanite.is_paused
        assert front_display(sim).value == compute_display_levels(FRONT_CM)

    def test_power_off_clears_pause(self):
        sim = self.paused_sim()
        press_for(sim, 3200)
        advance(sim, 1000)
        assert not sim.parking.urbanite.is_paused


class TestLowPower:

    def test_sleeps_while_off(self):
        sim = make_sim()
        advance(sim, 1)
        assert sim.parking.urbanite.state == UrbaniteState.SLEEP_WHILE_OFF
        assert sim.hw.sleep_count == 1

    def test_keeps_sleeping_without_activity(self):
        sim = make_sim()
        advance(sim, 11)
        assert sim.hw.sleep_count == 11

    def test_button_wakes_from_off(self):
        sim = make_sim()
        advance(sim, 5)
        sim.hw.press(sim.config.button_id)
        advance(sim, 1)
        assert sim.parking.urbanite.state == UrbaniteState.OFF

    def test_sleeps_between_measurements(self):
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        assert sim.parking.urbanite.state == UrbaniteState.SLEEP_WHILE_ON_FRONT

    def test_woken_by_new_measurement(self):
        """Sleeping while on, the next published distance is processed."""
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        sim.hw.set_obstacle(sim.config.front_sensor_id, 40)
        advance(sim, 1100)
        assert front_display(sim).value == compute_display_levels(40)

    def test_check_activity_tracks_collaborators(self):
        sim = make_sim()
        assert not sim.parking.urbanite.check_activity()
        sim.hw.press(sim.config.button_id)
        advance(sim, 1)
        assert sim.parking.urbanite.check_activity()


class TestThresholdPriority:
    """Thresholds are independent; the power press wins when ranges overlap."""

    def overlapping_sim(self):
        config = UrbaniteConfig(
            on_off_press_time_ms=800,
            change_press_time_ms=2000,
            pause_display_time_ms=500,
        )
        return make_sim(config=config)

    def test_power_on_with_short_on_off(self):
        sim = self.overlapping_sim()
        advance(sim, 10)
        press_for(sim, 1000)
        assert sim.parking.urbanite.state in AWAKE_FRONT

    def test_power_off_wins_over_pause_and_change(self):
        """A 1000 ms press is in the pause range but also past on/off."""
        sim = self.overlapping_sim()
        advance(sim, 10)
        press_for(sim, 1000)
        advance(sim, 600)
        assert sim.parking.urbanite.state in AWAKE_FRONT

        press_for(sim, 1000)
        advance(sim, 1000)

        urbanite = sim.parking.urbanite
        assert urbanite.state in POWERED_OFF
        assert not urbanite.is_paused
        assert not urbanite.is_rear

    def test_pause_keeps_rear_direction(self):
        """A pause-range press while on the rear gear stays on the rear."""
        sim = make_sim()
        power_on(sim)
        advance(sim, 600)
        press_for(sim, 1200)
        advance(sim, 1000)
        assert sim.parking.urbanite.is_rear

        press_for(sim, 600)
        advance(sim, 1000)

        urbanite = sim.parking.urbanite
        assert urbanite.is_paused
        assert urbanite.is_rear
        assert urbanite.state in AWAKE_REAR
        assert sim.parking.ultrasound_rear.get_status()
        assert not sim.parking.ultrasound_front.get_status()


class TestPowerCycleWithSlowSensor:

    def test_no_stale_distance_after_power_cycle(self):
        """A measurement left unread at power-off is not shown at the next power-on."""
        sim = make_sim(config=UrbaniteConfig(measurement_period_ms=1000))
        power_on(sim)
        advance(sim, 5200)
        press_for(sim, 3200)
        advance(sim, 6000)
        assert sim.parking.urbanite.state in POWERED_OFF

        seen = len(buzzer(sim).history)
        press_for(sim, 3000)
        advance(sim, 50)

        levels = [value for _, value in buzzer(sim).history[seen:]]
        assert levels == [] or set(levels) <= {(0,)}
        assert not sim.parking.ultrasound_front.get_new_measurement_ready()
