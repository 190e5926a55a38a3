"""Tests for the activation evaluator."""
import unittest
from datetime import datetime, time

from custom_components.timer24h.const import LOGIC_AND, LOGIC_OR
from custom_components.timer24h.evaluator import ActivationEvaluator, sensor_contribution
from custom_components.timer24h.grid import TimeSlotGrid
from custom_components.timer24h.types import Timer24hConfig

ISSUR = "binary_sensor.jewish_calendar_issur_melacha_in_effect"


def _evaluator(*armed, sensors=(), logic=LOGIC_OR):
    grid = TimeSlotGrid()
    for hour, minute in armed:
        grid.toggle(hour, minute)
    config = Timer24hConfig(home_sensors=tuple(sensors), home_logic=logic)
    return ActivationEvaluator(grid, config)


class TestCurrentSlot(unittest.TestCase):

    def test_every_minute_maps_to_its_slot(self):
        evaluator = _evaluator()
        for minute_of_day in range(1440):
            clock = time(minute_of_day // 60, minute_of_day % 60)
            slot = evaluator.current_slot(clock)
            self.assertTrue(slot.contains(minute_of_day), clock)

    def test_boundaries(self):
        evaluator = _evaluator()
        self.assertEqual(evaluator.current_slot(time(10, 29, 59)).label, "10:00")
        self.assertEqual(evaluator.current_slot(time(10, 30)).label, "10:30")
        self.assertEqual(evaluator.current_slot(time(23, 59, 59)).label, "23:30")
        self.assertEqual(evaluator.current_slot(time(0, 0)).label, "00:00")

    def test_accepts_datetime(self):
        evaluator = _evaluator((14, 30))
        self.assertTrue(evaluator.schedule_verdict(datetime(2024, 5, 1, 14, 45)))
        self.assertFalse(evaluator.schedule_verdict(datetime(2024, 5, 1, 14, 15)))


class TestSensorVerdict(unittest.TestCase):

    def test_no_sensors_means_schedule_only(self):
        evaluator = _evaluator((8, 0))
        result = evaluator.evaluate({}, time(8, 10))
        self.assertTrue(result.active)
        self.assertTrue(result.sensors_active)

    def test_or_logic(self):
        evaluator = _evaluator((8, 0), sensors=["person.a", "person.b"], logic=LOGIC_OR)
        self.assertTrue(evaluator.sensor_verdict({"person.a": "not_home", "person.b": "home"}))
        self.assertFalse(evaluator.sensor_verdict({"person.a": "not_home", "person.b": "away"}))

    def test_and_logic(self):
        evaluator = _evaluator((8, 0), sensors=["person.a", "binary_sensor.b"], logic=LOGIC_AND)
        self.assertTrue(evaluator.sensor_verdict({"person.a": "home", "binary_sensor.b": "on"}))
        self.assertFalse(evaluator.sensor_verdict({"person.a": "home", "binary_sensor.b": "off"}))

    def test_missing_sensor_counts_as_absent(self):
        evaluator = _evaluator((8, 0), sensors=["person.a"], logic=LOGIC_AND)
        self.assertFalse(evaluator.sensor_verdict({}))

    def test_schedule_is_a_hard_gate(self):
        evaluator = _evaluator((8, 0), sensors=["person.a"])
        result = evaluator.evaluate({"person.a": "home"}, time(9, 0))
        self.assertFalse(result.active)
        self.assertFalse(result.schedule_active)
        self.assertTrue(result.sensors_active)


class TestSensorContribution(unittest.TestCase):

    def test_presence_tokens(self):
        for state in ("on", "home", "true", "active", "detected", "HOME"):
            self.assertTrue(sensor_contribution("sensor.x", state), state)
        for state in ("off", "not_home", "unavailable", "unknown"):
            self.assertFalse(sensor_contribution("sensor.x", state), state)
        self.assertFalse(sensor_contribution("sensor.x", None))

    def test_restriction_sensor_only_counts_on(self):
        self.assertTrue(sensor_contribution(ISSUR, "on"))
        self.assertFalse(sensor_contribution(ISSUR, "off"))
        self.assertFalse(sensor_contribution(ISSUR, "home"))


if __name__ == "__main__":
    unittest.main()
