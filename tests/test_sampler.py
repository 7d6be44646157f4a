"""
Unit Tests for the Trajectory Sampler

Run with:
    python -m pytest tests/test_sampler.py -v
"""

import math
import threading
import unittest

from orbit_footprint.errors import Decayed, InvalidFieldOfView
from orbit_footprint.footprint import footprint_area
from orbit_footprint.frames import EarthFixedPosition, GeodeticPosition, geodetic_to_earth_fixed
from orbit_footprint.propagator import PropagationResult, Propagator
from orbit_footprint.sampler import TrajectorySample, nearest_sample, sample, sample_from_earth_fixed
from orbit_footprint.time_system import Instant
from orbit_footprint.tle_parser import parse_tle

ISS_TLE = (
    "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995",
    "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598",
)
DECAYED_TLE = (
    "1 99999U 24001A   24001.50000000  .00000000  00000-0  00000-0 0  9994",
    "2 99999  51.6000 100.0000 0001000  90.0000 270.0000 17.50000000    13",
)


class CancellingPropagator(Propagator):
    """Sets an event after a fixed number of propagations."""

    def __init__(self, elements, event, after):
        super().__init__(elements)
        self.event = event
        self.after = after
        self.calls = 0

    def propagate(self, instant):
        self.calls += 1
        if self.calls >= self.after:
            self.event.set()
        return super().propagate(instant)


class GapPropagator(Propagator):
    """Fails for instants 100 s to 200 s after a reference instant."""

    def __init__(self, elements, start):
        super().__init__(elements)
        self.start = start

    def propagate(self, instant):
        if 100.0 - 1e-6 <= instant - self.start < 200.0 - 1e-6:
            return PropagationResult(failure=Decayed("simulated outage", 0.0))
        return super().propagate(instant)


class TestSample(unittest.TestCase):
    """Test trajectory sampling over a window."""

    def setUp(self):
        self.elements = parse_tle(*ISS_TLE, name="ISS")
        self.start = self.elements.epoch

    def test_one_hour_at_ten_seconds(self):
        samples = sample(self.elements, self.start, 3600.0, 10.0)
        self.assertEqual(len(samples), 360)
        self.assertEqual(samples[0].instant, self.start)
        for previous, current in zip(samples, samples[1:]):
            self.assertLess(previous.instant, current.instant)
            self.assertAlmostEqual(current.instant - previous.instant, 10.0, places=6)
        self.assertAlmostEqual(samples[-1].instant - self.start, 3590.0, places=6)

    def test_samples_are_physical(self):
        samples = sample(self.elements, self.start, 6000.0, 60.0)
        for point in samples:
            self.assertTrue(350.0 < point.geodetic.height < 450.0)
            self.assertLess(abs(point.geodetic.latitude_deg), 52.0)
            self.assertIsNone(point.footprint_area_km2)
        # One orbit reaches close to the inclination in both hemispheres
        latitudes = [p.geodetic.latitude_deg for p in samples]
        self.assertGreater(max(latitudes), 50.0)
        self.assertLess(min(latitudes), -50.0)

    def test_earth_fixed_round_trip_through_geodetic(self):
        """Propagated positions survive Earth-fixed -> geodetic -> Earth-fixed to within 1 m."""
        samples = sample(self.elements, self.start, 6000.0, 10.0)
        self.assertEqual(len(samples), 600)
        for point in samples:
            back = geodetic_to_earth_fixed(point.geodetic)
            self.assertLess(math.dist(back.as_array(), point.position.as_array()), 1e-3)

    def test_footprint_attached(self):
        samples = sample(self.elements, self.start, 60.0, 10.0, full_fov_deg=45.0)
        for point in samples:
            self.assertAlmostEqual(point.footprint_area_km2, footprint_area(point.geodetic.height, 45.0))

    def test_window_edges(self):
        self.assertEqual(len(sample(self.elements, self.start, 25.0, 10.0)), 3)
        self.assertEqual(len(sample(self.elements, self.start, 30.0, 10.0)), 3)
        self.assertEqual(len(sample(self.elements, self.start, 5.0, 10.0)), 1)
        self.assertEqual(sample(self.elements, self.start, 0.0, 10.0), [])

    def test_invalid_window(self):
        for duration, step in ((60.0, 0.0), (60.0, -1.0), (60.0, float("nan")), (-1.0, 10.0), (float("inf"), 10.0)):
            with self.subTest(duration=duration, step=step):
                with self.assertRaises(ValueError):
                    sample(self.elements, self.start, duration, step)

    def test_invalid_field_of_view(self):
        with self.assertRaises(InvalidFieldOfView):
            sample(self.elements, self.start, 60.0, 10.0, full_fov_deg=0.0)

    def test_decayed_object_gives_empty_track(self):
        elements = parse_tle(*DECAYED_TLE)
        self.assertEqual(sample(elements, elements.epoch, 600.0, 10.0), [])

    def test_failed_instants_skipped(self):
        propagator = GapPropagator(self.elements, self.start)
        samples = sample(propagator, self.start, 600.0, 10.0)
        self.assertEqual(len(samples), 50)
        offsets = [round(s.instant - self.start) for s in samples]
        self.assertNotIn(150, offsets)
        self.assertIn(90, offsets)
        self.assertIn(200, offsets)

    def test_accepts_propagator(self):
        propagator = Propagator(self.elements)
        self.assertEqual(
            sample(propagator, self.start, 120.0, 10.0),
            sample(self.elements, self.start, 120.0, 10.0),
        )

    def test_parallel_matches_sequential(self):
        sequential = sample(self.elements, self.start, 1800.0, 10.0, full_fov_deg=30.0)
        parallel = sample(self.elements, self.start, 1800.0, 10.0, full_fov_deg=30.0, max_workers=4)
        self.assertEqual(parallel, sequential)

    def test_cancel_before_start(self):
        cancel = threading.Event()
        cancel.set()
        self.assertEqual(sample(self.elements, self.start, 600.0, 10.0, cancel=cancel), [])
        self.assertEqual(sample(self.elements, self.start, 600.0, 10.0, max_workers=4, cancel=cancel), [])

    def test_cancel_mid_sweep(self):
        cancel = threading.Event()
        propagator = CancellingPropagator(self.elements, cancel, after=5)
        samples = sample(propagator, self.start, 600.0, 10.0, cancel=cancel)
        self.assertEqual(len(samples), 5)
        self.assertEqual(propagator.calls, 5)


class TestHelpers(unittest.TestCase):
    """Test nearest-sample lookup and externally supplied positions."""

    def setUp(self):
        position = geodetic_to_earth_fixed(GeodeticPosition.from_degrees(0.0, 0.0, 400.0))
        self.samples = [
            sample_from_earth_fixed(Instant(2460000.0, fr), position)
            for fr in (0.25, 0.5, 0.75)
        ]

    def test_nearest_sample(self):
        first, second, third = self.samples
        self.assertIs(nearest_sample(self.samples, Instant(2460000.0, 0.3)), first)
        self.assertIs(nearest_sample(self.samples, Instant(2460000.0, 0.45)), second)
        self.assertIs(nearest_sample(self.samples, Instant(2460000.0, 0.5)), second)
        self.assertIs(nearest_sample(self.samples, Instant(2459999.0, 0.0)), first)
        self.assertIs(nearest_sample(self.samples, Instant(2460001.0, 0.0)), third)

    def test_nearest_sample_tie_goes_earlier(self):
        self.assertIs(nearest_sample(self.samples, Instant(2460000.0, 0.375)), self.samples[0])

    def test_nearest_sample_empty(self):
        self.assertIsNone(nearest_sample([], Instant(2460000.0, 0.0)))

    def test_sample_from_earth_fixed(self):
        instant = Instant(2460000.0, 0.5)
        position = geodetic_to_earth_fixed(GeodeticPosition.from_degrees(45.0, -75.0, 700.0))
        point = sample_from_earth_fixed(instant, position, full_fov_deg=20.0)
        self.assertIsInstance(point, TrajectorySample)
        self.assertAlmostEqual(point.geodetic.latitude_deg, 45.0, places=9)
        self.assertAlmostEqual(point.geodetic.height, 700.0, places=6)
        self.assertAlmostEqual(point.footprint_area_km2, footprint_area(700.0, 20.0), places=3)

    def test_sample_below_surface_has_no_area(self):
        point = sample_from_earth_fixed(Instant(2460000.0, 0.5), EarthFixedPosition(6000.0, 0.0, 0.0), 45.0)
        self.assertIsNone(point.footprint_area_km2)
        self.assertLess(point.geodetic.height, 0.0)


if __name__ == "__main__":
    unittest.main()
