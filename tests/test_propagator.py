"""
Unit Tests for the SGP4 Propagator

Validates the near-Earth implementation against the published Vallado test
vector and against the sgp4 library over a spread of times, and checks that
each failure mode comes back as data.

Run with:
    python -m pytest tests/test_propagator.py -v
"""

import dataclasses
import math
import unittest
from unittest import mock

from sgp4.api import Satrec

from orbit_footprint.errors import (
    AnomalyDivergence,
    Decayed,
    FailureKind,
    InvalidEccentricity,
    PropagationFailure,
)
from orbit_footprint.propagator import PropagationResult, Propagator, propagate
from orbit_footprint.tle_parser import parse_tle

ISS_TLE = (
    "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995",
    "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598",
)
VANGUARD_TLE = (
    "1 00005U 58002B   00179.78495062  .00000023  00000-0  28098-4 0  4753",
    "2 00005  34.2682 348.7242 1859667 331.7664  19.3264 10.82419157413667",
)
# Perigee near 207 km: exercises the simplified drag branch
LOW_PERIGEE_TLE = (
    "1 90001U 24001B   24100.25000000  .00050000  00000-0  30000-3 0  9992",
    "2 90001  97.5000  10.0000 0100000  45.0000 315.0000 16.00000000    11",
)
# 12.6 hour Molniya-type orbit
DEEP_SPACE_TLE = (
    "1 11801U          80230.29629788  .01431103  00000-0  14311-1 0    13",
    "2 11801  46.7916 230.4354 7318036  47.4722  10.4117  2.28537848    13",
)
# Mean motion puts the semi-major axis inside the Earth
DECAYED_TLE = (
    "1 99999U 24001A   24001.50000000  .00000000  00000-0  00000-0 0  9994",
    "2 99999  51.6000 100.0000 0001000  90.0000 270.0000 17.50000000    13",
)

TIMES_MINUTES = [-1440.0, -60.0, 0.0, 1.0, 45.5, 360.0, 720.0, 1440.0, 4320.0]


def assert_vector_close(test, actual, expected, tolerance):
    for a, e in zip(actual, expected):
        test.assertLess(abs(a - e), tolerance, f"{actual} vs {expected}")


class TestNearEarthPropagation(unittest.TestCase):
    """Test the near-Earth SGP4 implementation."""

    def test_vallado_reference_vector(self):
        """Satellite 00005 at epoch, from the Vallado (2006) verification set."""
        propagator = Propagator(parse_tle(*VANGUARD_TLE))
        state = propagator.propagate_minutes(0.0).unwrap()
        assert_vector_close(self, state.position, (7022.46529266, -1400.08296755, 0.03995155), 1e-3)
        assert_vector_close(self, state.velocity, (1.893841015, 6.405893759, 4.534807250), 1e-6)

    def test_matches_sgp4_library(self):
        """Positions agree with the sgp4 library to well under a meter."""
        for lines in (ISS_TLE, VANGUARD_TLE, LOW_PERIGEE_TLE):
            propagator = Propagator(parse_tle(*lines))
            reference = Satrec.twoline2rv(*lines)
            self.assertFalse(propagator.deep_space)
            for tsince in TIMES_MINUTES:
                with self.subTest(satnum=propagator.elements.satnum, tsince=tsince):
                    error, r_ref, v_ref = reference.sgp4_tsince(tsince)
                    self.assertEqual(error, 0)
                    state = propagator.propagate_minutes(tsince).unwrap()
                    assert_vector_close(self, state.position, r_ref, 1e-5)
                    assert_vector_close(self, state.velocity, v_ref, 1e-8)

    def test_iss_orbit_is_physical(self):
        propagator = Propagator(parse_tle(*ISS_TLE))
        for tsince in range(0, 1440, 30):
            state = propagator.propagate_minutes(tsince).unwrap()
            self.assertTrue(6700.0 < state.radius_km < 6850.0)
            self.assertTrue(7.5 < state.speed_km_s < 7.8)

    def test_deterministic(self):
        """Same inputs give bit-identical outputs, across instances too."""
        elements = parse_tle(*ISS_TLE)
        first = Propagator(elements).propagate_minutes(123.456)
        second = Propagator(elements).propagate_minutes(123.456)
        self.assertEqual(first, second)
        self.assertEqual(first.state.position, second.state.position)

    def test_propagate_by_instant(self):
        elements = parse_tle(*ISS_TLE)
        propagator = Propagator(elements)
        by_instant = propagate(elements, elements.epoch + 3600.0).unwrap()
        by_minutes = propagator.propagate_minutes(60.0).unwrap()
        self.assertAlmostEqual(by_instant.tsince_minutes, 60.0, places=6)
        assert_vector_close(self, by_instant.position, by_minutes.position, 1e-6)
        self.assertEqual(by_minutes.instant, elements.epoch + 3600.0)

    def test_result_holds_exactly_one_outcome(self):
        result = Propagator(parse_tle(*ISS_TLE)).propagate_minutes(10.0)
        self.assertIsInstance(result, PropagationResult)
        self.assertTrue(result.ok)
        self.assertIsNone(result.failure)
        self.assertIsNotNone(result.state)


class TestDeepSpacePropagation(unittest.TestCase):
    """Deep-space orbits go through the sgp4 library."""

    def test_flags(self):
        elements = parse_tle(*DEEP_SPACE_TLE)
        self.assertTrue(elements.is_deep_space)
        self.assertTrue(Propagator(elements).deep_space)
        self.assertFalse(Propagator(parse_tle(*ISS_TLE)).deep_space)

    def test_matches_sgp4_library(self):
        propagator = Propagator(parse_tle(*DEEP_SPACE_TLE))
        reference = Satrec.twoline2rv(*DEEP_SPACE_TLE)
        for tsince in (0.0, 720.0, 1440.0):
            with self.subTest(tsince=tsince):
                error, r_ref, v_ref = reference.sgp4_tsince(tsince)
                self.assertEqual(error, 0)
                state = propagator.propagate_minutes(tsince).unwrap()
                assert_vector_close(self, state.position, r_ref, 1e-3)
                assert_vector_close(self, state.velocity, v_ref, 1e-6)

    def test_repeated_calls_do_not_share_state(self):
        """Going forward then back gives the same answer as going back directly."""
        propagator = Propagator(parse_tle(*DEEP_SPACE_TLE))
        direct = propagator.propagate_minutes(60.0).unwrap()
        propagator.propagate_minutes(1440.0)
        again = propagator.propagate_minutes(60.0).unwrap()
        self.assertEqual(direct.position, again.position)


class TestPropagationFailures(unittest.TestCase):
    """Failures are returned, not raised."""

    def test_decayed(self):
        result = Propagator(parse_tle(*DECAYED_TLE)).propagate_minutes(0.0)
        self.assertFalse(result.ok)
        self.assertIsNone(result.state)
        self.assertIsInstance(result.failure, Decayed)
        self.assertEqual(result.failure.kind, FailureKind.DECAYED)
        self.assertEqual(result.failure.tsince_minutes, 0.0)
        with self.assertRaises(Decayed):
            result.unwrap()

    def test_library_agrees_object_decayed(self):
        error, _, _ = Satrec.twoline2rv(*DECAYED_TLE).sgp4_tsince(0.0)
        self.assertEqual(error, 6)

    def test_invalid_eccentricity(self):
        """An absurd drag term drives the eccentricity past 1."""
        elements = dataclasses.replace(parse_tle(*LOW_PERIGEE_TLE), bstar=-1000.0)
        result = Propagator(elements).propagate_minutes(100.0)
        self.assertIsInstance(result.failure, InvalidEccentricity)
        self.assertEqual(result.failure.kind, FailureKind.INVALID_ECCENTRICITY)

    def test_anomaly_divergence(self):
        propagator = Propagator(parse_tle(*VANGUARD_TLE))
        with mock.patch("orbit_footprint.propagator.KEPLER_MAX_ITERATIONS", 1):
            result = propagator.propagate_minutes(0.0)
        self.assertIsInstance(result.failure, AnomalyDivergence)
        self.assertEqual(result.failure.kind, FailureKind.ANOMALY_DIVERGENCE)
        self.assertTrue(propagator.propagate_minutes(0.0).ok)

    def test_failures_share_a_base(self):
        for failure_type in (Decayed, InvalidEccentricity, AnomalyDivergence):
            self.assertTrue(issubclass(failure_type, PropagationFailure))

    def test_failure_message_mentions_time(self):
        failure = Propagator(parse_tle(*DECAYED_TLE)).propagate_minutes(30.0).failure
        self.assertIn("t=30.0", failure.message)
        self.assertTrue(math.isclose(failure.tsince_minutes, 30.0))


if __name__ == "__main__":
    unittest.main()
