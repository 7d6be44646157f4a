"""
Orbit Footprint Demonstration

This script demonstrates the key capabilities of the orbit footprint package:
- TLE parsing and validation
- SGP4 propagation to TEME position and velocity
- TEME to Earth-fixed and geodetic transformation
- Trajectory sampling over a time window
- Sensor footprint area and cone geometry

Usage:
    python demo.py [--tle-file FILE] [--duration S] [--step S] [--fov DEG] [--workers N] [--verbose] [--log-file FILE]

Arguments:
    --tle-file: Element set file (2-line or 3-line format); defaults to the fallback ISS set
    --duration: Sampling window in seconds (default 3600)
    --step: Sampling step in seconds (default 10)
    --fov: Full sensor field of view in degrees (default 45)
    --workers: Thread pool size for sampling
    --verbose: Enable debug logging
    --log-file: Also write the log to this file
"""

import argparse
import logging
from typing import List, Optional

import numpy as np

from config import (
    DEFAULT_DURATION_SECONDS,
    DEFAULT_FOV_DEGREES,
    DEFAULT_STEP_SECONDS,
    FALLBACK_ISS_TLE,
)
from logging_config import configure_logging, get_logger
from orbit_footprint.errors import OrbitFootprintError
from orbit_footprint.footprint import footprint_at, sensor_cone
from orbit_footprint.propagator import Propagator
from orbit_footprint.sampler import TrajectorySample, sample
from orbit_footprint.tle_parser import ElementSet, parse_tle, parse_tle_text

logger = get_logger(__name__)


def demonstrate_tle_parsing(element_set: ElementSet) -> None:
    """Log the parsed element set in TLE units."""
    summary = element_set.summary()
    logger.info(f"Parsed TLE for {summary['name'] or 'unnamed object'}")
    logger.debug(f"Line 1: {element_set.line1}")
    logger.debug(f"Line 2: {element_set.line2}")
    logger.info(f"NORAD ID: {summary['norad_id']}")
    logger.info(f"Epoch: {summary['epoch']}")
    logger.info(f"Inclination: {summary['inclination_deg']:.4f} degrees")
    logger.info(f"RAAN: {summary['raan_deg']:.4f} degrees")
    logger.info(f"Eccentricity: {summary['eccentricity']:.7f}")
    logger.info(f"Mean Motion: {summary['mean_motion_rev_per_day']:.8f} rev/day")
    logger.info(f"Period: {summary['period_minutes']:.2f} min")
    logger.info(f"B* Drag: {summary['bstar_drag']:.8e}")


def demonstrate_propagation(propagator: Propagator) -> None:
    """Propagate at a few offsets from epoch and log TEME positions."""
    time_intervals = [0, 30, 60, 90, 120]  # minutes

    logger.info("Orbital propagation results (TEME coordinates)")

    for tsince in time_intervals:
        result = propagator.propagate_minutes(tsince)
        if not result.ok:
            logger.warning(f"t={tsince:3.0f}min: {type(result.failure).__name__}: {result.failure.message}")
            continue
        state = result.state
        x, y, z = state.position
        logger.info(
            f"t={tsince:3.0f}min: "
            f"x={x:8.2f}km y={y:8.2f}km z={z:8.2f}km "
            f"r={state.radius_km:8.2f}km v={state.speed_km_s:6.3f}km/s"
        )


def demonstrate_track(samples: List[TrajectorySample], nominal_count: int) -> None:
    """Summarize a sampled ground track."""
    logger.info(f"Sampled {len(samples)} of {nominal_count} nominal instants")
    if not samples:
        logger.warning("No valid samples; the object may have decayed")
        return

    heights = np.array([s.geodetic.height for s in samples])
    logger.info(f"Height range: {heights.min():.1f} - {heights.max():.1f} km (mean {heights.mean():.1f} km)")

    stride = max(1, len(samples) // 6)
    for point in samples[::stride]:
        geo = point.geodetic
        area = f"{point.footprint_area_km2:,.0f} km²" if point.footprint_area_km2 is not None else "n/a"
        logger.info(
            f"{point.instant}: lat={geo.latitude_deg:7.2f}° lon={geo.longitude_deg:8.2f}° "
            f"h={geo.height:7.1f}km footprint={area}"
        )


def demonstrate_footprint(last: TrajectorySample, fov_deg: float) -> None:
    """Footprint and sensor cone at the last sample, as a renderer would pull them."""
    footprint = footprint_at(last.position, fov_deg)
    cone = sensor_cone(last.position, fov_deg)
    logger.info(
        f"Footprint at {last.instant}: altitude={footprint.altitude_km:.1f}km "
        f"radius={footprint.radius_km:.2f}km area={footprint.area_km2:,.2f}km²"
    )
    logger.info(
        f"Sensor cone: apex(m)={tuple(round(c) for c in cone.apex.to_meters())} "
        f"axis={tuple(round(c, 4) for c in cone.axis)} half_angle={np.degrees(cone.half_angle_rad):.1f}°"
    )


def load_element_set(tle_file: Optional[str]) -> ElementSet:
    if tle_file is None:
        return parse_tle(FALLBACK_ISS_TLE["line1"], FALLBACK_ISS_TLE["line2"], FALLBACK_ISS_TLE["name"])
    with open(tle_file, encoding="utf-8") as f:
        element_sets = parse_tle_text(f.read())
    if not element_sets:
        raise OrbitFootprintError(f"No element sets found in {tle_file}")
    if len(element_sets) > 1:
        logger.info(f"{tle_file} holds {len(element_sets)} element sets; using the first")
    return element_sets[0]


def main(argv: Optional[List[str]] = None) -> int:
    """Main demonstration entry point."""
    parser = argparse.ArgumentParser(
        description="Orbit Propagation and Sensor Footprint Demonstration"
    )
    parser.add_argument("--tle-file", help="Element set file (2-line or 3-line format)")
    parser.add_argument("--duration", type=float, default=DEFAULT_DURATION_SECONDS, help="Window length in seconds")
    parser.add_argument("--step", type=float, default=DEFAULT_STEP_SECONDS, help="Sampling step in seconds")
    parser.add_argument("--fov", type=float, default=DEFAULT_FOV_DEGREES, help="Full field of view in degrees")
    parser.add_argument("--workers", type=int, default=None, help="Thread pool size for sampling")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write the log to this file")

    args = parser.parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=args.log_file,
        package_level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    logger.info("Orbit Propagation and Sensor Footprint Demonstration")
    logger.info("=" * 60)

    try:
        element_set = load_element_set(args.tle_file)
    except (OSError, OrbitFootprintError) as e:
        logger.error(f"Could not load element set: {e}")
        return 1

    demonstrate_tle_parsing(element_set)

    propagator = Propagator(element_set)
    logger.info("")
    demonstrate_propagation(propagator)

    logger.info("")
    try:
        samples = sample(
            propagator, element_set.epoch, args.duration, args.step,
            full_fov_deg=args.fov, max_workers=args.workers,
        )
    except ValueError as e:
        logger.error(f"Invalid sampling request: {e}")
        return 1
    nominal_count = int(np.ceil(args.duration / args.step))
    demonstrate_track(samples, nominal_count)

    if samples:
        logger.info("")
        try:
            demonstrate_footprint(samples[-1], args.fov)
        except OrbitFootprintError as e:
            logger.error(f"Footprint unavailable: {e}")
            return 1

    logger.info("=" * 60)
    logger.info("Demonstration complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
