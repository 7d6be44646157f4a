"""
Trajectory Sampler

Propagates an element set across a time window at a fixed step and returns
the Earth-fixed track as an ordered list of samples. Instants that fail to
propagate or transform are left out, so callers must not assume uniform
spacing. Each instant is independent; sampling can fan out over a thread
pool and results are merged back in instant order.
"""

import bisect
import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from orbit_footprint.errors import DegenerateFrameInput, InvalidAltitude
from orbit_footprint.footprint import footprint_area, validate_field_of_view
from orbit_footprint.frames import (
    EarthFixedPosition,
    GeodeticPosition,
    earth_fixed_to_geodetic,
    inertial_to_earth_fixed,
)
from orbit_footprint.propagator import Propagator
from orbit_footprint.time_system import Instant
from orbit_footprint.tle_parser import ElementSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrajectorySample:
    """One point of a sampled track."""

    instant: Instant
    position: EarthFixedPosition
    geodetic: GeodeticPosition
    footprint_area_km2: Optional[float] = None


def _area_or_none(height_km: float, full_fov_deg: Optional[float]) -> Optional[float]:
    if full_fov_deg is None:
        return None
    try:
        return footprint_area(height_km, full_fov_deg)
    except InvalidAltitude:
        return None


def sample_from_earth_fixed(instant: Instant, position: EarthFixedPosition,
                            full_fov_deg: Optional[float] = None) -> TrajectorySample:
    """Wrap an externally supplied Earth-fixed position as a sample."""
    geodetic = earth_fixed_to_geodetic(position)
    return TrajectorySample(instant, position, geodetic, _area_or_none(geodetic.height, full_fov_deg))


def _sample_instant(propagator: Propagator, instant: Instant,
                    full_fov_deg: Optional[float],
                    cancel: Optional[threading.Event]) -> Optional[TrajectorySample]:
    if cancel is not None and cancel.is_set():
        return None
    result = propagator.propagate(instant)
    if not result.ok:
        return None
    try:
        position = inertial_to_earth_fixed(result.state.position, instant)
        return sample_from_earth_fixed(instant, position, full_fov_deg)
    except DegenerateFrameInput as e:
        logger.debug(f"Skipping {instant}: {e}")
        return None


def sample(record: Union[ElementSet, Propagator], start: Instant,
           duration_seconds: float, step_seconds: float,
           full_fov_deg: Optional[float] = None,
           max_workers: Optional[int] = None,
           cancel: Optional[threading.Event] = None) -> List[TrajectorySample]:
    """
    Sample the Earth-fixed track over [start, start + duration).

    Args:
        record: Element set, or a Propagator already built from one
        start: First instant (always included when it propagates)
        duration_seconds: Window length; the end instant is excluded
        step_seconds: Spacing between nominal instants, > 0
        full_fov_deg: If given, attach the footprint area at each sample's height
            (InvalidFieldOfView is raised before any propagation)
        max_workers: Thread pool size; None or 1 samples sequentially
        cancel: Event checked before each instant; once set, the sweep stops
            and the samples computed so far are returned

    Returns:
        Samples ordered by instant; failed instants are omitted
    """
    if not math.isfinite(step_seconds) or step_seconds <= 0.0:
        raise ValueError(f"step_seconds must be positive, got {step_seconds}")
    if not math.isfinite(duration_seconds) or duration_seconds < 0.0:
        raise ValueError(f"duration_seconds must be non-negative, got {duration_seconds}")
    if full_fov_deg is not None:
        validate_field_of_view(full_fov_deg)

    propagator = record if isinstance(record, Propagator) else Propagator(record)
    count = math.ceil(duration_seconds / step_seconds)
    instants = [start + k * step_seconds for k in range(count) if k * step_seconds < duration_seconds]

    if max_workers is None or max_workers <= 1:
        samples = []
        for instant in instants:
            if cancel is not None and cancel.is_set():
                logger.info(f"Sampling cancelled after {len(samples)} samples")
                break
            point = _sample_instant(propagator, instant, full_fov_deg, None)
            if point is not None:
                samples.append(point)
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            points = list(executor.map(
                lambda t: _sample_instant(propagator, t, full_fov_deg, cancel), instants
            ))
        samples = [p for p in points if p is not None]

    skipped = len(instants) - len(samples)
    if skipped:
        logger.debug(f"Satellite {propagator.elements.satnum}: {skipped} of {len(instants)} instants skipped")
    return samples


def nearest_sample(samples: Sequence[TrajectorySample], instant: Instant) -> Optional[TrajectorySample]:
    """
    Sample closest in time to ``instant``; ties go to the earlier sample.

    ``samples`` must be ordered by instant, as ``sample`` returns them.
    """
    if not samples:
        return None
    instants = [s.instant for s in samples]
    i = bisect.bisect_left(instants, instant)
    if i == 0:
        return samples[0]
    if i == len(samples):
        return samples[-1]
    before, after = samples[i - 1], samples[i]
    if instant - before.instant <= after.instant - instant:
        return before
    return after
