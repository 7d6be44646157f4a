"""
Orbit Footprint Package

Locates an orbiting object from its two-line element set and derives the
ground footprint of a sensor pointed at it.

Modules:
    time_system: Julian-date instants, calendar conversion, sidereal angle
    tle_parser: Two-line element set parsing and validation
    propagator: SGP4 propagation to TEME position/velocity
    frames: TEME / Earth-fixed / geodetic conversions
    sampler: Time-window trajectory sampling
    footprint: Flat tangent-plane sensor footprint and cone geometry
    errors: Error taxonomy

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

from orbit_footprint.errors import (
    AnomalyDivergence,
    Decayed,
    DegenerateFrameInput,
    FailureKind,
    InvalidAltitude,
    InvalidEccentricity,
    InvalidFieldOfView,
    MalformedElementSet,
    OrbitFootprintError,
    PropagationFailure,
)
from orbit_footprint.footprint import (
    Footprint,
    SensorCone,
    compute_footprint,
    footprint_area,
    footprint_at,
    sensor_cone,
    validate_field_of_view,
)
from orbit_footprint.frames import (
    EarthFixedPosition,
    GeodeticPosition,
    earth_fixed_to_geodetic,
    earth_fixed_to_inertial,
    geodetic_to_earth_fixed,
    inertial_to_earth_fixed,
    inertial_to_geodetic,
)
from orbit_footprint.propagator import InertialState, PropagationResult, Propagator, propagate
from orbit_footprint.sampler import TrajectorySample, nearest_sample, sample, sample_from_earth_fixed
from orbit_footprint.time_system import (
    Instant,
    add_seconds,
    from_calendar,
    from_datetime,
    now,
    sidereal_angle,
    to_calendar,
)
from orbit_footprint.tle_parser import ElementSet, compute_checksum, parse_tle, parse_tle_text

__version__ = "1.0.0"
