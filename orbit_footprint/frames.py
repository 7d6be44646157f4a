"""
Coordinate Frame Transformations

TEME (the inertial frame SGP4 produces) <-> Earth-fixed Cartesian <-> geodetic
latitude/longitude/height on the WGS-84 ellipsoid.

All lengths are kilometers. Renderers that want meters call
``EarthFixedPosition.to_meters()``, which applies METERS_PER_KILOMETER.
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from config import (
    DEGENERATE_POSITION_KM,
    GEODETIC_MAX_ITERATIONS,
    GEODETIC_TOLERANCE,
    METERS_PER_KILOMETER,
    WGS84_ECCENTRICITY_SQ,
    WGS84_SEMI_MAJOR_AXIS_KM,
)
from orbit_footprint.errors import DegenerateFrameInput
from orbit_footprint.time_system import Instant, sidereal_angle

logger = logging.getLogger(__name__)


def wrap_longitude(lon: float) -> float:
    """Normalize a longitude to [-pi, pi)."""
    wrapped = math.fmod(lon + math.pi, 2.0 * math.pi)
    if wrapped < 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


@dataclass(frozen=True)
class GeodeticPosition:
    """Geodetic latitude/longitude [rad] and height above the WGS-84 ellipsoid [km]."""

    latitude: float
    longitude: float
    height: float

    def __post_init__(self):
        if not all(math.isfinite(v) for v in (self.latitude, self.longitude, self.height)):
            raise ValueError(f"Geodetic coordinates must be finite: {self}")
        if abs(self.latitude) > math.pi / 2.0:
            raise ValueError(f"Latitude {self.latitude} rad outside [-pi/2, pi/2]")
        object.__setattr__(self, "longitude", wrap_longitude(self.longitude))

    @classmethod
    def from_degrees(cls, latitude_deg: float, longitude_deg: float, height_km: float) -> "GeodeticPosition":
        return cls(math.radians(latitude_deg), math.radians(longitude_deg), height_km)

    @property
    def latitude_deg(self) -> float:
        return math.degrees(self.latitude)

    @property
    def longitude_deg(self) -> float:
        return math.degrees(self.longitude)


@dataclass(frozen=True)
class EarthFixedPosition:
    """Earth-centered, Earth-fixed Cartesian position [km]."""

    x: float
    y: float
    z: float

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z])

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def to_meters(self) -> Tuple[float, float, float]:
        return (
            self.x * METERS_PER_KILOMETER,
            self.y * METERS_PER_KILOMETER,
            self.z * METERS_PER_KILOMETER,
        )

    @classmethod
    def from_meters(cls, x: float, y: float, z: float) -> "EarthFixedPosition":
        return cls(x / METERS_PER_KILOMETER, y / METERS_PER_KILOMETER, z / METERS_PER_KILOMETER)


def _checked_vector(position: Sequence[float]) -> np.ndarray:
    r = np.asarray(position, dtype=np.float64)
    if r.shape != (3,):
        raise DegenerateFrameInput(f"Expected a 3-component position, got shape {r.shape}")
    if not np.all(np.isfinite(r)):
        raise DegenerateFrameInput(f"Position has non-finite components: {r}")
    if np.linalg.norm(r) < DEGENERATE_POSITION_KM:
        raise DegenerateFrameInput(
            f"Position magnitude {np.linalg.norm(r):.3e} km is below {DEGENERATE_POSITION_KM} km"
        )
    return r


def _rotation_z(angle: float) -> np.ndarray:
    """Frame rotation about +z by ``angle`` (coordinates of a fixed vector in the rotated frame)."""
    c, s = math.cos(angle), math.sin(angle)
    return np.array([
        [c, s, 0.0],
        [-s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])


def inertial_to_earth_fixed(position: Sequence[float], instant: Instant) -> EarthFixedPosition:
    """
    Rotate a TEME position into the Earth-fixed frame.

    Args:
        position: TEME position [x, y, z] (km)
        instant: Time of the position

    Returns:
        EarthFixedPosition in km

    Raises:
        DegenerateFrameInput: for near-zero or non-finite positions
    """
    r = _checked_vector(position)
    r_ecef = _rotation_z(sidereal_angle(instant)) @ r
    return EarthFixedPosition(float(r_ecef[0]), float(r_ecef[1]), float(r_ecef[2]))


def earth_fixed_to_inertial(position: EarthFixedPosition, instant: Instant) -> Tuple[float, float, float]:
    """Inverse of ``inertial_to_earth_fixed``; returns a TEME position tuple in km."""
    r = _checked_vector(position.as_array())
    r_teme = _rotation_z(sidereal_angle(instant)).T @ r
    return float(r_teme[0]), float(r_teme[1]), float(r_teme[2])


def earth_fixed_to_geodetic(position: EarthFixedPosition) -> GeodeticPosition:
    """
    Earth-fixed Cartesian to geodetic latitude, longitude and ellipsoidal height.

    Latitude is iterated to GEODETIC_TOLERANCE (converges geometrically with
    ratio ~e² so a handful of passes suffice). Height uses
    h = p·cos(lat) + z·sin(lat) − a·sqrt(1 − e²·sin²(lat)), which stays
    well-conditioned at the poles where p/cos(lat) does not.
    """
    x, y, z = _checked_vector(position.as_array())
    a = WGS84_SEMI_MAJOR_AXIS_KM
    e2 = WGS84_ECCENTRICITY_SQ

    lon = math.atan2(y, x)
    p = math.hypot(x, y)

    lat = math.atan2(z, p * (1.0 - e2))
    for _ in range(GEODETIC_MAX_ITERATIONS):
        sin_lat = math.sin(lat)
        n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
        new_lat = math.atan2(z + e2 * n * sin_lat, p)
        if abs(new_lat - lat) < GEODETIC_TOLERANCE:
            lat = new_lat
            break
        lat = new_lat
    else:
        logger.debug(f"Geodetic latitude iteration hit {GEODETIC_MAX_ITERATIONS} passes at p={p:.3f}, z={z:.3f}")

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    height = p * cos_lat + z * sin_lat - a * math.sqrt(1.0 - e2 * sin_lat * sin_lat)
    return GeodeticPosition(lat, lon, height)


def inertial_to_geodetic(position: Sequence[float], instant: Instant) -> GeodeticPosition:
    """TEME position at ``instant`` to geodetic coordinates."""
    return earth_fixed_to_geodetic(inertial_to_earth_fixed(position, instant))


def geodetic_to_earth_fixed(geodetic: GeodeticPosition) -> EarthFixedPosition:
    """Geodetic latitude/longitude/height to Earth-fixed Cartesian (km)."""
    a = WGS84_SEMI_MAJOR_AXIS_KM
    e2 = WGS84_ECCENTRICITY_SQ
    sin_lat = math.sin(geodetic.latitude)
    cos_lat = math.cos(geodetic.latitude)
    n = a / math.sqrt(1.0 - e2 * sin_lat * sin_lat)
    return EarthFixedPosition(
        (n + geodetic.height) * cos_lat * math.cos(geodetic.longitude),
        (n + geodetic.height) * cos_lat * math.sin(geodetic.longitude),
        (n * (1.0 - e2) + geodetic.height) * sin_lat,
    )


def local_vertical(geodetic: GeodeticPosition) -> np.ndarray:
    """Outward unit normal of the ellipsoid (local 'up') at a geodetic position."""
    cos_lat = math.cos(geodetic.latitude)
    return np.array([
        cos_lat * math.cos(geodetic.longitude),
        cos_lat * math.sin(geodetic.longitude),
        math.sin(geodetic.latitude),
    ])
