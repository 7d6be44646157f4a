"""
Sensor Footprint Geometry

Circular ground footprint of a nadir-pointing sensor with a given full field
of view, using the flat local tangent-plane approximation:

    radius = altitude * tan(fov / 2)
    area   = pi * radius²

The approximation ignores Earth curvature, so it underestimates the true
spherical-cap footprint when the field of view is wide or the altitude is a
sizeable fraction of the Earth radius.
"""

import math
from dataclasses import dataclass

import numpy as np

from orbit_footprint.errors import InvalidAltitude, InvalidFieldOfView
from orbit_footprint.frames import EarthFixedPosition, earth_fixed_to_geodetic, local_vertical


@dataclass(frozen=True)
class Footprint:
    """Ground footprint of a sensor [km, km², rad]."""

    altitude_km: float
    half_angle_rad: float
    radius_km: float
    area_km2: float


@dataclass(frozen=True)
class SensorCone:
    """Cone geometry for a renderer: apex at the satellite, axis along the local downward vertical."""

    apex: EarthFixedPosition
    axis: tuple             # unit vector, Earth-fixed, pointing down
    half_angle_rad: float
    radius_km: float        # footprint radius where the cone meets the ground
    length_km: float        # apex to ground along the axis (the altitude)


def validate_field_of_view(full_fov_deg: float) -> float:
    """Check a full FOV angle in degrees and return the half angle in radians."""
    if not math.isfinite(full_fov_deg) or full_fov_deg <= 0.0 or full_fov_deg >= 180.0:
        raise InvalidFieldOfView(f"Full field of view must lie in (0, 180) degrees, got {full_fov_deg}")
    return math.radians(full_fov_deg / 2.0)


def compute_footprint(altitude_km: float, full_fov_deg: float) -> Footprint:
    """
    Footprint radius and area for a sensor at ``altitude_km`` with a full FOV angle.

    Raises:
        InvalidAltitude: altitude not finite or not positive
        InvalidFieldOfView: FOV not finite or outside (0, 180) degrees
    """
    if not math.isfinite(altitude_km) or altitude_km <= 0.0:
        raise InvalidAltitude(f"Altitude must be a positive number of kilometers, got {altitude_km}")
    half_angle = validate_field_of_view(full_fov_deg)
    radius = altitude_km * math.tan(half_angle)
    return Footprint(
        altitude_km=altitude_km,
        half_angle_rad=half_angle,
        radius_km=radius,
        area_km2=math.pi * radius * radius,
    )


def footprint_area(altitude_km: float, full_fov_deg: float) -> float:
    """Footprint area in km²."""
    return compute_footprint(altitude_km, full_fov_deg).area_km2


def footprint_at(position: EarthFixedPosition, full_fov_deg: float) -> Footprint:
    """Footprint below any Earth-fixed position, using its height above the ellipsoid."""
    return compute_footprint(earth_fixed_to_geodetic(position).height, full_fov_deg)


def sensor_cone(position: EarthFixedPosition, full_fov_deg: float) -> SensorCone:
    """Cone parameters for drawing the sensor field of view from ``position``."""
    geodetic = earth_fixed_to_geodetic(position)
    footprint = compute_footprint(geodetic.height, full_fov_deg)
    axis = -local_vertical(geodetic)
    axis = axis / np.linalg.norm(axis)
    return SensorCone(
        apex=position,
        axis=tuple(float(c) for c in axis),
        half_angle_rad=footprint.half_angle_rad,
        radius_km=footprint.radius_km,
        length_km=footprint.altitude_km,
    )
