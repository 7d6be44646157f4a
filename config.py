"""
Orbit Footprint Configuration and Constants

This module contains physical constants, numerical limits, sampling defaults
and a fallback element set used throughout the project.

Constants:
    WGS-72 gravitational constants as specified by Vallado et al. (2006, AAS 06-675)
    for use with SGP4 orbital propagation.

    WGS-84 ellipsoid parameters for geodetic latitude/longitude/height.

Units:
    Every length in the package is in kilometers. Visualization consumers that
    work in meters convert with METERS_PER_KILOMETER, never with an inline literal.

Fallback TLE Data:
    Hardcoded ISS TLE data for demonstrations and testing when no element set
    file is given.

    IMPORTANT: Update this TLE data periodically for accuracy.
    - Low Earth Orbit (LEO) satellites: Update weekly
    - Medium Earth Orbit (MEO): Update monthly
    - Geostationary (GEO): Update quarterly

    Current TLE epoch: 2023-09-16

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
from typing import Dict

# WGS-72 Gravitational Constants (per Vallado et al. 2006, AAS 06-675)
EARTH_RADIUS_KM: float = 6378.135  # Earth equatorial radius (km)
GRAVITATIONAL_PARAMETER: float = 398600.8  # Earth gravitational parameter (km³/s²)
J2: float = 0.001082616  # Second zonal harmonic coefficient
J3: float = -0.00000253881  # Third zonal harmonic coefficient
J4: float = -0.00000165597  # Fourth zonal harmonic coefficient
XKE: float = 60.0 / math.sqrt(EARTH_RADIUS_KM ** 3 / GRAVITATIONAL_PARAMETER)  # (earth radii)^1.5 / min

# WGS-84 ellipsoid used for geodetic conversion
WGS84_SEMI_MAJOR_AXIS_KM: float = 6378.137
WGS84_FLATTENING: float = 1.0 / 298.257223563
WGS84_ECCENTRICITY_SQ: float = WGS84_FLATTENING * (2.0 - WGS84_FLATTENING)

# Units
METERS_PER_KILOMETER: float = 1000.0
SECONDS_PER_MINUTE: float = 60.0
MINUTES_PER_DAY: float = 1440.0
SECONDS_PER_DAY: float = 86400.0
JULIAN_DATE_J2000: float = 2451545.0
JULIAN_DATE_1949_12_31: float = 2433281.5  # SGP4 epoch origin for sgp4init

# Numerical limits
KEPLER_MAX_ITERATIONS: int = 10
KEPLER_TOLERANCE: float = 1.0e-12
GEODETIC_MAX_ITERATIONS: int = 20
GEODETIC_TOLERANCE: float = 1.0e-12
DEGENERATE_POSITION_KM: float = 1.0e-3  # positions closer to the geocenter have no usable direction
DEEP_SPACE_PERIOD_MINUTES: float = 225.0

# Trajectory sampling defaults (one hour at 10 s steps, 45 degree sensor)
DEFAULT_DURATION_SECONDS: float = 3600.0
DEFAULT_STEP_SECONDS: float = 10.0
DEFAULT_FOV_DEGREES: float = 45.0

# Fallback ISS TLE for demonstrations and testing
# Last updated: 2023-09-16
FALLBACK_ISS_TLE: Dict[str, str] = {
    'name': 'ISS (ZARYA)',
    'line1': '1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995',
    'line2': '2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598',
}
