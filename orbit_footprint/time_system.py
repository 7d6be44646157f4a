"""
Time System

Continuous time representation shared by the propagator and the frame
transforms. An ``Instant`` is a Julian date split into a whole-day part and
a day fraction, the same split the sgp4 library uses, so sub-millisecond
resolution survives arithmetic on dates decades from J2000.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sgp4.api import jday

from config import JULIAN_DATE_J2000, SECONDS_PER_DAY

_J2000_DATETIME = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

# IAU-82 GMST polynomial coefficients (seconds of time)
_GMST_C0 = 67310.54841
_GMST_C1 = 876600.0 * 3600.0 + 8640184.812866
_GMST_C2 = 0.093104
_GMST_C3 = -6.2e-6


@dataclass(frozen=True, order=True)
class Instant:
    """Absolute UTC instant as a (whole day, fraction) Julian date pair.

    The pair is normalized on construction so that ``jd`` is integral and
    ``0 <= fr < 1``; equal instants therefore compare and hash equal.
    """

    jd: float
    fr: float = 0.0

    def __post_init__(self):
        whole = math.floor(self.jd)
        fr = (self.jd - whole) + self.fr
        carry = math.floor(fr)
        object.__setattr__(self, "jd", float(whole + carry))
        object.__setattr__(self, "fr", fr - carry)

    @property
    def julian_date(self) -> float:
        return self.jd + self.fr

    def __add__(self, seconds):
        if isinstance(seconds, Instant):
            return NotImplemented
        return Instant(self.jd, self.fr + seconds / SECONDS_PER_DAY)

    def __sub__(self, other):
        if isinstance(other, Instant):
            return ((self.jd - other.jd) + (self.fr - other.fr)) * SECONDS_PER_DAY
        return Instant(self.jd, self.fr - other / SECONDS_PER_DAY)

    def __str__(self):
        return to_calendar(self).isoformat()


def now() -> Instant:
    """Current wall-clock time as an Instant."""
    return from_datetime(datetime.now(timezone.utc))


def add_seconds(instant: Instant, seconds: float) -> Instant:
    return instant + seconds


def from_calendar(year: int, month: int, day: int,
                  hour: int = 0, minute: int = 0, second: float = 0.0) -> Instant:
    """Build an Instant from UTC calendar fields."""
    jd, fr = jday(year, month, day, hour, minute, second)
    return Instant(jd, fr)


def from_datetime(dt: datetime) -> Instant:
    """Convert a datetime to an Instant. Naive datetimes are taken as UTC."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    second = dt.second + dt.microsecond / 1e6
    return from_calendar(dt.year, dt.month, dt.day, dt.hour, dt.minute, second)


def to_calendar(instant: Instant) -> datetime:
    """Timezone-aware UTC datetime for an Instant (microsecond resolution)."""
    days = (instant.jd - JULIAN_DATE_J2000) + instant.fr
    return _J2000_DATETIME + timedelta(days=days)


def tle_epoch_to_instant(year: int, day_of_year: float) -> Instant:
    """Convert a four-digit year and fractional day of year (Jan 1 = day 1)."""
    jd, fr = jday(year, 1, 1, 0, 0, 0.0)
    return Instant(jd, fr) + (day_of_year - 1.0) * SECONDS_PER_DAY


def sidereal_angle(instant: Instant) -> float:
    """
    Greenwich Mean Sidereal Time (IAU-82) in radians, in [0, 2*pi).

    This is the Earth rotation angle that takes TEME coordinates produced by
    SGP4 into the Earth-fixed frame.

    Args:
        instant: UT1 instant (UTC is used as an approximation of UT1)

    Returns:
        Sidereal angle in radians
    """
    tut1 = ((instant.jd - JULIAN_DATE_J2000) + instant.fr) / 36525.0
    gmst_sec = (
        _GMST_C0
        + _GMST_C1 * tut1
        + _GMST_C2 * tut1 * tut1
        + _GMST_C3 * tut1 * tut1 * tut1
    )
    # 240 seconds of time per degree
    theta = math.fmod(math.radians(gmst_sec / 240.0), 2.0 * math.pi)
    if theta < 0.0:
        theta += 2.0 * math.pi
    return theta
