"""
TLE Parser Module

Parses Two-Line Element (TLE) sets into an immutable ``ElementSet`` record.

All unit conversion happens here, once: angles go from degrees to radians and
mean motion from revolutions per day to radians per minute, which is what the
propagator consumes. Any length, checksum or field error raises
``MalformedElementSet`` and no partial record is produced.

Field columns follow the NORAD two-line format (1-based, inclusive):

    Line 1: 1 line no., 3-7 catalog no., 8 classification, 10-17 designator,
            19-20 epoch year, 21-32 epoch day, 34-43 ndot/2, 45-52 nddot/6,
            54-61 B*, 63 ephemeris type, 65-68 element no., 69 checksum
    Line 2: 1 line no., 3-7 catalog no., 9-16 inclination, 18-25 RAAN,
            27-33 eccentricity, 35-42 arg. of perigee, 44-51 mean anomaly,
            53-63 mean motion, 64-68 revolution no., 69 checksum
"""

import logging
import math
from dataclasses import dataclass
from typing import List

from config import DEEP_SPACE_PERIOD_MINUTES, MINUTES_PER_DAY
from orbit_footprint.errors import MalformedElementSet
from orbit_footprint.time_system import Instant, tle_epoch_to_instant

logger = logging.getLogger(__name__)

TLE_LINE_LENGTH = 69
XPDOTP = MINUTES_PER_DAY / (2.0 * math.pi)  # rev/day per rad/min


@dataclass(frozen=True)
class ElementSet:
    """Parsed Two-Line Element set in propagator units."""

    name: str
    satnum: int
    classification: str
    intl_designator: str
    epoch_year: int             # four-digit year
    epoch_days: float           # fractional day of year, Jan 1 = 1.0
    epoch: Instant
    ndot: float                 # [rad/min²]
    nddot: float                # [rad/min³]
    bstar: float                # B* drag term [1/earth radii]
    element_number: int
    inclination: float          # [rad]
    raan: float                 # [rad]
    eccentricity: float
    arg_perigee: float          # [rad]
    mean_anomaly: float         # [rad]
    mean_motion: float          # Kozai mean motion [rad/min]
    revolution_number: int
    line1: str
    line2: str

    @property
    def mean_motion_rev_per_day(self) -> float:
        return self.mean_motion * XPDOTP

    @property
    def period_minutes(self) -> float:
        return 2.0 * math.pi / self.mean_motion

    @property
    def is_deep_space(self) -> bool:
        """Rough period test on the Kozai mean motion; the propagator decides with the un-Kozai value."""
        return self.period_minutes >= DEEP_SPACE_PERIOD_MINUTES

    def summary(self) -> dict:
        """Human-oriented view in TLE units, for logging and display."""
        return {
            "name": self.name,
            "norad_id": self.satnum,
            "epoch": str(self.epoch),
            "inclination_deg": math.degrees(self.inclination),
            "raan_deg": math.degrees(self.raan),
            "eccentricity": self.eccentricity,
            "arg_perigee_deg": math.degrees(self.arg_perigee),
            "mean_anomaly_deg": math.degrees(self.mean_anomaly),
            "mean_motion_rev_per_day": self.mean_motion_rev_per_day,
            "bstar_drag": self.bstar,
            "period_minutes": self.period_minutes,
        }


def compute_checksum(line: str) -> int:
    """Calculate TLE checksum over the first 68 columns."""
    checksum = 0
    for char in line[:68]:
        if char.isdigit():
            checksum += int(char)
        elif char == "-":
            checksum += 1
    return checksum % 10


def _validate_line(line: str, expected_number: str) -> str:
    line = line.rstrip("\r\n ")
    line_number = int(expected_number)
    if len(line) != TLE_LINE_LENGTH:
        raise MalformedElementSet(
            f"Line {line_number} has {len(line)} characters, expected {TLE_LINE_LENGTH}",
            line_number,
        )
    if line[0] != expected_number or line[1] != " ":
        raise MalformedElementSet(
            f"Line {line_number} must start with '{expected_number} '", line_number
        )
    if not line[68].isdigit():
        raise MalformedElementSet(f"Line {line_number} checksum is not a digit", line_number)
    expected = compute_checksum(line)
    if int(line[68]) != expected:
        raise MalformedElementSet(
            f"Line {line_number} checksum mismatch: found {line[68]}, computed {expected}",
            line_number,
        )
    return line


def _parse_exponent_field(field: str) -> float:
    """Parse TLE implied-decimal exponential notation, e.g. ' 21844-3' -> 0.21844e-3."""
    field = field.strip()
    if not field:
        return 0.0
    sign = -1.0 if field[0] == "-" else 1.0
    if field[0] in "+-":
        field = field[1:]
    mantissa, exponent = field[:-2], field[-2:]
    return sign * float("0." + mantissa.replace(" ", "0")) * 10.0 ** int(exponent)


def _two_digit_year(year: int) -> int:
    return 1900 + year if year >= 57 else 2000 + year


def parse_tle(line1: str, line2: str, name: str = "") -> ElementSet:
    """
    Parse TLE lines into an ElementSet.

    Args:
        line1: First line of TLE
        line2: Second line of TLE
        name: Optional satellite name

    Returns:
        ElementSet with angles in radians and mean motion in rad/min

    Raises:
        MalformedElementSet: on bad length, line number, checksum or field text
    """
    line1 = _validate_line(line1, "1")
    line2 = _validate_line(line2, "2")

    try:
        satnum = int(line1[2:7])
        satnum2 = int(line2[2:7])
        classification = line1[7].strip() or "U"
        intl_designator = line1[9:17].strip()
        epoch_year = _two_digit_year(int(line1[18:20]))
        epoch_days = float(line1[20:32])
        ndot = float(line1[33:43]) / (XPDOTP * MINUTES_PER_DAY)
        nddot = _parse_exponent_field(line1[44:52]) / (XPDOTP * MINUTES_PER_DAY * MINUTES_PER_DAY)
        bstar = _parse_exponent_field(line1[53:61])
        element_number = int(line1[64:68].strip() or 0)

        inclination = math.radians(float(line2[8:16]))
        raan = math.radians(float(line2[17:25]))
        eccentricity = float("0." + line2[26:33].strip())
        arg_perigee = math.radians(float(line2[34:42]))
        mean_anomaly = math.radians(float(line2[43:51]))
        mean_motion_rev_day = float(line2[52:63])
        revolution_number = int(line2[63:68].strip() or 0)
    except (ValueError, IndexError) as e:
        raise MalformedElementSet(f"TLE field parsing error: {e}") from e

    if satnum2 != satnum:
        raise MalformedElementSet(f"Catalog numbers differ between lines: {satnum} vs {satnum2}")
    if not 0.0 <= eccentricity < 1.0:
        raise MalformedElementSet(f"Eccentricity {eccentricity} outside [0, 1)", 2)
    if not 0.0 < epoch_days < 367.0:
        raise MalformedElementSet(f"Epoch day {epoch_days} outside the year", 1)
    if mean_motion_rev_day <= 0.0:
        raise MalformedElementSet(f"Mean motion {mean_motion_rev_day} rev/day is not positive", 2)

    element_set = ElementSet(
        name=name.strip(),
        satnum=satnum,
        classification=classification,
        intl_designator=intl_designator,
        epoch_year=epoch_year,
        epoch_days=epoch_days,
        epoch=tle_epoch_to_instant(epoch_year, epoch_days),
        ndot=ndot,
        nddot=nddot,
        bstar=bstar,
        element_number=element_number,
        inclination=inclination,
        raan=raan,
        eccentricity=eccentricity,
        arg_perigee=arg_perigee,
        mean_anomaly=mean_anomaly,
        mean_motion=mean_motion_rev_day / XPDOTP,
        revolution_number=revolution_number,
        line1=line1,
        line2=line2,
    )
    logger.debug(f"Parsed element set {satnum} ({element_set.name or 'unnamed'}) epoch {element_set.epoch}")
    return element_set


def parse_tle_text(text: str) -> List[ElementSet]:
    """
    Parse a block of element sets in two-line or three-line (name first) form.

    Blank lines are ignored. A malformed set aborts the whole parse.
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    element_sets = []
    i = 0
    while i < len(lines):
        name = ""
        if not lines[i].startswith("1 "):
            name = lines[i][2:] if lines[i].startswith("0 ") else lines[i]
            i += 1
        if i + 1 >= len(lines):
            raise MalformedElementSet(f"Truncated element set after {len(element_sets)} complete sets")
        element_sets.append(parse_tle(lines[i], lines[i + 1], name))
        i += 2
    return element_sets
