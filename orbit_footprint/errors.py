"""
Error taxonomy for the orbit footprint pipeline.

Parse-time and caller-input errors are raised. Propagation failures are
returned as data inside a ``PropagationResult`` so a sampling sweep can skip
a bad instant without aborting; they are still exceptions so a caller can
``raise`` them through ``PropagationResult.unwrap()``.
"""

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Reasons an SGP4 propagation can fail at a given instant"""

    DECAYED = "DECAYED"
    INVALID_ECCENTRICITY = "INVALID_ECCENTRICITY"
    ANOMALY_DIVERGENCE = "ANOMALY_DIVERGENCE"


class OrbitFootprintError(Exception):
    """Base class for every error raised or returned by this package."""


class MalformedElementSet(OrbitFootprintError, ValueError):
    """A two-line element set failed length, checksum or field validation."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.line_number = line_number


class PropagationFailure(OrbitFootprintError):
    """SGP4 could not produce a physical state at the requested time."""

    kind: FailureKind

    def __init__(self, message: str, tsince_minutes: float):
        super().__init__(message)
        self.message = message
        self.tsince_minutes = tsince_minutes

    def __repr__(self):
        return f"{type(self).__name__}(tsince_minutes={self.tsince_minutes!r}, message={self.message!r})"


class Decayed(PropagationFailure):
    """Orbital radius fell below the Earth's surface."""

    kind = FailureKind.DECAYED


class InvalidEccentricity(PropagationFailure):
    """Secular drag terms drove the eccentricity (or semi-latus rectum) out of range."""

    kind = FailureKind.INVALID_ECCENTRICITY


class AnomalyDivergence(PropagationFailure):
    """Kepler's equation did not converge within the iteration cap."""

    kind = FailureKind.ANOMALY_DIVERGENCE


class DegenerateFrameInput(OrbitFootprintError, ValueError):
    """A position is too close to the geocenter (or not finite) to transform."""


class InvalidFieldOfView(OrbitFootprintError, ValueError):
    """Full field-of-view angle outside the open interval (0, 180) degrees."""


class InvalidAltitude(OrbitFootprintError, ValueError):
    """Altitude must be a positive, finite number of kilometers."""
