"""
SGP4 Propagator

Advances a parsed ``ElementSet`` to an arbitrary instant and returns the TEME
position (km) and velocity (km/s), or a typed ``PropagationFailure``.

Near-Earth orbits (period < 225 minutes) are propagated by the implementation
in this module, which follows the near-Earth branch of Vallado et al. (2006):
secular gravity (J2, J4) and drag (B*) terms, long-period J3 periodics, a
bounded Kepler solve and short-period J2 periodics. Coefficients are computed
once when the ``Propagator`` is built and never modified afterwards, so one
instance can be shared by any number of threads.

Deep-space orbits need the lunar-solar and resonance terms of SDP4; those are
delegated to the proven sgp4 library. A fresh ``Satrec`` is initialized from
the already-converted elements on every call so the library's resonance
integrator never carries state from one call into the next.

Failures are returned, not raised:
- ``Decayed``: orbital radius below the Earth's surface, or the drag
  polynomial collapsed
- ``InvalidEccentricity``: perturbed eccentricity outside [-0.001, 1) or a
  negative semi-latus rectum
- ``AnomalyDivergence``: Kepler's equation not converged within
  KEPLER_MAX_ITERATIONS

References:
- Vallado, D. A., et al. (2006). "Revisiting Spacetrack Report #3." AIAA 2006-6753
- Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3"
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from sgp4.api import Satrec, WGS72

from config import (
    DEEP_SPACE_PERIOD_MINUTES,
    EARTH_RADIUS_KM,
    J2,
    J3,
    J4,
    JULIAN_DATE_1949_12_31,
    KEPLER_MAX_ITERATIONS,
    KEPLER_TOLERANCE,
    SECONDS_PER_MINUTE,
    XKE,
)
from orbit_footprint.errors import (
    AnomalyDivergence,
    Decayed,
    InvalidEccentricity,
    PropagationFailure,
)
from orbit_footprint.time_system import Instant
from orbit_footprint.tle_parser import ElementSet

logger = logging.getLogger(__name__)

TWOPI = 2.0 * math.pi
X2O3 = 2.0 / 3.0
J3OJ2 = J3 / J2
VKMPERSEC = EARTH_RADIUS_KM * XKE / SECONDS_PER_MINUTE  # earth radii/min -> km/s
SS = 78.0 / EARTH_RADIUS_KM + 1.0
QZMS2T = ((120.0 - 78.0) / EARTH_RADIUS_KM) ** 4
TEMP4 = 1.5e-12

Vector = Tuple[float, float, float]

# sgp4 library error codes, for the deep-space path
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Epoch elements are sub-orbital",
    6: "Satellite has decayed",
}
_LIBRARY_FAILURES = {
    1: InvalidEccentricity,
    2: Decayed,
    3: InvalidEccentricity,
    4: InvalidEccentricity,
    5: Decayed,
    6: Decayed,
}


@dataclass(frozen=True)
class InertialState:
    """TEME position [km] and velocity [km/s] at an instant."""

    instant: Instant
    tsince_minutes: float
    position: Vector
    velocity: Vector

    @property
    def radius_km(self) -> float:
        return math.sqrt(sum(c * c for c in self.position))

    @property
    def speed_km_s(self) -> float:
        return math.sqrt(sum(c * c for c in self.velocity))


@dataclass(frozen=True)
class PropagationResult:
    """Outcome of one propagation: exactly one of ``state`` or ``failure`` is set."""

    state: Optional[InertialState] = None
    failure: Optional[PropagationFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def unwrap(self) -> InertialState:
        """Return the state, raising the failure if propagation did not succeed."""
        if self.failure is not None:
            raise self.failure
        return self.state


@dataclass(frozen=True)
class _NearEarthTerms:
    """SGP4 initialization products (sgp4init), in earth radii and minutes."""

    no_unkozai: float
    ao: float
    cosio: float
    sinio: float
    con41: float
    x1mth2: float
    x7thm1: float
    isimp: bool
    eta: float
    cc1: float
    cc4: float
    cc5: float
    d2: float
    d3: float
    d4: float
    delmo: float
    sinmao: float
    mdot: float
    argpdot: float
    nodedot: float
    nodecf: float
    omgcof: float
    xmcof: float
    t2cof: float
    t3cof: float
    t4cof: float
    t5cof: float
    xlcof: float
    aycof: float


def _un_kozai(elements: ElementSet) -> Tuple[float, float]:
    """Recover the Brouwer mean motion and semi-major axis from the Kozai mean motion."""
    ecco = elements.eccentricity
    omeosq = 1.0 - ecco * ecco
    rteosq = math.sqrt(omeosq)
    cosio = math.cos(elements.inclination)
    cosio2 = cosio * cosio

    ak = (XKE / elements.mean_motion) ** X2O3
    d1 = 0.75 * J2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
    del_ = d1 / (ak * ak)
    adel = ak * (1.0 - del_ * del_ - del_ * (1.0 / 3.0 + 134.0 * del_ * del_ / 81.0))
    del_ = d1 / (adel * adel)
    no_unkozai = elements.mean_motion / (1.0 + del_)
    ao = (XKE / no_unkozai) ** X2O3
    return no_unkozai, ao


def _initialize_near_earth(elements: ElementSet, no_unkozai: float, ao: float) -> _NearEarthTerms:
    ecco = elements.eccentricity
    bstar = elements.bstar
    eccsq = ecco * ecco
    omeosq = 1.0 - eccsq
    rteosq = math.sqrt(omeosq)
    cosio = math.cos(elements.inclination)
    sinio = math.sin(elements.inclination)
    cosio2 = cosio * cosio

    po = ao * omeosq
    con42 = 1.0 - 5.0 * cosio2
    con41 = -con42 - cosio2 - cosio2
    posq = po * po
    rp = ao * (1.0 - ecco)

    # Perigees below 220 km skip the higher-order drag terms
    isimp = rp < (220.0 / EARTH_RADIUS_KM + 1.0)

    sfour = SS
    qzms24 = QZMS2T
    perige = (rp - 1.0) * EARTH_RADIUS_KM
    if perige < 156.0:
        sfour = perige - 78.0
        if perige < 98.0:
            sfour = 20.0
        qzms24 = ((120.0 - sfour) / EARTH_RADIUS_KM) ** 4
        sfour = sfour / EARTH_RADIUS_KM + 1.0

    pinvsq = 1.0 / posq
    tsi = 1.0 / (ao - sfour)
    eta = ao * ecco * tsi
    etasq = eta * eta
    eeta = ecco * eta
    psisq = abs(1.0 - etasq)
    coef = qzms24 * tsi ** 4
    coef1 = coef / psisq ** 3.5
    cc2 = coef1 * no_unkozai * (
        ao * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
        + 0.375 * J2 * tsi / psisq * con41 * (8.0 + 3.0 * etasq * (8.0 + etasq))
    )
    cc1 = bstar * cc2
    cc3 = 0.0
    if ecco > 1.0e-4:
        cc3 = -2.0 * coef * tsi * J3OJ2 * no_unkozai * sinio / ecco
    x1mth2 = 1.0 - cosio2
    cc4 = 2.0 * no_unkozai * coef1 * ao * omeosq * (
        eta * (2.0 + 0.5 * etasq)
        + ecco * (0.5 + 2.0 * etasq)
        - J2 * tsi / (ao * psisq) * (
            -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
            + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * elements.arg_perigee)
        )
    )
    cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)

    # Secular rates of mean anomaly, perigee and node
    cosio4 = cosio2 * cosio2
    temp1 = 1.5 * J2 * pinvsq * no_unkozai
    temp2 = 0.5 * temp1 * J2 * pinvsq
    temp3 = -0.46875 * J4 * pinvsq * pinvsq * no_unkozai
    mdot = (
        no_unkozai
        + 0.5 * temp1 * rteosq * con41
        + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4)
    )
    argpdot = (
        -0.5 * temp1 * con42
        + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
        + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4)
    )
    xhdot1 = -temp1 * cosio
    nodedot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * cosio2) + 2.0 * temp3 * (3.0 - 7.0 * cosio2)) * cosio

    omgcof = bstar * cc3 * math.cos(elements.arg_perigee)
    xmcof = 0.0
    if ecco > 1.0e-4:
        xmcof = -X2O3 * coef * bstar / eeta
    nodecf = 3.5 * omeosq * xhdot1 * cc1
    t2cof = 1.5 * cc1

    # Equatorial retrograde orbits would divide by zero
    if abs(cosio + 1.0) > 1.5e-12:
        xlcof = -0.25 * J3OJ2 * sinio * (3.0 + 5.0 * cosio) / (1.0 + cosio)
    else:
        xlcof = -0.25 * J3OJ2 * sinio * (3.0 + 5.0 * cosio) / TEMP4
    aycof = -0.5 * J3OJ2 * sinio
    delmo = (1.0 + eta * math.cos(elements.mean_anomaly)) ** 3
    sinmao = math.sin(elements.mean_anomaly)
    x7thm1 = 7.0 * cosio2 - 1.0

    d2 = d3 = d4 = t3cof = t4cof = t5cof = 0.0
    if not isimp:
        cc1sq = cc1 * cc1
        d2 = 4.0 * ao * tsi * cc1sq
        temp = d2 * tsi * cc1 / 3.0
        d3 = (17.0 * ao + sfour) * temp
        d4 = 0.5 * temp * ao * tsi * (221.0 * ao + 31.0 * sfour) * cc1
        t3cof = d2 + 2.0 * cc1sq
        t4cof = 0.25 * (3.0 * d3 + cc1 * (12.0 * d2 + 10.0 * cc1sq))
        t5cof = 0.2 * (3.0 * d4 + 12.0 * cc1 * d3 + 6.0 * d2 * d2 + 15.0 * cc1sq * (2.0 * d2 + cc1sq))

    return _NearEarthTerms(
        no_unkozai=no_unkozai, ao=ao, cosio=cosio, sinio=sinio, con41=con41,
        x1mth2=x1mth2, x7thm1=x7thm1, isimp=isimp, eta=eta, cc1=cc1, cc4=cc4,
        cc5=cc5, d2=d2, d3=d3, d4=d4, delmo=delmo, sinmao=sinmao, mdot=mdot,
        argpdot=argpdot, nodedot=nodedot, nodecf=nodecf, omgcof=omgcof,
        xmcof=xmcof, t2cof=t2cof, t3cof=t3cof, t4cof=t4cof, t5cof=t5cof,
        xlcof=xlcof, aycof=aycof,
    )


class Propagator:
    """
    SGP4 propagator bound to one element set.

    The element set and the initialization terms derived from it are
    read-only after construction; ``propagate`` is a pure function of time.
    """

    def __init__(self, elements: ElementSet):
        self.elements = elements
        no_unkozai, ao = _un_kozai(elements)
        self.deep_space = (TWOPI / no_unkozai) >= DEEP_SPACE_PERIOD_MINUTES
        self._terms = None if self.deep_space else _initialize_near_earth(elements, no_unkozai, ao)
        logger.debug(
            f"Initialized {'deep-space' if self.deep_space else 'near-Earth'} propagator "
            f"for {elements.satnum} (period {TWOPI / no_unkozai:.2f} min)"
        )

    def propagate(self, instant: Instant) -> PropagationResult:
        """Propagate to an absolute instant."""
        tsince = (instant - self.elements.epoch) / SECONDS_PER_MINUTE
        return self._propagate(instant, tsince)

    def propagate_minutes(self, tsince: float) -> PropagationResult:
        """Propagate to a time offset from epoch, in minutes."""
        instant = self.elements.epoch + tsince * SECONDS_PER_MINUTE
        return self._propagate(instant, tsince)

    def _propagate(self, instant: Instant, tsince: float) -> PropagationResult:
        if self.deep_space:
            outcome = self._propagate_deep_space(tsince)
        else:
            outcome = self._propagate_near_earth(tsince)

        if isinstance(outcome, PropagationFailure):
            logger.debug(f"Satellite {self.elements.satnum}: {outcome.message}")
            return PropagationResult(failure=outcome)

        position, velocity = outcome
        return PropagationResult(
            state=InertialState(instant=instant, tsince_minutes=tsince, position=position, velocity=velocity)
        )

    def _propagate_near_earth(self, t: float) -> Union[Tuple[Vector, Vector], PropagationFailure]:
        k = self._terms
        el = self.elements

        # Secular gravity and drag
        xmdf = el.mean_anomaly + k.mdot * t
        argpdf = el.arg_perigee + k.argpdot * t
        nodedf = el.raan + k.nodedot * t
        argpm = argpdf
        mm = xmdf
        t2 = t * t
        nodem = nodedf + k.nodecf * t2
        tempa = 1.0 - k.cc1 * t
        tempe = el.bstar * k.cc4 * t
        templ = k.t2cof * t2

        if not k.isimp:
            delomg = k.omgcof * t
            delm = k.xmcof * ((1.0 + k.eta * math.cos(xmdf)) ** 3 - k.delmo)
            temp = delomg + delm
            mm = xmdf + temp
            argpm = argpdf - temp
            t3 = t2 * t
            t4 = t3 * t
            tempa = tempa - k.d2 * t2 - k.d3 * t3 - k.d4 * t4
            tempe = tempe + el.bstar * k.cc5 * (math.sin(mm) - k.sinmao)
            templ = templ + k.t3cof * t3 + t4 * (k.t4cof + t * k.t5cof)

        if tempa <= 0.0:
            return Decayed(f"Drag polynomial collapsed at t={t:.1f} min; the satellite has re-entered", t)

        am = (XKE / k.no_unkozai) ** X2O3 * tempa * tempa
        nm = XKE / am ** 1.5
        em = el.eccentricity - tempe
        if em >= 1.0 or em < -0.001:
            return InvalidEccentricity(f"Perturbed eccentricity {em:.6f} out of range at t={t:.1f} min", t)
        em = max(em, 1.0e-6)

        mm = mm + k.no_unkozai * templ
        xlm = mm + argpm + nodem
        nodem = math.fmod(nodem, TWOPI)
        argpm = math.fmod(argpm, TWOPI)
        xlm = math.fmod(xlm, TWOPI)
        mm = math.fmod(xlm - argpm - nodem, TWOPI)

        # Long-period periodics
        axnl = em * math.cos(argpm)
        temp = 1.0 / (am * (1.0 - em * em))
        aynl = em * math.sin(argpm) + temp * k.aycof
        xl = mm + argpm + nodem + temp * k.xlcof * axnl

        # Kepler's equation in equinoctial form
        u = math.fmod(xl - nodem, TWOPI)
        eo1 = u
        tem5 = 9999.9
        sineo1 = coseo1 = 0.0
        iterations = 0
        while abs(tem5) >= KEPLER_TOLERANCE and iterations < KEPLER_MAX_ITERATIONS:
            sineo1 = math.sin(eo1)
            coseo1 = math.cos(eo1)
            tem5 = (u - aynl * coseo1 + axnl * sineo1 - eo1) / (1.0 - coseo1 * axnl - sineo1 * aynl)
            if abs(tem5) >= 0.95:
                tem5 = 0.95 if tem5 > 0.0 else -0.95
            eo1 = eo1 + tem5
            iterations += 1
        if abs(tem5) >= KEPLER_TOLERANCE:
            return AnomalyDivergence(
                f"Kepler solver did not converge in {KEPLER_MAX_ITERATIONS} iterations at t={t:.1f} min "
                f"(last correction {tem5:.3e} rad)",
                t,
            )

        # Short-period preliminary quantities
        ecose = axnl * coseo1 + aynl * sineo1
        esine = axnl * sineo1 - aynl * coseo1
        el2 = axnl * axnl + aynl * aynl
        pl = am * (1.0 - el2)
        if pl < 0.0:
            return InvalidEccentricity(f"Semi-latus rectum {pl:.6f} is negative at t={t:.1f} min", t)

        rl = am * (1.0 - ecose)
        rdotl = math.sqrt(am) * esine / rl
        rvdotl = math.sqrt(pl) / rl
        betal = math.sqrt(1.0 - el2)
        temp = esine / (1.0 + betal)
        sinu = am / rl * (sineo1 - aynl - axnl * temp)
        cosu = am / rl * (coseo1 - axnl + aynl * temp)
        su = math.atan2(sinu, cosu)
        sin2u = (cosu + cosu) * sinu
        cos2u = 1.0 - 2.0 * sinu * sinu
        temp = 1.0 / pl
        temp1 = 0.5 * J2 * temp
        temp2 = temp1 * temp

        # Short-period periodics
        mrt = rl * (1.0 - 1.5 * temp2 * betal * k.con41) + 0.5 * temp1 * k.x1mth2 * cos2u
        if mrt < 1.0:
            return Decayed(
                f"Orbital radius {mrt * EARTH_RADIUS_KM:.1f} km is below the Earth's surface at t={t:.1f} min", t
            )
        su = su - 0.25 * temp2 * k.x7thm1 * sin2u
        xnode = nodem + 1.5 * temp2 * k.cosio * sin2u
        xinc = el.inclination + 1.5 * temp2 * k.cosio * k.sinio * cos2u
        mvt = rdotl - nm * temp1 * k.x1mth2 * sin2u / XKE
        rvdot = rvdotl + nm * temp1 * (k.x1mth2 * cos2u + 1.5 * k.con41) / XKE

        # Orientation vectors
        sinsu = math.sin(su)
        cossu = math.cos(su)
        snod = math.sin(xnode)
        cnod = math.cos(xnode)
        sini = math.sin(xinc)
        cosi = math.cos(xinc)
        xmx = -snod * cosi
        xmy = cnod * cosi
        ux = xmx * sinsu + cnod * cossu
        uy = xmy * sinsu + snod * cossu
        uz = sini * sinsu
        vx = xmx * cossu - cnod * sinsu
        vy = xmy * cossu - snod * sinsu
        vz = sini * cossu

        mr = mrt * EARTH_RADIUS_KM
        position = (mr * ux, mr * uy, mr * uz)
        velocity = (
            (mvt * ux + rvdot * vx) * VKMPERSEC,
            (mvt * uy + rvdot * vy) * VKMPERSEC,
            (mvt * uz + rvdot * vz) * VKMPERSEC,
        )
        return position, velocity

    def _propagate_deep_space(self, tsince: float) -> Union[Tuple[Vector, Vector], PropagationFailure]:
        el = self.elements
        satrec = Satrec()
        satrec.sgp4init(
            WGS72, "i", el.satnum,
            el.epoch.julian_date - JULIAN_DATE_1949_12_31,
            el.bstar, el.ndot, el.nddot, el.eccentricity, el.arg_perigee,
            el.inclination, el.mean_anomaly, el.mean_motion, el.raan,
        )
        error, position, velocity = satrec.sgp4_tsince(tsince)
        if error != 0:
            failure_type = _LIBRARY_FAILURES.get(error, Decayed)
            return failure_type(
                f"SGP4 error {error}: {SGP4_ERROR_CODES.get(error, 'Unknown error')} at t={tsince:.1f} min",
                tsince,
            )
        return tuple(position), tuple(velocity)


def propagate(elements: ElementSet, instant: Instant) -> PropagationResult:
    """One-shot propagation; build a ``Propagator`` once when propagating repeatedly."""
    return Propagator(elements).propagate(instant)
