"""Orbit records and the position-at-time contract.

Two record shapes are supported: an analytic circular orbit built from
synthetic parameters, and a two-line element set propagated with SGP4.
Both resolve to an Earth-fixed position through :func:`position_at`.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol, Union

import numpy as np
from numpy.typing import NDArray
from sgp4.api import Satrec, WGS72, jday

from orbclear.utils.constants import EARTH_MU_KM3_S2 as MU, EARTH_RADIUS_KM as RE
from orbclear.utils.geometry import PositionVector, eci_to_ecef, rotation_x, rotation_z

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi


def as_utc(t: datetime) -> datetime:
    """Return ``t`` as an aware UTC datetime (naive values are taken as UTC)."""
    if t.tzinfo is None:
        return t.replace(tzinfo=timezone.utc)
    return t.astimezone(timezone.utc)


def _julian(t: datetime) -> tuple[float, float]:
    t = as_utc(t)
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


@dataclass(frozen=True)
class SyntheticOrbit:
    """Circular orbit defined by synthetic parameters.

    Attributes:
        semi_major_axis_km: Orbit radius in km (>= Earth radius).
        inclination_rad: Inclination in radians, normalized to [0, 2π).
        raan_rad: Right ascension of ascending node in radians, normalized to [0, 2π).
        mean_motion_rad_s: Angular rate in rad/s.
        mean_anomaly_rad: Mean anomaly at the Unix epoch, normalized to [0, 2π).
    """

    semi_major_axis_km: float
    inclination_rad: float
    raan_rad: float
    mean_motion_rad_s: float
    mean_anomaly_rad: float = 0.0

    def __post_init__(self) -> None:
        if not math.isfinite(self.semi_major_axis_km) or self.semi_major_axis_km < RE:
            raise ValueError(
                f"semi-major axis {self.semi_major_axis_km!r} km is below Earth radius ({RE} km)"
            )
        if not math.isfinite(self.mean_motion_rad_s) or self.mean_motion_rad_s < 0:
            raise ValueError(f"mean motion must be finite and >= 0, got {self.mean_motion_rad_s!r}")
        for name in ("inclination_rad", "raan_rad", "mean_anomaly_rad"):
            value = getattr(self, name)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value!r}")
            # frozen dataclass: bypass __setattr__ to store the normalized angle
            object.__setattr__(self, name, value % TWO_PI)

    @classmethod
    def from_elements(
        cls,
        altitude_km: float,
        inclination_deg: float,
        raan_deg: float,
        mean_motion_rev_per_day: float,
        mean_anomaly_deg: float = 0.0,
    ) -> SyntheticOrbit:
        """Build an orbit from the units used in catalog rows."""
        return cls(
            semi_major_axis_km=RE + altitude_km,
            inclination_rad=math.radians(inclination_deg),
            raan_rad=math.radians(raan_deg),
            mean_motion_rad_s=mean_motion_rev_per_day * TWO_PI / 86400.0,
            mean_anomaly_rad=math.radians(mean_anomaly_deg),
        )

    @property
    def altitude_km(self) -> float:
        return self.semi_major_axis_km - RE

    @property
    def inclination_deg(self) -> float:
        return math.degrees(self.inclination_rad)

    @property
    def raan_deg(self) -> float:
        return math.degrees(self.raan_rad)

    def inertial_position(self, t: datetime) -> NDArray[np.float64]:
        """Inertial position at ``t``; mean anomaly advances from the Unix epoch."""
        seconds = as_utc(t).timestamp()
        m = self.mean_anomaly_rad + self.mean_motion_rad_s * seconds
        r_orb = np.array([
            self.semi_major_axis_km * math.cos(m),
            self.semi_major_axis_km * math.sin(m),
            0.0,
        ])
        return rotation_z(self.raan_rad) @ (rotation_x(self.inclination_rad) @ r_orb)


@dataclass(frozen=True)
class TLERecord:
    """A two-line element set and its SGP4 satellite record.

    Attributes:
        name: Object name (line 0, if provided).
        line1: Raw TLE line 1.
        line2: Raw TLE line 2.
        norad_id: NORAD catalog number.
        epoch: Epoch as a UTC datetime.
        inclination_deg: Orbital inclination in degrees.
        raan_deg: Right ascension of ascending node in degrees.
        eccentricity: Orbital eccentricity.
        mean_motion_rev_per_day: Mean motion in revolutions per day.
        satrec: Underlying sgp4 Satrec used for propagation.
    """

    name: str
    line1: str
    line2: str
    norad_id: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    mean_motion_rev_per_day: float
    satrec: Satrec = field(repr=False, compare=False)

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> TLERecord:
        """Parse a TLE from its two element lines.

        Raises:
            ValueError: If either line is malformed.
        """
        line1 = line1.strip()
        line2 = line2.strip()

        if len(line1) != 69 or not line1.startswith("1 "):
            raise ValueError(f"Invalid TLE line 1: {line1!r}")
        if len(line2) != 69 or not line2.startswith("2 "):
            raise ValueError(f"Invalid TLE line 2: {line2!r}")

        sat = Satrec.twoline2rv(line1, line2, WGS72)

        year = int(line1[18:20])
        year = year + 2000 if year < 57 else year + 1900
        day_of_year = float(line1[20:32])
        epoch = datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day_of_year - 1)

        return cls(
            name=name.strip(),
            line1=line1,
            line2=line2,
            norad_id=int(line1[2:7].strip()),
            epoch=epoch,
            inclination_deg=math.degrees(sat.inclo),
            raan_deg=math.degrees(sat.nodeo),
            eccentricity=sat.ecco,
            mean_motion_rev_per_day=sat.no_kozai * 1440 / TWO_PI,
            satrec=sat,
        )

    @property
    def altitude_km(self) -> float:
        """Mean altitude from the semi-major axis implied by the mean motion."""
        n_rad_s = self.mean_motion_rev_per_day * TWO_PI / 86400.0
        if n_rad_s <= 0:
            return float("nan")
        return (MU / n_rad_s ** 2) ** (1.0 / 3.0) - RE

    def __str__(self) -> str:
        header = f"{self.name}\n" if self.name else ""
        return f"{header}{self.line1}\n{self.line2}"


OrbitRecord = Union[SyntheticOrbit, TLERecord]


class Propagator(Protocol):
    """External SGP4-class capability used by the orbit model."""

    def propagate(self, record: TLERecord, t: datetime) -> NDArray[np.float64] | None:
        """Inertial position in km at ``t``, or None on failure."""
        ...

    def gmst(self, t: datetime) -> float:
        """Greenwich mean sidereal time in radians at ``t``."""
        ...


class Sgp4Propagator:
    """Propagator backed by the ``sgp4`` library (TEME output frame)."""

    def propagate(self, record: TLERecord, t: datetime) -> NDArray[np.float64] | None:
        jd, fr = _julian(t)
        error_code, pos, _vel = record.satrec.sgp4(jd, fr)
        if error_code != 0:
            logger.debug("SGP4 error %d for NORAD %d at %s", error_code, record.norad_id, t)
            return None
        return np.array(pos, dtype=np.float64)

    def gmst(self, t: datetime) -> float:
        # IAU-82 sidereal time, same expression sgp4 uses internally
        jd, fr = _julian(t)
        tut1 = (jd + fr - 2451545.0) / 36525.0
        seconds = (
            -6.2e-6 * tut1 ** 3
            + 0.093104 * tut1 ** 2
            + (876600.0 * 3600.0 + 8640184.812866) * tut1
            + 67310.54841
        )
        return math.radians(seconds / 240.0) % TWO_PI


DEFAULT_PROPAGATOR = Sgp4Propagator()


def position_at(
    record: OrbitRecord,
    t: datetime,
    propagator: Propagator | None = None,
) -> PositionVector | None:
    """Earth-fixed position of ``record`` at ``t``.

    A pure function of ``(record, t)``: callers may query arbitrary,
    non-monotonic times.

    Args:
        record: Synthetic or TLE orbit record.
        t: Simulated time (naive values are taken as UTC).
        propagator: Propagation primitive; defaults to SGP4.

    Returns:
        The position in km, or None when propagation fails or yields a
        non-finite or zero vector.
    """
    prop = propagator or DEFAULT_PROPAGATOR
    try:
        if isinstance(record, SyntheticOrbit):
            r_eci = record.inertial_position(t)
        else:
            r_eci = prop.propagate(record, t)
            if r_eci is None:
                return None
        r = eci_to_ecef(r_eci, prop.gmst(t))
    except (ValueError, ArithmeticError) as exc:
        logger.debug("Propagation failed at %s: %s", t, exc)
        return None

    position = PositionVector.from_array(r)
    if not position.is_valid():
        logger.debug("Rejected degenerate position %s at %s", position, t)
        return None
    return position
