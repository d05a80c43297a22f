"""Vector and angle helpers shared by the orbit model, scanner and planner."""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class PositionVector:
    """A position in km.

    Attributes:
        x: X component in km.
        y: Y component in km.
        z: Z component in km.
    """

    x: float
    y: float
    z: float

    @classmethod
    def from_array(cls, arr) -> PositionVector:
        x, y, z = (float(c) for c in arr)
        return cls(x, y, z)

    @classmethod
    def zero(cls) -> PositionVector:
        return cls(0.0, 0.0, 0.0)

    def as_array(self) -> NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def norm(self) -> float:
        return float(np.linalg.norm(self.as_array()))

    def is_valid(self) -> bool:
        """True when every component is finite and the vector is not zero."""
        arr = self.as_array()
        return bool(np.all(np.isfinite(arr))) and bool(np.any(arr != 0.0))


def distance(a: PositionVector, b: PositionVector) -> float:
    """Euclidean distance between two positions in km."""
    return float(np.linalg.norm(a.as_array() - b.as_array()))


def centroid(points: list[PositionVector]) -> PositionVector:
    """Component-wise mean of a non-empty list of positions."""
    if not points:
        raise ValueError("centroid of an empty point set is undefined")
    stacked = np.vstack([p.as_array() for p in points])
    return PositionVector.from_array(stacked.mean(axis=0))


def normalize_to_visual_radius(v: PositionVector, radius_km: float) -> PositionVector:
    """Rescale ``v`` to length ``radius_km`` keeping its direction.

    A zero-length input maps to the zero vector.
    """
    length = v.norm()
    if length == 0.0 or not math.isfinite(length):
        return PositionVector.zero()
    return PositionVector.from_array(v.as_array() / length * radius_km)


def visual_radius_for_altitude(altitude_km: float) -> float:
    """Map an altitude to a display radius on the unit sphere.

    Altitudes are clamped to 350-1200 km and mapped linearly onto 1.02-1.27
    Earth radii so that LEO shells stay visually separated.
    """
    clamped = max(350.0, min(altitude_km, 1200.0))
    return 1.02 + (clamped - 350.0) / (1200.0 - 350.0) * 0.25


def wrap_angle_degrees(v: float) -> float:
    """Wrap an angle in degrees to [-180, 180]."""
    wrapped = math.fmod(v + 180.0, 360.0)
    if wrapped < 0:
        wrapped += 360.0
    return wrapped - 180.0


def angular_separation_deg(a: float, b: float) -> float:
    """Smallest absolute difference between two angles, in [0, 180]."""
    return abs(wrap_angle_degrees(a - b))


def rotation_x(angle_rad: float) -> NDArray[np.float64]:
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    return np.array([[1.0, 0.0, 0.0], [0.0, c, -s], [0.0, s, c]])


def rotation_z(angle_rad: float) -> NDArray[np.float64]:
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def eci_to_ecef(r_eci: NDArray[np.float64], gmst_rad: float) -> NDArray[np.float64]:
    """Rotate an inertial vector into the Earth-fixed frame.

    Args:
        r_eci: Inertial position, shape (3,).
        gmst_rad: Greenwich mean sidereal time in radians.

    Returns:
        Earth-fixed position, shape (3,).
    """
    return rotation_z(-gmst_rad) @ np.asarray(r_eci, dtype=np.float64)
