from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

from scipy.special import expit

from orbclear.core.catalog import TrackedObject
from orbclear.utils.constants import DEFAULT_DENSITY, DEFAULT_SHELL_BAND_KM

logger = logging.getLogger(__name__)

# Logistic model coefficients, tuned by hand for LEO traffic
BIAS = -1.25
W_ALTITUDE = 0.65
W_INCLINATION = -0.35
W_DENSITY = 1.8
W_DRAG = 0.9
W_DEBRIS = 0.7

REFERENCE_ALTITUDE_KM = 700.0
ALTITUDE_SCALE_KM = 200.0
MIN_DRAG_MULTIPLIER = 0.5

# keeps expit strictly inside (0, 1) in double precision
_LOGIT_LIMIT = 30.0


@dataclass(frozen=True)
class OrbitFeatures:
    """Feature vocabulary shared by scoring, clustering and projection."""

    id: str
    altitude_km: float
    inclination_deg: float
    raan_deg: float = 0.0
    density: float = DEFAULT_DENSITY
    debris: bool = False


@dataclass(frozen=True)
class RiskScore:
    probability: float    # in (0, 1)
    parts: dict = field(default_factory=dict)  # weighted contribution per term


def logistic_risk_score(
    altitude_km: float,
    inclination_deg: float,
    density: float = DEFAULT_DENSITY,
    drag_multiplier: float = 1.0,
    debris: bool = False,
) -> RiskScore:
    """
    Score an object's collision risk with a fixed logistic model.

    Terms: altitude centred on the 700 km shell, cos(inclination) for
    polar vs. equatorial crowding, local density, log drag multiplier and a
    debris indicator.

    Args:
        altitude_km: Mean altitude in km
        inclination_deg: Inclination in degrees
        density: Local traffic density, normalized 0..1
        drag_multiplier: Atmospheric drag factor (1.0 baseline)
        debris: Whether the object is debris

    Returns:
        RiskScore with probability in (0, 1) and the per-term breakdown
    """
    parts = {
        "alt": W_ALTITUDE * (altitude_km - REFERENCE_ALTITUDE_KM) / ALTITUDE_SCALE_KM,
        "inc": W_INCLINATION * math.cos(math.radians(inclination_deg)),
        "dens": W_DENSITY * density,
        "drag": W_DRAG * math.log(max(MIN_DRAG_MULTIPLIER, drag_multiplier)),
        "debris": W_DEBRIS * (1.0 if debris else 0.0),
    }
    z = BIAS + sum(parts.values())
    z = max(-_LOGIT_LIMIT, min(_LOGIT_LIMIT, z))
    return RiskScore(probability=float(expit(z)), parts=parts)


def features_from_object(obj: TrackedObject, density: float = DEFAULT_DENSITY) -> OrbitFeatures:
    return OrbitFeatures(
        id=obj.id,
        altitude_km=obj.altitude_km,
        inclination_deg=obj.inclination_deg,
        raan_deg=obj.raan_deg,
        density=density,
        debris=obj.is_debris,
    )


def score_features(features: OrbitFeatures, drag_multiplier: float = 1.0) -> RiskScore:
    return logistic_risk_score(
        altitude_km=features.altitude_km,
        inclination_deg=features.inclination_deg,
        density=features.density,
        drag_multiplier=drag_multiplier,
        debris=features.debris,
    )


def score_object(
    obj: TrackedObject,
    drag_multiplier: float = 1.0,
    density: float = DEFAULT_DENSITY,
) -> RiskScore:
    """Score a tracked object from its orbital features."""
    score = score_features(features_from_object(obj, density), drag_multiplier)
    logger.debug("Risk for %s: p=%.4f", obj.id, score.probability)
    return score


def shell_density(
    features: Sequence[OrbitFeatures],
    band_km: float = DEFAULT_SHELL_BAND_KM,
) -> list[float]:
    """
    Estimate local density as the share of other objects in the same shell.

    An object's density is the fraction of the remaining catalog whose
    altitude lies within ``band_km`` of its own.
    """
    n = len(features)
    if n < 2:
        return [0.0] * n
    densities = []
    for i, f in enumerate(features):
        neighbours = sum(
            1 for j, g in enumerate(features)
            if j != i and abs(g.altitude_km - f.altitude_km) <= band_km
        )
        densities.append(neighbours / (n - 1))
    return densities


def summarize_risk(scores: Sequence[RiskScore]) -> tuple[float, float, str]:
    """Total, mean and percentage string of a set of scores."""
    if not scores:
        return 0.0, 0.0, "0.0%"
    total = sum(s.probability for s in scores)
    mean = total / len(scores)
    return total, mean, f"{mean * 100:.1f}%"


def lifecycle_stage(altitude_km: float, drag_multiplier: float = 1.0) -> str:
    """
    Coarse decay stage: "critical" below 400 km, "aging" up to 550 km
    ("critical" there when drag exceeds 1.2), "healthy" above.
    """
    if altitude_km < 400:
        return "critical"
    if altitude_km < 550:
        return "critical" if drag_multiplier > 1.2 else "aging"
    return "healthy"


def estimate_lifetime_days(altitude_km: float, drag_multiplier: float = 1.0) -> float:
    """Rough remaining orbital lifetime in days."""
    drag = max(drag_multiplier, 1e-9)
    if altitude_km < 300:
        return max(1.0, 30 / drag)
    if altitude_km < 400:
        return max(30.0, 180 / drag)
    if altitude_km < 500:
        return max(180.0, 365 * 2 / drag)
    if altitude_km < 600:
        return max(365.0 * 2, 365 * 5 / drag)
    return 365.0 * 10
