"""
orbclear: orbital debris simulation and collector planning for Python.

Propagates catalogs of satellites and debris, forecasts close approaches,
scores collision risk, projects a year of collisions under a removal
policy, and plans visit routes for a collector vehicle.
"""

from __future__ import annotations

__version__ = "0.1.0-dev"

from orbclear.core.orbit import SyntheticOrbit, TLERecord, Sgp4Propagator, position_at
from orbclear.core.catalog import ObjectKind, TrackedObject, parse_catalog, cap_population
from orbclear.core.screening import scan, scan_indexed, CollisionWarning, Severity
from orbclear.core.risk import OrbitFeatures, RiskScore, logistic_risk_score, score_object
from orbclear.core.clustering import ClusterResult, kmeans_orbits
from orbclear.core.projection import Policy, ProjectionResult, monte_carlo_year
from orbclear.core.routing import RoutePlan, Rendezvous, RendezvousCache, RoutePlanner, transfer_path
from orbclear.core.simulation import Simulation, TickResult
from orbclear.data.celestrak import CelestrakClient
from orbclear.utils.geometry import PositionVector, distance

__all__ = [
    "__version__",
    "SyntheticOrbit",
    "TLERecord",
    "Sgp4Propagator",
    "position_at",
    "ObjectKind",
    "TrackedObject",
    "parse_catalog",
    "cap_population",
    "scan",
    "scan_indexed",
    "CollisionWarning",
    "Severity",
    "OrbitFeatures",
    "RiskScore",
    "logistic_risk_score",
    "score_object",
    "ClusterResult",
    "kmeans_orbits",
    "Policy",
    "ProjectionResult",
    "monte_carlo_year",
    "RoutePlan",
    "Rendezvous",
    "RendezvousCache",
    "RoutePlanner",
    "transfer_path",
    "Simulation",
    "TickResult",
    "CelestrakClient",
    "PositionVector",
    "distance",
]
