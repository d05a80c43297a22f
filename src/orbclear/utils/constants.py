from __future__ import annotations

"""Physical constants, screening thresholds and model calibration values.

Distances in km, times in seconds, angles in degrees unless noted.
"""

# --- Earth parameters ---
EARTH_RADIUS_KM: float = 6371.0
"""Mean radius of Earth in km, used as the altitude reference."""

EARTH_MU_KM3_S2: float = 398600.4418
"""Earth gravitational parameter (GM) in km³/s²."""

SECONDS_PER_DAY: float = 86400.0

# --- Collision scanning ---
COLLISION_THRESHOLD_KM: float = 5.0
"""Proximity below which a pair is reported as a close approach."""

CRITICAL_DISTANCE_KM: float = 2.0
"""Approaches closer than this are CRITICAL."""

HIGH_DISTANCE_KM: float = 3.5
"""Approaches closer than this (and not CRITICAL) are HIGH."""

DEFAULT_LOOKAHEAD_OFFSETS_S: tuple[float, ...] = (60.0, 300.0, 600.0, 1200.0, 1800.0, 3600.0)
"""Lookahead offsets sampled by the scanner: 1, 5, 10, 20, 30 and 60 minutes."""

DEFAULT_SCAN_INTERVAL_S: float = 5.0
"""Simulated seconds between two scans in the simulation loop."""

MAX_ACTIVE_OBJECTS: int = 160
"""Cap on active satellites handed to the scanner."""

MAX_DEBRIS_OBJECTS: int = 60
"""Cap on debris objects handed to the scanner."""

# --- Risk model ---
DEFAULT_DENSITY: float = 0.2
"""Local traffic density used when none is supplied (normalized 0..1)."""

DEFAULT_SHELL_BAND_KM: float = 50.0
"""Half-width of the altitude shell used by the density estimate."""

MONTHLY_COLLISION_CALIBRATION: float = 0.015
"""Scales a risk score into a monthly collision probability."""

PROJECTION_SEED: int = 12345
"""Seed for the Monte Carlo projection generator."""

PROJECTION_MONTHS: int = 12

DEFAULT_CLUSTER_COUNT: int = 4
DEFAULT_CLUSTER_ITERATIONS: int = 8

# --- Route planning ---
MAX_EXACT_ROUTE_TARGETS: int = 6
"""Largest target set solved by exhaustive permutation search."""

DEFAULT_RENDEZVOUS_HORIZON_H: float = 12.0
RENDEZVOUS_STEP_MIN: float = 60.0
MAX_RENDEZVOUS_STEPS: int = 24

TRANSFER_MIN_STEPS: int = 10
TRANSFER_MAX_STEPS: int = 50

RENDEZVOUS_CACHE_TTL_S: float = 60.0
RENDEZVOUS_CACHE_MAX_ENTRIES: int = 10

REPLAN_MIN_INTERVAL_S: float = 0.5
"""Minimum simulated time between two route replans."""

# --- Catalog ---
DEFAULT_HEALTH_PCT: float = 100.0
DEFAULT_BATTERY_PCT: float = 100.0
CATALOG_SEED: int = 0
"""Seed for the mean anomalies assigned to synthetic rows."""
