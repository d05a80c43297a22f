"""Collector route planning.

Orders visits to a set of targets, searches for the moment a group of
moving targets is collectively closest (the rendezvous), and lays out the
collector's transfer path to that point.
"""
from __future__ import annotations

import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from itertools import permutations
from typing import Callable, Hashable, Mapping, Sequence

from orbclear.core.catalog import TrackedObject
from orbclear.core.orbit import Propagator, as_utc, position_at
from orbclear.core.risk import OrbitFeatures
from orbclear.utils.constants import (
    DEFAULT_RENDEZVOUS_HORIZON_H,
    EARTH_MU_KM3_S2 as MU,
    EARTH_RADIUS_KM as RE,
    MAX_EXACT_ROUTE_TARGETS,
    MAX_RENDEZVOUS_STEPS,
    RENDEZVOUS_CACHE_MAX_ENTRIES,
    RENDEZVOUS_CACHE_TTL_S,
    RENDEZVOUS_STEP_MIN,
    TRANSFER_MAX_STEPS,
    TRANSFER_MIN_STEPS,
)
from orbclear.utils.geometry import (
    PositionVector,
    angular_separation_deg,
    centroid,
    distance,
    normalize_to_visual_radius,
)

logger = logging.getLogger(__name__)


@dataclass
class RoutePlan:
    """Visit order for a set of targets.

    Attributes:
        order: Target ids in visit order (nearest-neighbour tour).
        total_distance_km: Length of the tour from the start position.
        optimal_distance_km: Exhaustive-search optimum, for up to six targets.
        accuracy: ``optimal_distance_km / total_distance_km`` when the optimum is known.
    """

    order: list[str] = field(default_factory=list)
    total_distance_km: float = 0.0
    optimal_distance_km: float | None = None
    accuracy: float | None = None


@dataclass
class Rendezvous:
    """Sample at which a group of targets is collectively closest.

    Attributes:
        time: Simulated time of the sample.
        centroid: Mean target position at ``time`` (the capture point).
        positions: Target positions at ``time`` keyed by id.
        total_pairwise_distance_km: Sum of pairwise target distances at ``time``.
    """

    time: datetime
    centroid: PositionVector
    positions: dict[str, PositionVector]
    total_pairwise_distance_km: float


# --- Tours ---

def path_distance(start: PositionVector, targets: Sequence[PositionVector], order: Sequence[int]) -> float:
    """Length of the open path start → targets[order[0]] → ... in km."""
    total = 0.0
    current = start
    for idx in order:
        total += distance(current, targets[idx])
        current = targets[idx]
    return total


def nearest_neighbor_order(start: PositionVector, targets: Sequence[PositionVector]) -> list[int]:
    """Greedy tour: always move to the closest unvisited target."""
    remaining = set(range(len(targets)))
    order: list[int] = []
    current = start
    while remaining:
        # min over sorted indices so ties resolve to the lowest index
        nearest = min(sorted(remaining), key=lambda i: distance(current, targets[i]))
        remaining.remove(nearest)
        order.append(nearest)
        current = targets[nearest]
    return order


def optimal_order(start: PositionVector, targets: Sequence[PositionVector]) -> list[int]:
    """Shortest open tour by exhaustive search.

    Only attempted for up to ``MAX_EXACT_ROUTE_TARGETS`` targets; larger sets
    fall back to the nearest-neighbour tour.
    """
    n = len(targets)
    if n > MAX_EXACT_ROUTE_TARGETS:
        return nearest_neighbor_order(start, targets)
    if n <= 1:
        return list(range(n))

    best_order: tuple[int, ...] = tuple(range(n))
    best = math.inf
    for perm in permutations(range(n)):
        d = path_distance(start, targets, perm)
        if d < best:
            best = d
            best_order = perm
    return list(best_order)


# --- Transfer path ---

def transfer_path(
    start: PositionVector,
    target: PositionVector,
    time_available_s: float,
    radius_km: float | None = None,
) -> list[PositionVector] | None:
    """Collector path from ``start`` to ``target`` at constant radius.

    Points are eased with smoothstep ``p²(3 − 2p)`` and projected back onto
    the sphere of ``radius_km`` (default: the start radius). One step per
    minute of available time, bounded to 10-50 steps.

    Returns:
        The path points, or None when fewer than two valid points remain.
    """
    radius = start.norm() if radius_km is None else radius_km
    if not math.isfinite(radius) or radius <= 0:
        logger.debug("transfer_path: invalid radius %r", radius)
        return None

    seconds = max(float(time_available_s), 0.0)
    steps = min(max(int(seconds // 60), TRANSFER_MIN_STEPS), TRANSFER_MAX_STEPS)

    a, b = start.as_array(), target.as_array()
    points: list[PositionVector] = []
    for i in range(steps + 1):
        p = i / steps
        eased = p * p * (3 - 2 * p)
        raw = PositionVector.from_array(a + (b - a) * eased)
        point = normalize_to_visual_radius(raw, radius)
        if point.is_valid():
            points.append(point)

    if len(points) < 2:
        logger.debug("transfer_path: only %d valid points", len(points))
        return None
    return points


# --- Rendezvous cache ---

class RendezvousCache:
    """Bounded time-to-live cache for rendezvous results.

    Entries expire ``ttl_s`` seconds after insertion; when full, the oldest
    entry is evicted first.
    """

    def __init__(
        self,
        ttl_s: float = RENDEZVOUS_CACHE_TTL_S,
        max_entries: int = RENDEZVOUS_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, Rendezvous]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Rendezvous | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_s:
            del self._entries[key]
            return None
        return value

    def put(self, key: Hashable, value: Rendezvous) -> None:
        self._entries.pop(key, None)
        self._entries[key] = (self._clock(), value)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


# --- Planner ---

class RoutePlanner:
    """Plans collector routes and rendezvous points.

    Args:
        propagator: Propagation primitive for rendezvous sampling; defaults to SGP4.
        cache: Rendezvous result cache; a private one is created if omitted.
    """

    def __init__(self, propagator: Propagator | None = None, cache: RendezvousCache | None = None) -> None:
        self.propagator = propagator
        self.cache = cache if cache is not None else RendezvousCache()

    def plan_route(self, start: PositionVector, targets: Mapping[str, PositionVector]) -> RoutePlan:
        """Nearest-neighbour visit order, compared against the optimum for small sets."""
        ids = list(targets)
        positions = [targets[i] for i in ids]
        if not ids:
            return RoutePlan()

        nn = nearest_neighbor_order(start, positions)
        total = path_distance(start, positions, nn)
        plan = RoutePlan(order=[ids[i] for i in nn], total_distance_km=total)

        if len(ids) <= MAX_EXACT_ROUTE_TARGETS:
            best = path_distance(start, positions, optimal_order(start, positions))
            plan.optimal_distance_km = best
            plan.accuracy = best / total if total > 0 else 1.0
            logger.debug("plan_route: nearest %.3f km, optimal %.3f km", total, best)

        return plan

    def find_rendezvous(
        self,
        objects: Sequence[TrackedObject],
        start_time: datetime,
        horizon_hours: float = DEFAULT_RENDEZVOUS_HORIZON_H,
    ) -> Rendezvous | None:
        """Find the hourly sample where the targets are collectively closest.

        A sample counts only when every target propagates. The earliest
        sample minimizing the sum of pairwise distances wins.

        Results are cached per target set and horizon, with ``start_time``
        bucketed to the cache TTL. A call that lands in the same bucket as
        an earlier one returns that earlier result, so ticks within one TTL
        window share a search.

        Args:
            objects: Two or more targets.
            start_time: First sample time.
            horizon_hours: Search window; at most 24 hourly steps are taken.

        Returns:
            The rendezvous, or None when fewer than two targets are given or
            no sample in the window is valid.
        """
        if len(objects) < 2:
            logger.debug("find_rendezvous: need at least two targets, got %d", len(objects))
            return None

        start = as_utc(start_time)
        bucket = int(start.timestamp() // self.cache.ttl_s) if self.cache.ttl_s > 0 else start
        key = (tuple(sorted(o.id for o in objects)), float(horizon_hours), bucket)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("find_rendezvous: cache hit for %s", key[0])
            return cached

        steps = min(int(horizon_hours * 60 // RENDEZVOUS_STEP_MIN), MAX_RENDEZVOUS_STEPS)
        best: Rendezvous | None = None

        for i in range(steps + 1):
            t = start_time + timedelta(minutes=i * RENDEZVOUS_STEP_MIN)
            positions = {o.id: position_at(o.record, t, self.propagator) for o in objects}
            if any(p is None for p in positions.values()):
                continue

            points = list(positions.values())
            total = sum(
                distance(points[a], points[b])
                for a in range(len(points))
                for b in range(a + 1, len(points))
            )
            if not math.isfinite(total):
                continue
            if best is None or total < best.total_pairwise_distance_km:
                best = Rendezvous(
                    time=t,
                    centroid=centroid(points),
                    positions=positions,
                    total_pairwise_distance_km=total,
                )

        if best is None:
            logger.info("find_rendezvous: no valid sample for %d targets over %.1f h", len(objects), horizon_hours)
            return None

        self.cache.put(key, best)
        logger.debug("find_rendezvous: best at %s (%.3f km total)", best.time, best.total_pairwise_distance_km)
        return best


# --- Delta-v estimates ---

def circular_velocity(altitude_km: float) -> float:
    """Circular orbit speed in km/s."""
    return math.sqrt(MU / (RE + altitude_km))


def hohmann_delta_v(alt1_km: float, alt2_km: float) -> float:
    """Two-burn Hohmann transfer cost between circular orbits, in m/s."""
    r1, r2 = RE + alt1_km, RE + alt2_km
    a = 0.5 * (r1 + r2)
    v1, v2 = math.sqrt(MU / r1), math.sqrt(MU / r2)
    vp = math.sqrt(MU * (2 / r1 - 1 / a))
    va = math.sqrt(MU * (2 / r2 - 1 / a))
    return (abs(vp - v1) + abs(v2 - va)) * 1000.0


def plane_change_delta_v(altitude_km: float, delta_inclination_deg: float) -> float:
    """Simple plane change cost at circular speed, in m/s."""
    v = circular_velocity(altitude_km) * 1000.0
    return 2 * v * math.sin(math.radians(abs(delta_inclination_deg)) / 2)


def delta_v_between(a: OrbitFeatures, b: OrbitFeatures) -> float:
    """Hohmann plus plane change, with RAAN offset weighted at 0.2 of a degree of inclination."""
    d_alt = hohmann_delta_v(a.altitude_km, b.altitude_km)
    d_inc = abs(a.inclination_deg - b.inclination_deg)
    d_raan = angular_separation_deg(a.raan_deg, b.raan_deg)
    mean_alt = (a.altitude_km + b.altitude_km) / 2
    return d_alt + plane_change_delta_v(mean_alt, d_inc + 0.2 * d_raan)


def delta_v_for_route(order: Sequence[str], targets: Mapping[str, OrbitFeatures]) -> float:
    """Total delta-v in m/s along ``order``; unknown ids are skipped."""
    known = [i for i in order if i in targets]
    return sum((delta_v_between(targets[a], targets[b]) for a, b in zip(known, known[1:])), 0.0)
