"""Tick-driven simulation state for a render loop.

The caller owns the loop and calls :meth:`Simulation.tick` once per frame;
positions are recomputed every tick while the collision scan runs on its
own simulated-time cadence.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Sequence

from orbclear.core.catalog import TrackedObject, cap_population
from orbclear.core.orbit import Propagator, as_utc, position_at
from orbclear.core.projection import Policy, ProjectionResult, monte_carlo_year
from orbclear.core.risk import OrbitFeatures, RiskScore, features_from_object, score_features, shell_density
from orbclear.core.routing import Rendezvous, RoutePlan, RoutePlanner
from orbclear.core.screening import CollisionWarning, scan
from orbclear.utils.constants import (
    DEFAULT_LOOKAHEAD_OFFSETS_S,
    DEFAULT_RENDEZVOUS_HORIZON_H,
    DEFAULT_SCAN_INTERVAL_S,
    MAX_ACTIVE_OBJECTS,
    MAX_DEBRIS_OBJECTS,
    REPLAN_MIN_INTERVAL_S,
)
from orbclear.utils.geometry import PositionVector

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """State handed to the render layer after a tick.

    Attributes:
        simulated_time: Simulated time after the tick.
        positions: Earth-fixed position per object id; failed objects are absent.
        warnings: Warnings from the most recent scan.
        scanned: Whether this tick ran a new scan.
    """

    simulated_time: datetime
    positions: dict[str, PositionVector] = field(default_factory=dict)
    warnings: list[CollisionWarning] = field(default_factory=list)
    scanned: bool = False


class Throttle:
    """Lets an action through at most once per ``min_interval_s`` of simulated time."""

    def __init__(self, min_interval_s: float = REPLAN_MIN_INTERVAL_S) -> None:
        self.min_interval_s = min_interval_s
        self._last: datetime | None = None

    def ready(self, now: datetime) -> bool:
        if self._last is not None and (now - self._last).total_seconds() < self.min_interval_s:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None


class Simulation:
    """Simulated clock, scan cadence and target selection over a fixed catalog.

    Args:
        objects: Catalog of tracked objects.
        start_time: Initial simulated time.
        propagator: Propagation primitive; defaults to SGP4.
        policy: Removal policy; its drag multiplier feeds risk scoring.
        scan_interval_s: Simulated seconds between collision scans.
        lookahead_offsets_s: Scanner lookahead offsets.
        max_active: Cap on satellites handed to the scanner.
        max_debris: Cap on debris handed to the scanner.
        planner: Route planner; one sharing ``propagator`` is created if omitted.
        replan_interval_s: Minimum simulated time between route replans.

    Raises:
        ValueError: If two objects share an id.
    """

    def __init__(
        self,
        objects: Sequence[TrackedObject],
        start_time: datetime,
        propagator: Propagator | None = None,
        policy: Policy | None = None,
        scan_interval_s: float = DEFAULT_SCAN_INTERVAL_S,
        lookahead_offsets_s: Sequence[float] = DEFAULT_LOOKAHEAD_OFFSETS_S,
        max_active: int = MAX_ACTIVE_OBJECTS,
        max_debris: int = MAX_DEBRIS_OBJECTS,
        planner: RoutePlanner | None = None,
        replan_interval_s: float = REPLAN_MIN_INTERVAL_S,
    ) -> None:
        self.objects = list(objects)
        self._by_id = {o.id: o for o in self.objects}
        if len(self._by_id) != len(self.objects):
            repeated = sorted(i for i, n in Counter(o.id for o in self.objects).items() if n > 1)
            raise ValueError(f"Object ids must be unique, repeated: {repeated}")
        self.propagator = propagator
        self.policy = policy or Policy()
        self.scan_interval_s = scan_interval_s
        self.lookahead_offsets_s = tuple(lookahead_offsets_s)
        self.scan_population = cap_population(self.objects, max_active, max_debris)
        self.planner = planner or RoutePlanner(propagator=propagator)

        self.simulated_time = as_utc(start_time)
        self.last_scan_time: datetime | None = None
        self.warnings: list[CollisionWarning] = []
        self.selection: list[str] = []

        self._replan = Throttle(replan_interval_s)
        self._plan: RoutePlan | None = None
        self._plan_start: PositionVector | None = None

    # --- clock ---

    def tick(self, delta_s: float) -> TickResult:
        """Advance simulated time by ``delta_s`` seconds.

        Raises:
            ValueError: If ``delta_s`` is negative.
        """
        if delta_s < 0:
            raise ValueError(f"delta_s must be >= 0, got {delta_s}")
        self.simulated_time += timedelta(seconds=delta_s)

        scanned = False
        if self._scan_due():
            self.warnings = scan(
                self.scan_population,
                self.simulated_time,
                lookahead_offsets_s=self.lookahead_offsets_s,
                propagator=self.propagator,
            )
            self.last_scan_time = self.simulated_time
            scanned = True

        return TickResult(
            simulated_time=self.simulated_time,
            positions=self.positions(),
            warnings=list(self.warnings),
            scanned=scanned,
        )

    def _scan_due(self) -> bool:
        if self.last_scan_time is None:
            return True
        elapsed = (self.simulated_time - self.last_scan_time).total_seconds()
        return elapsed >= self.scan_interval_s

    def positions(self) -> dict[str, PositionVector]:
        """Position of every object at the current simulated time."""
        out = {}
        for obj in self.objects:
            pos = position_at(obj.record, self.simulated_time, self.propagator)
            if pos is not None:
                out[obj.id] = pos
        return out

    # --- risk ---

    def update_policy(self, policy: Policy) -> None:
        self.policy = policy

    def features(self) -> list[OrbitFeatures]:
        base = [features_from_object(o) for o in self.objects]
        densities = shell_density(base)
        return [features_from_object(o, d) for o, d in zip(self.objects, densities)]

    def risk_scores(self) -> dict[str, RiskScore]:
        """Risk score per object id under the current policy's drag."""
        return {f.id: score_features(f, self.policy.drag_multiplier) for f in self.features()}

    def projection(self) -> ProjectionResult:
        return monte_carlo_year(self.features(), self.policy)

    # --- selection & planning ---

    def select_target(self, object_id: str) -> None:
        if object_id not in self._by_id:
            raise ValueError(f"Unknown object id: {object_id!r}")
        if object_id not in self.selection:
            self.selection.append(object_id)
            self._invalidate_plan()

    def deselect_target(self, object_id: str) -> None:
        if object_id in self.selection:
            self.selection.remove(object_id)
            self._invalidate_plan()

    def clear_selection(self) -> None:
        self.selection.clear()
        self._invalidate_plan()

    def _invalidate_plan(self) -> None:
        self._plan = None
        self._plan_start = None
        self._replan.reset()

    def plan_route(self, start: PositionVector) -> RoutePlan | None:
        """Route through the selected targets from ``start``.

        Repeated calls from the same ``start`` replan at most once per
        replan interval and otherwise return the previous plan. A new
        ``start`` or a selection change always replans. Targets that fail
        to propagate are left out.
        """
        if self._plan is not None and start == self._plan_start:
            if not self._replan.ready(self.simulated_time):
                return self._plan
        else:
            self._replan.ready(self.simulated_time)

        targets = {}
        for object_id in self.selection:
            pos = position_at(self._by_id[object_id].record, self.simulated_time, self.propagator)
            if pos is not None:
                targets[object_id] = pos
        self._plan = self.planner.plan_route(start, targets)
        self._plan_start = start
        return self._plan

    def rendezvous(self, horizon_hours: float = DEFAULT_RENDEZVOUS_HORIZON_H) -> Rendezvous | None:
        """Rendezvous point for the current selection, or None."""
        selected = [self._by_id[i] for i in self.selection]
        return self.planner.find_rendezvous(selected, self.simulated_time, horizon_hours)
