"""Collision scanning: forecast close approaches between tracked objects."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Sequence

import numpy as np
from scipy.spatial import cKDTree

from orbclear.core.catalog import ObjectKind, TrackedObject
from orbclear.core.orbit import Propagator, position_at
from orbclear.utils.constants import (
    COLLISION_THRESHOLD_KM,
    CRITICAL_DISTANCE_KM,
    DEFAULT_LOOKAHEAD_OFFSETS_S,
    HIGH_DISTANCE_KM,
)
from orbclear.utils.geometry import PositionVector, distance

logger = logging.getLogger(__name__)


class Severity(Enum):
    """Severity band of a close approach."""

    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class CollisionWarning:
    """A predicted close approach between two tracked objects.

    Attributes:
        object_id_a: Id of the first object (earlier in scan order).
        object_id_b: Id of the second object.
        lead_time_s: Seconds from the scan time to the approach.
        distance_km: Predicted separation at that lead time.
        severity: Band derived from ``distance_km``.
        kind_a: Kind of the first object.
        kind_b: Kind of the second object.
    """

    object_id_a: str
    object_id_b: str
    lead_time_s: float
    distance_km: float
    severity: Severity
    kind_a: ObjectKind
    kind_b: ObjectKind


def classify_severity(distance_km: float) -> Severity:
    """Map a separation to its severity band."""
    if distance_km < CRITICAL_DISTANCE_KM:
        return Severity.CRITICAL
    if distance_km < HIGH_DISTANCE_KM:
        return Severity.HIGH
    return Severity.MEDIUM


def _sample_positions(
    objects: Sequence[TrackedObject],
    current_time: datetime,
    offsets_s: Sequence[float],
    propagator: Propagator | None,
) -> list[list[PositionVector | None]]:
    """Positions per offset, per object; each (object, offset) is propagated once."""
    samples = []
    for offset in offsets_s:
        t = current_time + timedelta(seconds=float(offset))
        samples.append([position_at(obj.record, t, propagator) for obj in objects])
    return samples


def _record_hit(
    pairs: dict[tuple[int, int], CollisionWarning],
    objects: Sequence[TrackedObject],
    i: int,
    j: int,
    offset_s: float,
    dist: float,
) -> None:
    """Create the pair's warning or move it to an earlier lead time."""
    key = (i, j)
    existing = pairs.get(key)
    if existing is None:
        pairs[key] = CollisionWarning(
            object_id_a=objects[i].id,
            object_id_b=objects[j].id,
            lead_time_s=float(offset_s),
            distance_km=dist,
            severity=classify_severity(dist),
            kind_a=objects[i].kind,
            kind_b=objects[j].kind,
        )
    elif offset_s < existing.lead_time_s:
        existing.lead_time_s = float(offset_s)
        existing.distance_km = dist
        existing.severity = classify_severity(dist)


def _sorted(pairs: dict[tuple[int, int], CollisionWarning]) -> list[CollisionWarning]:
    return sorted(
        pairs.values(),
        key=lambda w: (w.lead_time_s, w.distance_km, w.object_id_a, w.object_id_b),
    )


def scan(
    objects: Sequence[TrackedObject],
    current_time: datetime,
    lookahead_offsets_s: Sequence[float] = DEFAULT_LOOKAHEAD_OFFSETS_S,
    threshold_km: float = COLLISION_THRESHOLD_KM,
    propagator: Propagator | None = None,
) -> list[CollisionWarning]:
    """Scan every object pair for close approaches at the lookahead offsets.

    A pair is flagged when its predicted separation at some offset is below
    ``threshold_km``. Each pair yields at most one warning, holding the
    earliest flagged lead time and the distance at that time. Offsets where
    either object fails to propagate are skipped; objects sharing an id are
    never paired.

    Args:
        objects: Objects to scan (callers cap the population beforehand).
        current_time: Simulated time of the scan.
        lookahead_offsets_s: Offsets in seconds from ``current_time``.
        threshold_km: Proximity threshold in km.
        propagator: Propagation primitive; defaults to SGP4.

    Returns:
        Warnings sorted by lead time, soonest first.
    """
    n = len(objects)
    if n < 2:
        return []

    samples = _sample_positions(objects, current_time, lookahead_offsets_s, propagator)
    pairs: dict[tuple[int, int], CollisionWarning] = {}

    for i in range(n):
        for j in range(i + 1, n):
            if objects[i].id == objects[j].id:
                continue
            for offset, positions in zip(lookahead_offsets_s, samples):
                pos_i, pos_j = positions[i], positions[j]
                if pos_i is None or pos_j is None:
                    continue
                dist = distance(pos_i, pos_j)
                if dist < threshold_km:
                    _record_hit(pairs, objects, i, j, offset, dist)

    warnings = _sorted(pairs)
    logger.info("scan: %d objects, %d offsets, %d warnings", n, len(lookahead_offsets_s), len(warnings))
    return warnings


def scan_indexed(
    objects: Sequence[TrackedObject],
    current_time: datetime,
    lookahead_offsets_s: Sequence[float] = DEFAULT_LOOKAHEAD_OFFSETS_S,
    threshold_km: float = COLLISION_THRESHOLD_KM,
    propagator: Propagator | None = None,
) -> list[CollisionWarning]:
    """Same contract and results as :func:`scan`, using a KD-tree per offset.

    Suited to larger populations: only pairs within ``threshold_km`` at an
    offset are visited instead of all N² pairs.
    """
    n = len(objects)
    if n < 2:
        return []

    samples = _sample_positions(objects, current_time, lookahead_offsets_s, propagator)
    pairs: dict[tuple[int, int], CollisionWarning] = {}

    for offset, positions in zip(lookahead_offsets_s, samples):
        idx_map = [k for k, p in enumerate(positions) if p is not None]
        if len(idx_map) < 2:
            continue
        tree = cKDTree(np.vstack([positions[k].as_array() for k in idx_map]))

        for a, b in tree.query_pairs(threshold_km):
            i, j = sorted((idx_map[a], idx_map[b]))
            if objects[i].id == objects[j].id:
                continue
            dist = distance(positions[i], positions[j])
            # query_pairs is inclusive of the radius
            if dist < threshold_km:
                _record_hit(pairs, objects, i, j, offset, dist)

    warnings = _sorted(pairs)
    logger.info("scan_indexed: %d objects, %d offsets, %d warnings", n, len(lookahead_offsets_s), len(warnings))
    return warnings
