"""Catalog of tracked objects and its text parsers.

Two input shapes are recognized:

* three-line TLE blocks (name line, then lines starting ``"1 "`` and ``"2 "``);
* synthetic CSV rows
  ``name, altitude_km, inclination_deg, raan_deg, mean_motion_rev_per_day,
  kind, health_pct, battery_pct`` with the last three fields optional and
  ``#`` comment lines.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum

import numpy as np

from orbclear.core.orbit import OrbitRecord, SyntheticOrbit, TLERecord
from orbclear.utils.constants import (
    CATALOG_SEED,
    DEFAULT_BATTERY_PCT,
    DEFAULT_HEALTH_PCT,
    MAX_ACTIVE_OBJECTS,
    MAX_DEBRIS_OBJECTS,
)

logger = logging.getLogger(__name__)


class ObjectKind(Enum):
    """Whether a tracked object is an operational satellite or debris."""

    SATELLITE = "sat"
    DEBRIS = "debris"

    @classmethod
    def parse(cls, text: str | None) -> ObjectKind:
        if text and text.strip().lower() in ("debris", "deb"):
            return cls.DEBRIS
        return cls.SATELLITE


@dataclass(frozen=True)
class TrackedObject:
    """An object in the catalog.

    Attributes:
        id: Unique object name.
        kind: Satellite or debris.
        record: Orbit record used for propagation.
        health_pct: Reported health, 0-100.
        battery_pct: Reported battery level, 0-100.
    """

    id: str
    kind: ObjectKind
    record: OrbitRecord
    health_pct: float = DEFAULT_HEALTH_PCT
    battery_pct: float = DEFAULT_BATTERY_PCT

    @property
    def is_debris(self) -> bool:
        return self.kind is ObjectKind.DEBRIS

    @property
    def altitude_km(self) -> float:
        return self.record.altitude_km

    @property
    def inclination_deg(self) -> float:
        return self.record.inclination_deg

    @property
    def raan_deg(self) -> float:
        return self.record.raan_deg


def _looks_like_csv(lines: list[str]) -> bool:
    first = lines[0]
    return first.startswith("#") or "," in first


def _unique_id(base: str, seen: set[str], fallback: str = "") -> str:
    """First unused id among ``base``, ``fallback`` and numbered variants of ``base``."""
    for candidate in (base, fallback):
        if candidate and candidate not in seen:
            seen.add(candidate)
            return candidate
    n = 2
    while f"{base} #{n}" in seen:
        n += 1
    unique = f"{base} #{n}"
    seen.add(unique)
    return unique


def parse_tle_blocks(text: str, kind: ObjectKind = ObjectKind.SATELLITE) -> list[TrackedObject]:
    """Parse three-line TLE blocks.

    Malformed triples are skipped and scanning resumes at the next line.
    Ids are the object names; a repeated name (debris clouds share one)
    gets its NORAD number appended, e.g. ``"FENGYUN 1C DEB [31141]"``.
    """
    lines = [l.strip() for l in text.splitlines() if l.strip()]
    objects: list[TrackedObject] = []
    seen: set[str] = set()
    i = 0

    while i + 2 < len(lines):
        name, line1, line2 = lines[i], lines[i + 1], lines[i + 2]
        if not (line1.startswith("1 ") and line2.startswith("2 ")):
            i += 1
            continue
        try:
            record = TLERecord.from_lines(line1, line2, name=name)
        except ValueError as exc:
            logger.warning("Skipping malformed TLE block %r: %s", name, exc)
            i += 1
            continue
        norad = str(record.norad_id)
        if record.name:
            object_id = _unique_id(record.name, seen, fallback=f"{record.name} [{norad}]")
        else:
            object_id = _unique_id(norad, seen)
        objects.append(TrackedObject(id=object_id, kind=kind, record=record))
        i += 3

    logger.debug("Parsed %d TLE objects from %d lines", len(objects), len(lines))
    return objects


def _parse_row(fields: list[str], rng: np.random.Generator) -> TrackedObject:
    name, alt, inc, raan, mm = fields[:5]
    if not name:
        raise ValueError("missing name")
    kind_text, health_text, battery_text = (fields[5:8] + ["", "", ""])[:3]

    values = [float(alt), float(inc), float(raan), float(mm)]
    if not all(math.isfinite(v) for v in values):
        raise ValueError(f"non-finite orbital parameter in {fields!r}")

    record = SyntheticOrbit.from_elements(
        altitude_km=values[0],
        inclination_deg=values[1],
        raan_deg=values[2],
        mean_motion_rev_per_day=values[3],
        mean_anomaly_deg=float(rng.uniform(0.0, 360.0)),
    )
    return TrackedObject(
        id=name,
        kind=ObjectKind.parse(kind_text),
        record=record,
        health_pct=float(health_text) if health_text else DEFAULT_HEALTH_PCT,
        battery_pct=float(battery_text) if battery_text else DEFAULT_BATTERY_PCT,
    )


def parse_synthetic_rows(text: str, seed: int = CATALOG_SEED) -> list[TrackedObject]:
    """Parse synthetic CSV rows; malformed rows and comments are skipped.

    Mean anomalies at epoch are drawn from a generator seeded with ``seed``
    so the same text always yields the same catalog.
    Repeated names get a numbered suffix (``"SAT-A #2"``).
    """
    rng = np.random.default_rng(seed)
    objects: list[TrackedObject] = []
    seen: set[str] = set()

    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        fields = [f.strip() for f in line.split(",")]
        if len(fields) < 5 or not all(fields[:5]):
            logger.debug("Skipping short catalog row %r", line)
            continue
        try:
            obj = _parse_row(fields, rng)
        except ValueError as exc:
            logger.debug("Skipping catalog row %r: %s", line, exc)
            continue
        if obj.id in seen:
            obj = replace(obj, id=_unique_id(obj.id, seen))
            logger.debug("Renamed repeated catalog name to %r", obj.id)
        else:
            seen.add(obj.id)
        objects.append(obj)

    logger.debug("Parsed %d synthetic objects", len(objects))
    return objects


def parse_catalog(
    text: str,
    kind: ObjectKind = ObjectKind.SATELLITE,
    seed: int = CATALOG_SEED,
) -> list[TrackedObject]:
    """Parse a catalog in either recognized shape.

    The text is read as synthetic CSV when its first non-blank line is a
    comment or contains a comma, otherwise as TLE blocks.

    Args:
        text: Raw catalog text.
        kind: Kind assigned to TLE objects (CSV rows carry their own).
        seed: Seed for synthetic mean anomalies.

    Returns:
        Parsed objects in input order.
    """
    lines = [l.strip() for l in text.splitlines() if l.strip()]
    if not lines:
        return []
    if _looks_like_csv(lines):
        return parse_synthetic_rows(text, seed=seed)
    return parse_tle_blocks(text, kind=kind)


def cap_population(
    objects: list[TrackedObject],
    max_active: int = MAX_ACTIVE_OBJECTS,
    max_debris: int = MAX_DEBRIS_OBJECTS,
) -> list[TrackedObject]:
    """Keep at most ``max_active`` satellites and ``max_debris`` debris, in input order."""
    kept: list[TrackedObject] = []
    active = debris = 0
    for obj in objects:
        if obj.is_debris:
            if debris < max_debris:
                kept.append(obj)
                debris += 1
        elif active < max_active:
            kept.append(obj)
            active += 1
    if len(kept) < len(objects):
        logger.debug("Capped population from %d to %d objects", len(objects), len(kept))
    return kept
