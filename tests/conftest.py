"""Shared fixtures: reference TLEs and a scripted propagator."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import numpy as np
import pytest

from orbclear.core.catalog import ObjectKind, TrackedObject
from orbclear.core.orbit import TLERecord

ISS_NAME = "ISS (ZARYA)"
ISS_LINE1 = "1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993"
ISS_LINE2 = "2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596"

EPOCH = datetime(2024, 2, 14, 12, 0, 0, tzinfo=timezone.utc)

Track = Callable[[float], "tuple[float, float, float] | None"]


class ScriptedPropagator:
    """Propagator whose TLE positions come from per-name functions of elapsed seconds.

    GMST is pinned to zero so inertial and Earth-fixed frames coincide.
    """

    def __init__(self, tracks: dict[str, Track], epoch: datetime = EPOCH) -> None:
        self.tracks = tracks
        self.epoch = epoch
        self.calls = 0

    def propagate(self, record: TLERecord, t: datetime):
        self.calls += 1
        track = self.tracks.get(record.name)
        if track is None:
            return None
        pos = track((t - self.epoch).total_seconds())
        if pos is None:
            return None
        return np.array(pos, dtype=np.float64)

    def gmst(self, t: datetime) -> float:
        return 0.0


def scripted_object(name: str, kind: ObjectKind = ObjectKind.SATELLITE) -> TrackedObject:
    """A TLE-backed object whose positions are supplied by ScriptedPropagator."""
    record = TLERecord.from_lines(ISS_LINE1, ISS_LINE2, name=name)
    return TrackedObject(id=name, kind=kind, record=record)


def fixed(x: float, y: float = 0.0, z: float = 0.0) -> Track:
    return lambda _s: (x, y, z)


@pytest.fixture
def iss_record() -> TLERecord:
    return TLERecord.from_lines(ISS_LINE1, ISS_LINE2, name=ISS_NAME)
