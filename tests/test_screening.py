"""Tests for collision scanning."""
from __future__ import annotations

import numpy as np
import pytest

from orbclear.core.catalog import ObjectKind, TrackedObject
from orbclear.core.orbit import SyntheticOrbit
from orbclear.core.screening import Severity, classify_severity, scan, scan_indexed

from conftest import EPOCH, ScriptedPropagator, fixed, scripted_object

FAR = (9000.0, 0.0, 0.0)


def near_at(offset_s: float, gap_km: float):
    """Track that sits ``gap_km`` from (7000, 0, 0) only at ``offset_s``."""
    return lambda s: (7000.0 + gap_km, 0.0, 0.0) if s == offset_s else FAR


class TestForcedNearMiss:
    @pytest.mark.parametrize(
        "gap_km, severity",
        [(1.5, Severity.CRITICAL), (3.0, Severity.HIGH), (4.5, Severity.MEDIUM)],
    )
    def test_single_warning_with_band(self, gap_km: float, severity: Severity) -> None:
        prop = ScriptedPropagator({"A": fixed(7000.0), "B": near_at(600, gap_km)})
        objs = [scripted_object("A"), scripted_object("B", ObjectKind.DEBRIS)]
        warnings = scan(objs, EPOCH, propagator=prop)

        assert len(warnings) == 1
        w = warnings[0]
        assert (w.object_id_a, w.object_id_b) == ("A", "B")
        assert w.lead_time_s == 600
        assert w.distance_km == pytest.approx(gap_km)
        assert w.severity is severity
        assert w.kind_a is ObjectKind.SATELLITE
        assert w.kind_b is ObjectKind.DEBRIS

    def test_outside_threshold_ignored(self) -> None:
        prop = ScriptedPropagator({"A": fixed(7000.0), "B": fixed(7005.0)})
        assert scan([scripted_object("A"), scripted_object("B")], EPOCH, propagator=prop) == []

    def test_earliest_lead_kept(self) -> None:
        def track(s: float):
            return {300: (7004.0, 0.0, 0.0), 1800: (7001.0, 0.0, 0.0)}.get(s, FAR)

        prop = ScriptedPropagator({"A": fixed(7000.0), "B": track})
        [w] = scan([scripted_object("A"), scripted_object("B")], EPOCH, propagator=prop)
        assert w.lead_time_s == 300
        assert w.distance_km == pytest.approx(4.0)
        assert w.severity is Severity.MEDIUM

    def test_failed_propagation_skipped(self) -> None:
        def flaky(s: float):
            return None if s == 60 else (7001.0, 0.0, 0.0)

        prop = ScriptedPropagator({"A": fixed(7000.0), "B": flaky})
        [w] = scan([scripted_object("A"), scripted_object("B")], EPOCH, propagator=prop)
        assert w.lead_time_s == 300

    def test_lost_object_never_flagged(self) -> None:
        prop = ScriptedPropagator({"A": fixed(7000.0)})
        assert scan([scripted_object("A"), scripted_object("GONE")], EPOCH, propagator=prop) == []

    def test_shared_id_not_paired(self) -> None:
        prop = ScriptedPropagator({"A": fixed(7000.0)})
        assert scan([scripted_object("A"), scripted_object("A")], EPOCH, propagator=prop) == []

    def test_each_position_propagated_once(self) -> None:
        prop = ScriptedPropagator({n: fixed(7000.0 + i) for i, n in enumerate("ABCD")})
        scan([scripted_object(n) for n in "ABCD"], EPOCH, lookahead_offsets_s=(60, 300), propagator=prop)
        assert prop.calls == 4 * 2


class TestOrdering:
    def test_sorted_by_lead_time(self) -> None:
        prop = ScriptedPropagator(
            {
                "A": fixed(7000.0),
                "B": near_at(1200, 1.0),
                "C": fixed(0.0, 7000.0),
                "D": lambda s: (0.0, 7002.0, 0.0) if s == 60 else (0.0, -9000.0, 0.0),
            }
        )
        objs = [scripted_object(n) for n in "ABCD"]
        warnings = scan(objs, EPOCH, propagator=prop)
        assert [(w.object_id_a, w.object_id_b) for w in warnings] == [("C", "D"), ("A", "B")]
        assert [w.lead_time_s for w in warnings] == [60, 1200]


def test_fewer_than_two_objects() -> None:
    prop = ScriptedPropagator({"A": fixed(7000.0)})
    assert scan([], EPOCH, propagator=prop) == []
    assert scan([scripted_object("A")], EPOCH, propagator=prop) == []


@pytest.mark.parametrize(
    "gap_km, severity",
    [(0.0, Severity.CRITICAL), (1.99, Severity.CRITICAL), (2.0, Severity.HIGH),
     (3.49, Severity.HIGH), (3.5, Severity.MEDIUM), (4.99, Severity.MEDIUM)],
)
def test_classify_severity(gap_km: float, severity: Severity) -> None:
    assert classify_severity(gap_km) is severity


def test_separated_shells_never_warn() -> None:
    objs = [
        TrackedObject("LOW", ObjectKind.SATELLITE, SyntheticOrbit.from_elements(500, 53, 10, 15.2)),
        TrackedObject("MID", ObjectKind.SATELLITE, SyntheticOrbit.from_elements(700, 97, 200, 14.6)),
        TrackedObject("HIGH", ObjectKind.DEBRIS, SyntheticOrbit.from_elements(900, 30, 300, 14.0)),
    ]
    assert scan(objs, EPOCH) == []
    assert scan_indexed(objs, EPOCH) == []


class TestIndexedScan:
    def test_matches_brute_force(self) -> None:
        rng = np.random.default_rng(7)
        tracks = {}
        for k in range(30):
            # dense random cloud so several pairs fall under the threshold
            points = {off: tuple(rng.uniform(-8, 8, 3) + [7000.0, 0.0, 0.0]) for off in (60, 300, 600)}
            tracks[f"OBJ-{k}"] = lambda s, p=points: p.get(s)
        prop = ScriptedPropagator(tracks)
        objs = [scripted_object(name) for name in tracks]

        brute = scan(objs, EPOCH, lookahead_offsets_s=(60, 300, 600), propagator=prop)
        indexed = scan_indexed(objs, EPOCH, lookahead_offsets_s=(60, 300, 600), propagator=prop)

        assert brute
        assert indexed == brute

    def test_forced_near_miss(self) -> None:
        prop = ScriptedPropagator({"A": fixed(7000.0), "B": near_at(600, 1.5)})
        [w] = scan_indexed([scripted_object("A"), scripted_object("B")], EPOCH, propagator=prop)
        assert w.lead_time_s == 600
        assert w.severity is Severity.CRITICAL
