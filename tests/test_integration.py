"""Integration test: parse → simulate → scan → score → plan end-to-end."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from orbclear import (
    Policy,
    Simulation,
    cap_population,
    kmeans_orbits,
    parse_catalog,
    position_at,
    scan,
    scan_indexed,
    transfer_path,
)
from orbclear.core.catalog import ObjectKind, TrackedObject
from orbclear.core.orbit import TLERecord
from orbclear.core.risk import features_from_object

# Hardcoded real TLEs (no network calls)
ACTIVE_TLES_TEXT = """\
ISS (ZARYA)
1 25544U 98067A   24045.54896019  .00016717  00000-0  30093-3 0  9993
2 25544  51.6412 207.4925 0004948 290.5508 178.9792 15.49583488439596
CSS (TIANHE)
1 48274U 21035A   24045.50261574  .00021540  00000-0  25163-3 0  9993
2 48274  41.4681 279.1498 0005372 149.8847 345.3740 15.62096269157018
HST
1 20580U 90037B   24045.55478014  .00001456  00000-0  73052-4 0  9994
2 20580  28.4701  41.0696 0002622 348.3544 140.2428 15.09435694872912
NOAA 18
1 28654U 05018A   24045.52083333  .00000149  00000-0  10834-3 0  9994
2 28654  98.9710 100.7890 0014048 313.6230  46.3750 14.12905012970123
"""

DEBRIS_TLES_TEXT = """\
COSMOS 1408 DEB
1 51087U 82092HY  24045.40000000  .00013000  00000-0  73000-3 0  9999
2 51087  82.5600 120.3400 0050000 200.0000 160.0000 15.15000000 50000
FENGYUN 1C DEB
1 31141U 99025AYM 24045.50000000  .00003200  00000-0  42000-3 0  9999
2 31141  99.0700 200.1200 0030000 150.0000 210.0000 14.80000000 80000
"""

SYNTHETIC_CSV = """\
# name, alt_km, inc_deg, raan_deg, mean_motion, kind
STARLINK-A, 550, 53, 10, 15.05
STARLINK-B, 550, 53, 20, 15.05
ONEWEB-A, 1200, 87.9, 40, 13.1
ONEWEB-B, 1200, 87.9, 50, 13.1
DEB-SSO-1, 780, 98.4, 300, 14.35, debris
"""


@pytest.fixture
def catalog() -> list[TrackedObject]:
    return parse_catalog(ACTIVE_TLES_TEXT) + parse_catalog(DEBRIS_TLES_TEXT, kind=ObjectKind.DEBRIS)


@pytest.fixture
def sim(catalog: list[TrackedObject]) -> Simulation:
    epoch = catalog[0].record.epoch
    return Simulation(catalog, epoch)


def test_parse_catalog(catalog: list[TrackedObject]):
    assert len(catalog) == 6
    assert all(isinstance(o.record, TLERecord) for o in catalog)
    assert [o.id for o in catalog if o.is_debris] == ["COSMOS 1408 DEB", "FENGYUN 1C DEB"]


def test_positions_in_leo(catalog: list[TrackedObject]):
    """Propagate every object for 24 hours and verify it stays in LEO."""
    epoch = catalog[0].record.epoch
    for obj in catalog:
        for h in range(0, 25, 6):
            pos = position_at(obj.record, epoch + timedelta(hours=h))
            assert pos is not None, obj.id
            assert 6500 < pos.norm() < 8000, obj.id


def test_simulation_ticks(sim: Simulation):
    first = sim.tick(0)
    assert first.scanned
    assert len(first.positions) == 6
    for w in first.warnings:
        assert w.distance_km < 5.0

    later = sim.tick(60)
    assert later.scanned
    assert later.positions["ISS (ZARYA)"] != first.positions["ISS (ZARYA)"]


def test_indexed_scan_agrees(catalog: list[TrackedObject]):
    epoch = catalog[0].record.epoch
    offsets = tuple(range(0, 6 * 3600, 600))
    brute = scan(catalog, epoch, lookahead_offsets_s=offsets, threshold_km=500.0)
    indexed = scan_indexed(catalog, epoch, lookahead_offsets_s=offsets, threshold_km=500.0)
    assert indexed == brute
    assert [w.lead_time_s for w in brute] == sorted(w.lead_time_s for w in brute)


def test_scores_and_projection(sim: Simulation):
    scores = sim.risk_scores()
    assert len(scores) == 6
    assert all(0 < s.probability < 1 for s in scores.values())

    sim.update_policy(Policy(deorbit_compliance=1.0, cadence_per_month=1, drag_multiplier=1.5))
    projection = sim.projection()
    assert [m.removed_count for m in projection.series[:6]] == [1] * 6
    assert projection.series[6].removed_count == 0


def test_collector_workflow(sim: Simulation):
    sim.tick(0)
    sim.select_target("COSMOS 1408 DEB")
    sim.select_target("FENGYUN 1C DEB")
    start = sim.tick(1).positions["ISS (ZARYA)"]

    plan = sim.plan_route(start)
    assert sorted(plan.order) == ["COSMOS 1408 DEB", "FENGYUN 1C DEB"]
    assert plan.accuracy == pytest.approx(1.0)

    rendezvous = sim.rendezvous(horizon_hours=6)
    assert rendezvous is not None
    path = transfer_path(start, rendezvous.centroid, 1800)
    assert path is not None
    np.testing.assert_allclose(path[0].as_array(), start.as_array())
    for p in path:
        assert p.norm() == pytest.approx(start.norm())


def test_synthetic_catalog_clusters():
    objects = cap_population(parse_catalog(SYNTHETIC_CSV), max_active=4, max_debris=1)
    assert len(objects) == 5
    result = kmeans_orbits([features_from_object(o) for o in objects], k=3)
    labels = result.labels()
    assert labels["ONEWEB-A"] == labels["ONEWEB-B"]
    assert labels["STARLINK-A"] != labels["ONEWEB-A"]
    assert labels["DEB-SSO-1"] != labels["STARLINK-A"]


def test_synthetic_positions_stay_on_shell():
    objects = parse_catalog(SYNTHETIC_CSV)
    sim = Simulation(objects, datetime(2024, 2, 14, tzinfo=timezone.utc))
    for _ in range(5):
        for obj_id, pos in sim.tick(120).positions.items():
            obj = next(o for o in objects if o.id == obj_id)
            assert pos.norm() == pytest.approx(6371.0 + obj.altitude_km)
