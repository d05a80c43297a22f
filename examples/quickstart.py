"""orbclear quickstart: load a catalog, run a few ticks and plan a pickup."""

from datetime import datetime, timezone

from orbclear import Policy, Simulation, parse_catalog, transfer_path

catalog_text = """
# name, alt_km, inc_deg, raan_deg, mean_motion, kind
COLLECTOR-1, 520, 53.0, 15, 15.15
STARLINK-A, 550, 53.0, 10, 15.05
ONEWEB-A, 1200, 87.9, 40, 13.10
DEB-SSO-1, 780, 98.4, 300, 14.35, debris
DEB-SSO-2, 790, 98.6, 305, 14.32, debris
""".strip()

objects = parse_catalog(catalog_text)
sim = Simulation(objects, datetime.now(timezone.utc), policy=Policy(cadence_per_month=2))

for _ in range(3):
    result = sim.tick(5.0)
    print(f"{result.simulated_time:%H:%M:%S}  {len(result.positions)} objects  {len(result.warnings)} warnings")

for object_id, score in sorted(sim.risk_scores().items(), key=lambda kv: -kv[1].probability):
    print(f"{object_id:<12} risk={score.probability:.3f}")

projection = sim.projection()
print(f"Projected collisions this year: {projection.collisions_per_year}")

sim.select_target("DEB-SSO-1")
sim.select_target("DEB-SSO-2")
start = sim.positions()["COLLECTOR-1"]

plan = sim.plan_route(start)
print(f"Route: {' -> '.join(plan.order)} ({plan.total_distance_km:.0f} km)")

rendezvous = sim.rendezvous()
if rendezvous is not None:
    path = transfer_path(start, rendezvous.centroid, 1800)
    print(f"Rendezvous at {rendezvous.time:%Y-%m-%d %H:%M} UTC, {len(path or [])} path points")
