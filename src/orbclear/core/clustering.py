"""K-means grouping of orbits by altitude, inclination and RAAN."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from orbclear.core.risk import OrbitFeatures
from orbclear.utils.constants import DEFAULT_CLUSTER_COUNT, DEFAULT_CLUSTER_ITERATIONS

logger = logging.getLogger(__name__)


@dataclass
class ClusterResult:
    """Output of :func:`kmeans_orbits`.

    Attributes:
        centroids: Array of shape (k, 3) holding (altitude_km, inclination_deg, raan_deg).
        groups: Members of each cluster, in input order.
    """

    centroids: NDArray[np.float64]
    groups: list[list[OrbitFeatures]] = field(default_factory=list)

    def labels(self) -> dict[str, int]:
        """Cluster index per item id."""
        return {item.id: c for c, group in enumerate(self.groups) for item in group}


def _wrapped_raan_diff(raan: NDArray[np.float64], centre: NDArray[np.float64]) -> NDArray[np.float64]:
    """Absolute RAAN difference folded into [0, 180] degrees."""
    d = np.mod(raan - centre, 360.0)
    return np.where(d > 180.0, 360.0 - d, d)


def _circular_mean_deg(angles: NDArray[np.float64]) -> float:
    rad = np.radians(angles)
    mean = np.degrees(np.arctan2(np.sin(rad).mean(), np.cos(rad).mean()))
    return float(np.mod(mean, 360.0))


def initial_centroids(items: Sequence[OrbitFeatures], k: int) -> NDArray[np.float64]:
    """Pick ``k`` evenly spaced items from the list as starting centroids."""
    n = len(items)
    picks = [items[(i * n // k) % n] for i in range(k)]
    return np.array([[p.altitude_km, p.inclination_deg, p.raan_deg] for p in picks], dtype=np.float64)


def kmeans_orbits(
    items: Sequence[OrbitFeatures],
    k: int = DEFAULT_CLUSTER_COUNT,
    iterations: int = DEFAULT_CLUSTER_ITERATIONS,
    initial: NDArray[np.float64] | None = None,
) -> ClusterResult:
    """Cluster orbits with a fixed number of k-means iterations.

    Squared distance is the sum of squared altitude, inclination and wrapped
    RAAN differences, so orbits either side of 0°/360° RAAN land together.
    There is no convergence check: exactly ``iterations`` passes run.

    Args:
        items: Orbits to cluster.
        k: Number of clusters.
        iterations: Number of assign/update passes.
        initial: Optional (k, 3) starting centroids; defaults to
            :func:`initial_centroids`.

    Returns:
        Centroids and member groups. Empty input gives an empty result.
    """
    if k < 1:
        raise ValueError(f"k must be >= 1, got {k}")
    if not items:
        return ClusterResult(centroids=np.empty((0, 3), dtype=np.float64), groups=[])

    features = np.array([[o.altitude_km, o.inclination_deg, o.raan_deg] for o in items], dtype=np.float64)
    centroids = initial_centroids(items, k) if initial is None else np.array(initial, dtype=np.float64)
    if centroids.shape != (k, 3):
        raise ValueError(f"initial centroids must have shape ({k}, 3), got {centroids.shape}")

    labels = np.zeros(len(items), dtype=int)
    for _ in range(iterations):
        # (n, k) squared distances
        d_alt = features[:, None, 0] - centroids[None, :, 0]
        d_inc = features[:, None, 1] - centroids[None, :, 1]
        d_raan = _wrapped_raan_diff(features[:, None, 2], centroids[None, :, 2])
        dist2 = d_alt ** 2 + d_inc ** 2 + d_raan ** 2
        labels = np.argmin(dist2, axis=1)  # ties go to the lowest index

        for c in range(k):
            members = features[labels == c]
            if len(members) == 0:
                continue
            centroids[c] = (
                members[:, 0].mean(),
                members[:, 1].mean(),
                _circular_mean_deg(members[:, 2]),
            )

    groups: list[list[OrbitFeatures]] = [[] for _ in range(k)]
    for item, label in zip(items, labels):
        groups[int(label)].append(item)

    logger.debug("kmeans_orbits: %d items into %d clusters (%d iterations)", len(items), k, iterations)
    return ClusterResult(centroids=centroids, groups=groups)
