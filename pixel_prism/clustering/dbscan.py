"""
DBSCAN Clustering (density-based variant)

Classic breadth-first DBSCAN over 5D feature vectors using the combined
color + spatial distance. By default eps and min_pts adapt to the image
resolution so results are comparable across image sizes:

    eps     = sqrt(n_pixels) * eps_scale
    min_pts = max(min_pts_floor, ceil(n_pixels * min_pts_ratio))

Neighborhoods include the query point itself. Noise points may later be
absorbed into a cluster as border points; a point already in a cluster is
never reassigned.
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..config import SPATIAL_DISTANCE_WEIGHT
from ..errors import ConfigurationError
from .base import (
    NOISE_LABEL,
    AbortHook,
    BaseClusterer,
    ClusteringResult,
    NeighborIndex,
    cluster_means
)

logger = logging.getLogger(__name__)

UNVISITED = -2
"""Internal marker, distinct from NOISE_LABEL. Never present in results."""

ABORT_POLL_INTERVAL = 1024


def _claim(labels: np.ndarray, points: np.ndarray, cluster_id: int) -> np.ndarray:
    """
    Assign the unclaimed points to cluster_id and return the ones to expand.

    Noise points join as border points and are not expanded again. A point
    is labeled when it is queued, so it enters the queue at most once.
    """
    current = labels[points]
    unvisited = points[current == UNVISITED]
    labels[points[current == NOISE_LABEL]] = cluster_id
    labels[unvisited] = cluster_id
    return unvisited


@dataclass
class DBSCANConfig:
    """
    Configuration for DBSCAN clustering.

    Attributes:
        eps: Neighborhood radius. None derives it from the pixel count.
        min_pts: Minimum neighborhood size (self included) for a core point.
                 None derives it from the pixel count.
        eps_scale: Factor applied to sqrt(n_pixels) for the adaptive eps
        min_pts_ratio: Fraction of n_pixels for the adaptive min_pts
        min_pts_floor: Lower bound of the adaptive min_pts
        spatial_weight: Weight of the spatial term in the combined distance
    """
    eps: Optional[float] = None
    min_pts: Optional[int] = None
    eps_scale: float = 0.05
    min_pts_ratio: float = 0.0005
    min_pts_floor: int = 4
    spatial_weight: float = SPATIAL_DISTANCE_WEIGHT

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.eps is not None and self.eps <= 0:
            raise ConfigurationError(f"eps must be positive, got {self.eps}")
        if self.min_pts is not None and self.min_pts < 1:
            raise ConfigurationError(f"min_pts must be >= 1, got {self.min_pts}")
        if self.eps_scale <= 0:
            raise ConfigurationError(f"eps_scale must be positive, got {self.eps_scale}")
        if self.min_pts_ratio < 0 or self.min_pts_floor < 1:
            raise ConfigurationError("min_pts_ratio must be >= 0 and min_pts_floor >= 1")
        if self.spatial_weight < 0:
            raise ConfigurationError(f"spatial_weight must be >= 0, got {self.spatial_weight}")

    def resolve(self, n_pixels: int) -> Tuple[float, int]:
        """
        Effective (eps, min_pts) for an image with n_pixels pixels.

        Example:
            >>> DBSCANConfig().resolve(600 * 400)
            (24.49..., 120)
        """
        eps = self.eps if self.eps is not None else float(np.sqrt(n_pixels) * self.eps_scale)
        if self.min_pts is not None:
            min_pts = self.min_pts
        else:
            min_pts = max(self.min_pts_floor, int(np.ceil(n_pixels * self.min_pts_ratio - 1e-9)))
        return eps, min_pts


class DBSCAN(BaseClusterer):
    """
    Density-based clustering with a KDTree-backed neighbor query.

    Labels are cluster ids 0, 1, ... in discovery order, or NOISE_LABEL.
    Centers are the mean color of each cluster's members.
    """

    name = 'dbscan'

    def __init__(self, config: Optional[DBSCANConfig] = None, rng: Optional[np.random.Generator] = None):
        super().__init__(config or DBSCANConfig(), rng)

    def fit_predict(
        self,
        features: np.ndarray,
        should_abort: Optional[AbortHook] = None
    ) -> ClusteringResult:
        """
        Run DBSCAN on feature vectors.

        Args:
            features: Shape (N, 5)
            should_abort: Optional cancellation hook, polled for every seed
                          point and periodically during expansion

        Returns:
            result: Labels (cluster id or NOISE_LABEL), centers (K, 3)
        """
        self._validate(features)
        n = len(features)
        eps, min_pts = self.config.resolve(n)
        logger.debug("DBSCAN eps=%.3f min_pts=%d over %d points", eps, min_pts, n)

        index = NeighborIndex(features, self.config.spatial_weight)
        labels = np.full(n, UNVISITED, dtype=np.int64)
        cluster_id = -1
        steps = 0

        for i in range(n):
            if labels[i] != UNVISITED:
                continue
            self._check_abort(should_abort)

            neighbors = index.query(features[i], eps)
            if len(neighbors) < min_pts:
                labels[i] = NOISE_LABEL
                continue

            cluster_id += 1
            labels[i] = cluster_id
            queue = deque(_claim(labels, neighbors, cluster_id))

            while queue:
                j = queue.popleft()
                steps += 1
                if steps % ABORT_POLL_INTERVAL == 0:
                    self._check_abort(should_abort)

                expansion = index.query(features[j], eps)
                if len(expansion) >= min_pts:
                    queue.extend(_claim(labels, expansion, cluster_id))

        n_clusters = cluster_id + 1
        means, _ = cluster_means(features[:, :3], labels, n_clusters)
        noise = int(np.sum(labels == NOISE_LABEL))
        logger.debug("DBSCAN found %d clusters, %d noise points", n_clusters, noise)

        return ClusteringResult(
            labels=labels,
            centers=means.reshape(n_clusters, 3),
            converged=True
        )
