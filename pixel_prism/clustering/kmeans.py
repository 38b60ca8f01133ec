"""
K-Means Clustering (centroid-based variant)

Lloyd iterations over 5D feature vectors with the combined color + spatial
distance and k-means++ seeding. Iteration stops when the label assignment
no longer changes or after max_iter iterations.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..config import MAX_ITERATIONS, SPATIAL_DISTANCE_WEIGHT
from ..errors import ConfigurationError
from .base import (
    AbortHook,
    BaseClusterer,
    ClusteringResult,
    cluster_means,
    combined_distance,
    make_rng
)

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration
# ============================================================================

@dataclass
class KMeansConfig:
    """
    Configuration for K-Means clustering.

    Attributes:
        n_clusters: Number of clusters to form (k)
        max_iter: Maximum number of assignment/update iterations
        random_state: Seed for k-means++ when no generator is injected.
                      None gives a non-deterministic run.
        spatial_weight: Weight of the spatial term in the combined distance
    """
    n_clusters: int = 5
    max_iter: int = MAX_ITERATIONS
    random_state: Optional[int] = 42
    spatial_weight: float = SPATIAL_DISTANCE_WEIGHT

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.n_clusters < 1:
            raise ConfigurationError(f"n_clusters must be >= 1, got {self.n_clusters}")
        if self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.spatial_weight < 0:
            raise ConfigurationError(f"spatial_weight must be >= 0, got {self.spatial_weight}")


# ============================================================================
# Implementation
# ============================================================================

class KMeans(BaseClusterer):
    """
    Centroid-based clustering with k-means++ initialization.

    Example:
        >>> kmeans = KMeans(KMeansConfig(n_clusters=3), rng=np.random.default_rng(0))
        >>> result = kmeans.fit_predict(features)  # features: (H*W, 5)
        >>> result.labels.shape
        (H*W,)
    """

    name = 'kmeans'

    def __init__(self, config: Optional[KMeansConfig] = None, rng: Optional[np.random.Generator] = None):
        super().__init__(config or KMeansConfig(), rng)

    def _distances_to_centers(self, features: np.ndarray, centers: np.ndarray) -> np.ndarray:
        return np.stack(
            [combined_distance(features, center, self.config.spatial_weight) for center in centers],
            axis=1
        )

    def init_centers(self, features: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        """
        k-means++ seeding.

        The first center is drawn uniformly; every following center is drawn
        with probability proportional to the squared distance to its nearest
        already-chosen center. When all points coincide with chosen centers
        the draw falls back to uniform.

        Args:
            features: Shape (N, 5)
            rng: Pseudo-random source

        Returns:
            centers: Shape (n_clusters, 5), copies of chosen feature vectors
        """
        n = len(features)
        k = self.config.n_clusters
        centers = np.empty((k, features.shape[1]), dtype=np.float64)
        centers[0] = features[rng.integers(n)]

        nearest = combined_distance(features, centers[0], self.config.spatial_weight)
        for j in range(1, k):
            weights = nearest ** 2
            total = weights.sum()
            if total <= 0:
                idx = int(rng.integers(n))
            else:
                cumulative = np.cumsum(weights)
                idx = int(np.searchsorted(cumulative, rng.random() * total, side='right'))
                idx = min(idx, n - 1)
            centers[j] = features[idx]
            nearest = np.minimum(
                nearest,
                combined_distance(features, centers[j], self.config.spatial_weight)
            )

        return centers

    def fit_predict(
        self,
        features: np.ndarray,
        should_abort: Optional[AbortHook] = None
    ) -> ClusteringResult:
        """
        Run K-Means on feature vectors.

        Empty clusters keep their previous center for the iteration.

        Args:
            features: Shape (N, 5)
            should_abort: Optional cancellation hook, polled every iteration

        Returns:
            result: Labels in [0, n_clusters), centers of shape (n_clusters, 3)
        """
        self._validate(features)
        rng = make_rng(self._rng, self.config.random_state)
        k = self.config.n_clusters

        centers = self.init_centers(features, rng)
        labels = np.zeros(len(features), dtype=np.int64)
        converged = False
        n_iter = 0

        while n_iter < self.config.max_iter:
            self._check_abort(should_abort)
            previous = labels
            labels = np.argmin(self._distances_to_centers(features, centers), axis=1).astype(np.int64)

            means, counts = cluster_means(features, labels, k)
            non_empty = counts > 0
            centers[non_empty] = means[non_empty]
            n_iter += 1

            if np.array_equal(labels, previous):
                converged = True
                break
            logger.debug("K-Means iteration %d: %d non-empty clusters", n_iter, int(non_empty.sum()))

        if not converged:
            logger.warning("K-Means reached max_iter=%d without converging", self.config.max_iter)

        return ClusteringResult(
            labels=labels,
            centers=centers[:, :3].copy(),
            n_iter=n_iter,
            converged=converged
        )
