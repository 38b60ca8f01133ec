"""
Clustering Engine - shared pieces

All three algorithms operate on 5D feature vectors [c0, c1, c2, sx, sy]
and share one distance convention:

    dist(p, q) = ||p_color - q_color|| + w * ||p_spatial - q_spatial||

with w = SPATIAL_DISTANCE_WEIGHT (0.3) so that color similarity dominates.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from sklearn.neighbors import KDTree

from ..config import SPATIAL_DISTANCE_WEIGHT
from ..errors import SegmentationAborted


AbortHook = Callable[[], bool]

NOISE_LABEL = -1
"""Label of points the density-based variant could not assign."""


# ============================================================================
# Distances
# ============================================================================

def color_distance(points: np.ndarray, center: np.ndarray) -> np.ndarray:
    """Euclidean distance over the 3 color dimensions."""
    diff = points[..., :3] - center[..., :3]
    return np.sqrt(np.sum(diff * diff, axis=-1))


def spatial_distance(points: np.ndarray, center: np.ndarray) -> np.ndarray:
    """Euclidean distance over the 2 spatial dimensions."""
    diff = points[..., 3:5] - center[..., 3:5]
    return np.sqrt(np.sum(diff * diff, axis=-1))


def combined_distance(
    points: np.ndarray,
    center: np.ndarray,
    spatial_weight: float = SPATIAL_DISTANCE_WEIGHT
) -> np.ndarray:
    """
    Color distance plus down-weighted spatial distance.

    Args:
        points: Feature vectors, shape (N, 5) or (5,)
        center: Single feature vector, shape (5,)
        spatial_weight: Weight of the spatial term

    Returns:
        distances: Shape (N,) (or scalar for a single point)
    """
    return color_distance(points, center) + spatial_weight * spatial_distance(points, center)


def pairwise_combined_distance(
    points: np.ndarray,
    centers: np.ndarray,
    spatial_weight: float = SPATIAL_DISTANCE_WEIGHT
) -> np.ndarray:
    """
    Combined distance from every point to every center.

    Args:
        points: Shape (N, 5)
        centers: Shape (K, 5)

    Returns:
        distances: Shape (N, K)
    """
    return combined_distance(points[:, None, :], centers[None, :, :], spatial_weight)


# ============================================================================
# Neighbor index
# ============================================================================

class NeighborIndex:
    """
    Radius queries under the combined distance.

    A KDTree is built over [c0, c1, c2, w*sx, w*sy]. Because
    color + w * spatial <= r implies that the Euclidean norm of the scaled
    difference is <= r, a Euclidean radius query returns a superset of the
    true neighborhood, which is then filtered with the exact distance.
    Results are identical to a full linear scan.
    """

    def __init__(self, features: np.ndarray, spatial_weight: float = SPATIAL_DISTANCE_WEIGHT):
        self.features = features
        self.spatial_weight = spatial_weight
        self._tree = KDTree(self._scale(features))

    def _scale(self, points: np.ndarray) -> np.ndarray:
        scaled = np.array(points, dtype=np.float64, copy=True).reshape(-1, 5)
        scaled[:, 3:5] *= self.spatial_weight
        return scaled

    def query(self, point: np.ndarray, radius: float) -> np.ndarray:
        """
        Indices of all features within `radius` of `point` (inclusive).

        Args:
            point: 5D location, need not be one of the indexed features
            radius: Combined-distance radius

        Returns:
            indices: Sorted int array (the point itself is included when indexed)
        """
        slack = radius * 1e-9 + 1e-9
        candidates = self._tree.query_radius(self._scale(point), r=radius + slack)[0]
        if len(candidates) == 0:
            return candidates.astype(np.intp)
        distances = combined_distance(self.features[candidates], point, self.spatial_weight)
        return np.sort(candidates[distances <= radius])


# ============================================================================
# Helpers
# ============================================================================

def cluster_means(
    features: np.ndarray,
    labels: np.ndarray,
    n_clusters: int
) -> tuple:
    """
    Per-cluster coordinate-wise means computed as sum / count.

    Labels outside [0, n_clusters) (e.g. noise) are ignored.

    Returns:
        (means, counts): means has shape (n_clusters, D) with NaN rows for
        empty clusters; counts has shape (n_clusters,)
    """
    valid = (labels >= 0) & (labels < n_clusters)
    idx = labels[valid]
    counts = np.bincount(idx, minlength=n_clusters)
    sums = np.stack(
        [np.bincount(idx, weights=features[valid, d], minlength=n_clusters)
         for d in range(features.shape[1])],
        axis=1
    )
    with np.errstate(invalid='ignore', divide='ignore'):
        means = sums / counts[:, None]
    return means, counts


def make_rng(rng: Optional[np.random.Generator], random_state: Optional[int]) -> np.random.Generator:
    """Use the injected generator, else seed a new one from random_state."""
    if rng is not None:
        return rng
    return np.random.default_rng(random_state)


# ============================================================================
# Results
# ============================================================================

@dataclass
class ClusteringResult:
    """
    Output of a clustering algorithm.

    Attributes:
        labels: One label per feature vector, shape (N,). NOISE_LABEL marks
                unassigned points (density-based variant only).
        centers: Representative color per cluster id, shape (K, 3)
        n_iter: Iterations performed. K-Means counts assign/update rounds,
                Mean Shift the most shifts any seed needed. DBSCAN is not
                iterative and reports 0.
        converged: Whether the stopping criterion was met before the cap
    """
    labels: np.ndarray
    centers: np.ndarray
    n_iter: int = 0
    converged: bool = True

    @property
    def n_clusters(self) -> int:
        """Number of distinct non-noise labels."""
        return int(len(np.unique(self.labels[self.labels >= 0])))

    @property
    def noise_count(self) -> int:
        return int(np.sum(self.labels == NOISE_LABEL))

    def reshape_labels(self, shape) -> np.ndarray:
        """Reshape flat labels to (H, W)."""
        return self.labels.reshape(shape)


# ============================================================================
# Abstract Base Class (Interface)
# ============================================================================

class BaseClusterer(ABC):
    """
    Abstract base class for the interchangeable clustering algorithms.

    Implementations:
    - KMeans: centroid-based, fixed k, k-means++ seeding
    - DBSCAN: density-based, resolution-adaptive eps / min_pts
    - MeanShift: mode-seeking over a random subsample of seeds

    All implementations accept (N, 5) feature vectors and return a
    ClusteringResult. Randomized steps draw from an injected generator.
    """

    name: str = ''

    def __init__(self, config, rng: Optional[np.random.Generator] = None):
        """
        Initialize clusterer.

        Args:
            config: Algorithm-specific configuration dataclass
            rng: Pseudo-random source. If None, one is seeded from
                 config.random_state (when the algorithm is randomized).
        """
        self.config = config
        self._rng = rng

    @abstractmethod
    def fit_predict(
        self,
        features: np.ndarray,
        should_abort: Optional[AbortHook] = None
    ) -> ClusteringResult:
        """
        Cluster feature vectors.

        Args:
            features: Shape (N, 5)
            should_abort: Polled periodically; returning True raises
                          SegmentationAborted

        Returns:
            result: ClusteringResult with one label per feature vector
        """

    @staticmethod
    def _validate(features: np.ndarray):
        if features.ndim != 2 or features.shape[1] != 5:
            raise ValueError(f"features must have shape (N, 5), got {features.shape}")
        if len(features) == 0:
            raise ValueError("features must contain at least one vector")

    def _check_abort(self, should_abort: Optional[AbortHook]):
        if should_abort is not None and should_abort():
            raise SegmentationAborted(f"{self.name} clustering aborted by caller")
