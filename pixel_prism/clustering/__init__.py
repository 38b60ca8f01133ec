"""
Clustering Engine.

Three interchangeable algorithms over 5D feature vectors:
- kmeans: centroid-based (K-Means with k-means++ seeding)
- dbscan: density-based (resolution-adaptive DBSCAN)
- meanshift: mode-seeking (subsampled Mean Shift)
"""

from enum import Enum
from typing import Optional, Union

import numpy as np

from ..errors import ConfigurationError
from .base import (
    NOISE_LABEL,
    AbortHook,
    BaseClusterer,
    ClusteringResult,
    NeighborIndex,
    color_distance,
    spatial_distance,
    combined_distance,
    pairwise_combined_distance,
    cluster_means
)
from .kmeans import KMeansConfig, KMeans
from .dbscan import DBSCANConfig, DBSCAN
from .mean_shift import MeanShiftConfig, MeanShift


class Algorithm(Enum):
    """Available clustering algorithms."""
    KMEANS = "kmeans"
    DBSCAN = "dbscan"
    MEANSHIFT = "meanshift"

    @classmethod
    def parse(cls, value: Union[str, 'Algorithm']) -> 'Algorithm':
        """
        Accept an Algorithm, its value, or a descriptive alias
        ('centroid', 'density', 'mode_seeking', 'mean_shift', ...).

        Raises:
            ConfigurationError: If the name is unknown
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace('-', '_')
        try:
            return _ALIASES[key]
        except KeyError:
            raise ConfigurationError(
                f"Unknown algorithm '{value}', use one of {[a.value for a in cls]}"
            ) from None


_ALIASES = {
    'kmeans': Algorithm.KMEANS,
    'k_means': Algorithm.KMEANS,
    'centroid': Algorithm.KMEANS,
    'dbscan': Algorithm.DBSCAN,
    'density': Algorithm.DBSCAN,
    'meanshift': Algorithm.MEANSHIFT,
    'mean_shift': Algorithm.MEANSHIFT,
    'mode_seeking': Algorithm.MEANSHIFT,
    'modeseeking': Algorithm.MEANSHIFT,
}

_IMPLEMENTATIONS = {
    Algorithm.KMEANS: (KMeans, KMeansConfig),
    Algorithm.DBSCAN: (DBSCAN, DBSCANConfig),
    Algorithm.MEANSHIFT: (MeanShift, MeanShiftConfig),
}


def create_clusterer(
    algorithm: Union[str, Algorithm],
    config=None,
    rng: Optional[np.random.Generator] = None
) -> BaseClusterer:
    """
    Factory function to create a clusterer.

    Args:
        algorithm: Algorithm or name/alias
        config: Matching config dataclass. If None, uses defaults.
        rng: Optional injected pseudo-random source

    Returns:
        clusterer: KMeans, DBSCAN or MeanShift instance

    Raises:
        ConfigurationError: If the algorithm is unknown or the config type
                            does not match it

    Example:
        >>> clusterer = create_clusterer('density', DBSCANConfig(eps=40, min_pts=2))
        >>> result = clusterer.fit_predict(features)
    """
    algorithm = Algorithm.parse(algorithm)
    cls, config_cls = _IMPLEMENTATIONS[algorithm]
    if config is None:
        config = config_cls()
    elif not isinstance(config, config_cls):
        raise ConfigurationError(
            f"{algorithm.value} expects {config_cls.__name__}, got {type(config).__name__}"
        )
    return cls(config, rng=rng)


__all__ = [
    'Algorithm',
    'create_clusterer',
    # Base
    'NOISE_LABEL',
    'AbortHook',
    'BaseClusterer',
    'ClusteringResult',
    'NeighborIndex',
    'color_distance',
    'spatial_distance',
    'combined_distance',
    'pairwise_combined_distance',
    'cluster_means',
    # Algorithms
    'KMeansConfig',
    'KMeans',
    'DBSCANConfig',
    'DBSCAN',
    'MeanShiftConfig',
    'MeanShift',
]
