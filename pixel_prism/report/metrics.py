"""
Cluster Quality Metrics

By default the engine reports fixed placeholder scores, flagged with
is_placeholder=True. compute_quality_metrics() computes genuine scores with
scikit-learn over the non-noise feature vectors.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
from sklearn.metrics import (
    silhouette_score,
    calinski_harabasz_score,
    davies_bouldin_score
)

from ..config import PLACEHOLDER_METRICS

logger = logging.getLogger(__name__)

SILHOUETTE_SAMPLE_SIZE = 2000


@dataclass
class QualityMetrics:
    """
    Cluster quality scores.

    Attributes:
        silhouette: Mean silhouette coefficient in [-1, 1] (higher is better)
        calinski_harabasz: Variance ratio criterion (higher is better)
        davies_bouldin: Average cluster similarity (lower is better)
        is_placeholder: True when the values are fixed placeholders and do
                        not describe the data
    """
    silhouette: float
    calinski_harabasz: float
    davies_bouldin: float
    is_placeholder: bool = False

    def to_dict(self) -> dict:
        return {
            'silhouetteScore': None if math.isnan(self.silhouette) else self.silhouette,
            'calinskiHarabasz': None if math.isnan(self.calinski_harabasz) else self.calinski_harabasz,
            'daviesBouldin': None if math.isnan(self.davies_bouldin) else self.davies_bouldin,
            'isPlaceholder': self.is_placeholder,
        }


def placeholder_metrics() -> QualityMetrics:
    """The fixed scores reported when no metrics are computed."""
    silhouette, calinski_harabasz, davies_bouldin = PLACEHOLDER_METRICS
    return QualityMetrics(silhouette, calinski_harabasz, davies_bouldin, is_placeholder=True)


def compute_quality_metrics(
    features: np.ndarray,
    labels: np.ndarray,
    random_state: Optional[int] = 42,
    sample_size: int = SILHOUETTE_SAMPLE_SIZE
) -> QualityMetrics:
    """
    Compute silhouette, Calinski-Harabasz and Davies-Bouldin scores.

    Noise points (negative labels) are excluded. The silhouette score is
    estimated on a seeded random sample of at most `sample_size` points.
    When fewer than 2 clusters remain, or every point is its own cluster,
    the scores are undefined and returned as NaN.

    Args:
        features: Shape (N, D)
        labels: Shape (N,)
        random_state: Seed for the silhouette sample
        sample_size: Maximum silhouette sample size

    Returns:
        metrics: QualityMetrics with is_placeholder=False
    """
    mask = labels >= 0
    points = features[mask]
    point_labels = labels[mask]
    n_labels = len(np.unique(point_labels))

    if n_labels < 2 or n_labels >= len(points):
        logger.warning(
            "Quality metrics undefined for %d clusters over %d points", n_labels, len(points)
        )
        nan = float('nan')
        return QualityMetrics(nan, nan, nan)

    try:
        silhouette = float(silhouette_score(
            points, point_labels,
            sample_size=min(sample_size, len(points)),
            random_state=random_state
        ))
    except ValueError as exc:
        # the sample can contain a single label
        logger.warning("Silhouette score not computable: %s", exc)
        silhouette = float('nan')

    return QualityMetrics(
        silhouette=silhouette,
        calinski_harabasz=float(calinski_harabasz_score(points, point_labels)),
        davies_bouldin=float(davies_bouldin_score(points, point_labels))
    )
