"""
Mean Shift Clustering (mode-seeking variant)

For efficiency only a bounded random subsample of pixels is used as seeds.
Each seed climbs to a density mode by repeatedly moving to the mean of all
feature vectors within `bandwidth` (combined distance) of its current
location. Modes are merged in seed-processing order: a new mode closer than
`merge_threshold` (color distance) to an already accepted center is
discarded.

Final labels come from a second pass over every pixel: each pixel goes to
the nearest accepted center by color distance alone.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from ..config import SPATIAL_DISTANCE_WEIGHT
from ..errors import ConfigurationError
from .base import (
    AbortHook,
    BaseClusterer,
    ClusteringResult,
    NeighborIndex,
    color_distance,
    combined_distance,
    make_rng
)

logger = logging.getLogger(__name__)


@dataclass
class MeanShiftConfig:
    """
    Configuration for Mean Shift clustering.

    Attributes:
        bandwidth: Window radius (combined distance)
        max_seeds: Maximum number of randomly sampled seed points
        max_iter: Maximum shifts per seed
        shift_tolerance: A seed stops once its shift is below this value
        merge_threshold: Modes closer than this (color distance) are merged
        random_state: Seed for sampling when no generator is injected
        spatial_weight: Weight of the spatial term in the combined distance
    """
    bandwidth: float = 30.0
    max_seeds: int = 1000
    max_iter: int = 30
    shift_tolerance: float = 1.0
    merge_threshold: float = 20.0
    random_state: Optional[int] = 42
    spatial_weight: float = SPATIAL_DISTANCE_WEIGHT

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.bandwidth <= 0:
            raise ConfigurationError(f"bandwidth must be positive, got {self.bandwidth}")
        if self.max_seeds < 1:
            raise ConfigurationError(f"max_seeds must be >= 1, got {self.max_seeds}")
        if self.max_iter < 1:
            raise ConfigurationError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.shift_tolerance < 0 or self.merge_threshold < 0:
            raise ConfigurationError("shift_tolerance and merge_threshold must be >= 0")
        if self.spatial_weight < 0:
            raise ConfigurationError(f"spatial_weight must be >= 0, got {self.spatial_weight}")


class MeanShift(BaseClusterer):
    """
    Mode-seeking clustering over a random subsample of seeds.

    Centers are the color part of the converged modes.
    """

    name = 'meanshift'

    def __init__(self, config: Optional[MeanShiftConfig] = None, rng: Optional[np.random.Generator] = None):
        super().__init__(config or MeanShiftConfig(), rng)

    def sample_seeds(self, n_points: int, rng: np.random.Generator) -> np.ndarray:
        """Random seed indices without replacement, at most max_seeds."""
        size = min(n_points, self.config.max_seeds)
        return rng.choice(n_points, size=size, replace=False)

    def shift_to_mode(self, index: NeighborIndex, start: np.ndarray) -> tuple:
        """
        Climb from `start` to a local density mode.

        Returns:
            (mode, n_iter, converged)
        """
        location = np.array(start, dtype=np.float64, copy=True)
        for n_iter in range(1, self.config.max_iter + 1):
            window = index.query(location, self.config.bandwidth)
            if len(window) == 0:
                return location, n_iter, True
            shifted = index.features[window].mean(axis=0)
            shift = float(combined_distance(shifted, location, self.config.spatial_weight))
            location = shifted
            if shift < self.config.shift_tolerance:
                return location, n_iter, True
        return location, self.config.max_iter, False

    def fit_predict(
        self,
        features: np.ndarray,
        should_abort: Optional[AbortHook] = None
    ) -> ClusteringResult:
        """
        Run Mean Shift on feature vectors.

        Args:
            features: Shape (N, 5)
            should_abort: Optional cancellation hook, polled once per seed

        Returns:
            result: Labels index the accepted centers, centers shape (K, 3)
        """
        self._validate(features)
        rng = make_rng(self._rng, self.config.random_state)
        index = NeighborIndex(features, self.config.spatial_weight)

        accepted: List[np.ndarray] = []
        max_iter_used = 0
        all_converged = True

        for seed in self.sample_seeds(len(features), rng):
            self._check_abort(should_abort)
            mode, n_iter, converged = self.shift_to_mode(index, features[seed])
            max_iter_used = max(max_iter_used, n_iter)
            all_converged = all_converged and converged

            if accepted and np.any(
                color_distance(np.array(accepted), mode) < self.config.merge_threshold
            ):
                continue
            accepted.append(mode)

        centers = np.array(accepted)[:, :3]
        distances = np.stack(
            [color_distance(features, center) for center in centers],
            axis=1
        )
        labels = np.argmin(distances, axis=1).astype(np.int64)

        logger.debug("Mean Shift accepted %d modes", len(centers))
        if not all_converged:
            logger.debug("Some Mean Shift seeds hit max_iter=%d", self.config.max_iter)

        return ClusteringResult(
            labels=labels,
            centers=centers.copy(),
            n_iter=max_iter_used,
            converged=all_converged
        )
