"""
Processing Configuration

Preprocessing options, quick presets and the named tuning constants shared
by the feature extractor and the three clustering algorithms.
"""

import math
import numbers
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import ConfigurationError


# ============================================================================
# Tuning constants
# ============================================================================

SPATIAL_SCALE = 50.0
"""Pixel coordinates are normalized to [0, 1) and multiplied by this factor,
so the spatial terms of a feature vector span [0, 50) against [0, 255] for
each color channel."""

SPATIAL_DISTANCE_WEIGHT = 0.3
"""Weight of the spatial Euclidean distance in the combined distance
color_dist + w * spatial_dist. Keeps clusters color regions, not blobs."""

MAX_ITERATIONS = 100
"""Iteration cap for the centroid-based (K-Means) variant."""

PLACEHOLDER_METRICS = (0.75, 1500.0, 0.5)
"""Fixed (silhouette, Calinski-Harabasz, Davies-Bouldin) values reported
when genuine quality metrics are not requested."""

COLOR_SPACES = ('rgb', 'lab', 'hsv')


# ============================================================================
# Processing options
# ============================================================================

@dataclass(frozen=True)
class ProcessingOptions:
    """
    Options controlling the preprocessing pipeline.

    Attributes:
        target_width: Resize width in pixels. None keeps the native width.
        target_height: Resize height in pixels. None keeps the native height.
        color_space: One of 'rgb', 'lab', 'hsv'. 'rgb' is the identity.
        blur_radius: Box-blur radius; values <= 0 skip the blur step.
        edge_detection: Apply the Sobel edge magnitude after blurring.
        compute_metrics: Compute genuine quality metrics with scikit-learn
                         instead of reporting the fixed placeholders.
    """
    target_width: Optional[int] = None
    target_height: Optional[int] = None
    color_space: str = 'rgb'
    blur_radius: float = 0.0
    edge_detection: bool = False
    compute_metrics: bool = False

    def __post_init__(self):
        """Validate configuration parameters."""
        for name in ('target_width', 'target_height'):
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        # frozen dataclass
        object.__setattr__(self, 'color_space', str(self.color_space).lower())
        if self.color_space not in COLOR_SPACES:
            raise ConfigurationError(
                f"color_space must be one of {COLOR_SPACES}, got '{self.color_space}'"
            )
        if not isinstance(self.blur_radius, numbers.Real) or not math.isfinite(self.blur_radius):
            raise ConfigurationError(
                f"blur_radius must be a finite number, got {self.blur_radius!r}"
            )
        if self.blur_radius < 0:
            raise ConfigurationError(
                f"blur_radius must be >= 0, got {self.blur_radius}"
            )

    @classmethod
    def from_preset(cls, name: str, **overrides) -> 'ProcessingOptions':
        """
        Build options from a named preset.

        Args:
            name: 'basic' or 'enhanced'
            **overrides: Fields replacing the preset values

        Returns:
            options: New ProcessingOptions instance

        Raises:
            ConfigurationError: If the preset is unknown
        """
        try:
            preset = PRESETS[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown preset '{name}', available: {sorted(PRESETS)}"
            ) from None
        return replace(preset, **overrides)


PRESETS: Mapping[str, ProcessingOptions] = MappingProxyType({
    'basic': ProcessingOptions(
        target_width=400,
        target_height=300,
        color_space='rgb',
        blur_radius=0.0,
        edge_detection=False
    ),
    'enhanced': ProcessingOptions(
        target_width=600,
        target_height=450,
        color_space='lab',
        blur_radius=1.0,
        edge_detection=True
    ),
})
