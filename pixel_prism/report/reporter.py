"""
Cluster Reporter

Turns per-pixel labels back into numbers and images:
- ClusterStat per distinct non-noise label (count, percentage, palette color)
- a segmented RGBA buffer painted with each pixel's cluster color
- one RGBA buffer per cluster (members in the cluster color on a
  transparent black background)
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np

from .palette import Color, NOISE_COLOR, palette_color


# ============================================================================
# Results
# ============================================================================

@dataclass
class ClusterStat:
    """
    Statistics for one cluster.

    Attributes:
        cluster_id: Label value of the cluster
        pixel_count: Number of pixels carrying that label
        percentage: pixel_count / total_pixels * 100
        dominant_color: Palette color used to draw the cluster
    """
    cluster_id: int
    pixel_count: int
    percentage: float
    dominant_color: Color

    def to_dict(self) -> dict:
        return {
            'clusterId': self.cluster_id,
            'pixelCount': self.pixel_count,
            'percentage': self.percentage,
            'dominantColor': list(self.dominant_color),
        }


@dataclass
class ClusterReport:
    """
    Output of report_clusters().

    Attributes:
        stats: ClusterStat list sorted by descending percentage
        segmented: Recolored buffer (H, W, 4); noise pixels are opaque black
        cluster_images: One buffer per entry of `stats`, same order
        noise_count: Number of pixels labeled as noise
    """
    stats: List[ClusterStat]
    segmented: np.ndarray
    cluster_images: List[np.ndarray] = field(default_factory=list)
    noise_count: int = 0

    @property
    def n_clusters(self) -> int:
        return len(self.stats)

    @property
    def total_pixels(self) -> int:
        h, w = self.segmented.shape[:2]
        return h * w


# ============================================================================
# Reporter
# ============================================================================

def report_clusters(labels: np.ndarray, shape: Tuple[int, int]) -> ClusterReport:
    """
    Compute cluster statistics and rebuild label images.

    Distinct non-negative labels are enumerated in ascending numeric order;
    the i-th one is drawn with palette_color(i). Negative labels are noise:
    they are excluded from the statistics and painted NOISE_COLOR.

    Args:
        labels: Flat labels in row-major pixel order, shape (H*W,)
        shape: (H, W) of the image the labels belong to

    Returns:
        report: ClusterReport

    Raises:
        ValueError: If labels do not match the shape
    """
    h, w = shape
    total = h * w
    labels = np.asarray(labels)
    if labels.shape != (total,):
        raise ValueError(f"labels must have shape ({total},) for image {shape}, got {labels.shape}")

    cluster_ids, inverse, counts = np.unique(labels, return_inverse=True, return_counts=True)
    is_cluster = cluster_ids >= 0

    lut = np.zeros((len(cluster_ids), 4), dtype=np.uint8)
    lut[:, :3] = NOISE_COLOR
    lut[:, 3] = 255

    stats: List[ClusterStat] = []
    for position, cluster_index in enumerate(np.flatnonzero(is_cluster)):
        color = palette_color(position)
        lut[cluster_index, :3] = color
        stats.append(ClusterStat(
            cluster_id=int(cluster_ids[cluster_index]),
            pixel_count=int(counts[cluster_index]),
            percentage=float(counts[cluster_index]) / total * 100.0,
            dominant_color=color
        ))

    inverse = inverse.reshape(-1)
    segmented = lut[inverse].reshape(h, w, 4)

    stats.sort(key=lambda stat: stat.percentage, reverse=True)

    cluster_images = []
    for stat in stats:
        image = np.zeros((h, w, 4), dtype=np.uint8)
        mask = (labels == stat.cluster_id).reshape(h, w)
        image[mask, :3] = stat.dominant_color
        image[mask, 3] = 255
        cluster_images.append(image)

    noise_count = int(counts[~is_cluster].sum())

    return ClusterReport(
        stats=stats,
        segmented=segmented,
        cluster_images=cluster_images,
        noise_count=noise_count
    )
