"""
Cluster Reporter.

Per-cluster statistics, palette rendering, quality metrics and export
helpers for segmentation results.
"""

from .palette import (
    VIBRANT_PALETTE,
    NOISE_COLOR,
    palette_color
)

from .reporter import (
    ClusterStat,
    ClusterReport,
    report_clusters
)

from .metrics import (
    QualityMetrics,
    placeholder_metrics,
    compute_quality_metrics
)

from .export import (
    encode_png,
    decode_png,
    save_json
)

__all__ = [
    # Palette
    'VIBRANT_PALETTE',
    'NOISE_COLOR',
    'palette_color',
    # Reporter
    'ClusterStat',
    'ClusterReport',
    'report_clusters',
    # Metrics
    'QualityMetrics',
    'placeholder_metrics',
    'compute_quality_metrics',
    # Export
    'encode_png',
    'decode_png',
    'save_json'
]
