"""
Segmentation entry point.

    segment(image, algorithm, options) -> SegmentationResult

Control flow:
    preprocess -> extract_features -> clusterer.fit_predict -> report_clusters

Labels are discarded once the reporter has rebuilt the images; the result
carries PNG bytes, per-cluster statistics, cluster centers, timing and
quality metrics.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from .clustering import AbortHook, Algorithm, create_clusterer
from .config import ProcessingOptions
from .preprocessing import extract_features, preprocess
from .preprocessing.pipeline import ImageInput
from .report import (
    ClusterStat,
    QualityMetrics,
    compute_quality_metrics,
    encode_png,
    placeholder_metrics,
    report_clusters,
    save_json
)

logger = logging.getLogger(__name__)


@dataclass
class SegmentationResult:
    """
    Everything a consumer needs from one segmentation run.

    Attributes:
        algorithm: 'kmeans', 'dbscan' or 'meanshift'
        n_clusters: Number of non-noise clusters
        cluster_stats: Sorted by descending percentage
        segmented_image: PNG bytes of the recolored image
        cluster_images: PNG bytes per cluster, aligned with cluster_stats
        preprocessed_image: PNG bytes of the buffer that was clustered
        edge_map: PNG bytes of the Sobel edge map, when edge detection ran
        processing_time: Seconds spent preprocessing, clustering and reporting
        metrics: Quality scores (placeholders unless requested)
        centers: Representative color per label id, shape (K, 3), in the
                 color space of the preprocessed image
        noise_count: Pixels left unassigned (density-based variant only)
        width: Width of the processed image
        height: Height of the processed image
    """
    algorithm: str
    n_clusters: int
    cluster_stats: List[ClusterStat]
    segmented_image: bytes
    cluster_images: List[bytes]
    preprocessed_image: bytes
    processing_time: float
    metrics: QualityMetrics
    centers: np.ndarray
    edge_map: Optional[bytes] = None
    noise_count: int = 0
    width: int = 0
    height: int = 0
    created: datetime = field(default_factory=datetime.now)

    @property
    def silhouette_score(self) -> float:
        return self.metrics.silhouette

    @property
    def calinski_harabasz(self) -> float:
        return self.metrics.calinski_harabasz

    @property
    def davies_bouldin(self) -> float:
        return self.metrics.davies_bouldin

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    def to_dict(self, filename: Optional[str] = None) -> dict:
        """
        JSON-ready summary (images excluded).

        Args:
            filename: Optional source file name to record

        Returns:
            summary: Algorithm, metrics, color palette and timestamp
        """
        metrics = {
            'clusters': self.n_clusters,
            'processingTime': self.processing_time,
            'noisePixels': self.noise_count,
        }
        metrics.update(self.metrics.to_dict())
        return {
            'filename': filename or 'segmented_image',
            'algorithm': self.algorithm,
            'size': {'width': self.width, 'height': self.height},
            'metrics': metrics,
            'colorPalette': [stat.to_dict() for stat in self.cluster_stats],
            'centers': np.round(self.centers, 3).tolist(),
            'timestamp': self.created.isoformat(),
        }

    def save_json(self, path: Union[str, Path], filename: Optional[str] = None) -> Path:
        """Write to_dict() to `path`."""
        return save_json(self.to_dict(filename), path)

    def __str__(self) -> str:
        return (
            f"SegmentationResult(algorithm={self.algorithm}, "
            f"clusters={self.n_clusters}, "
            f"size={self.width}x{self.height}, "
            f"time={self.processing_time:.2f}s)"
        )


def segment(
    image: ImageInput,
    algorithm: Union[str, Algorithm] = Algorithm.KMEANS,
    options: Optional[ProcessingOptions] = None,
    config=None,
    rng: Optional[np.random.Generator] = None,
    should_abort: Optional[AbortHook] = None
) -> SegmentationResult:
    """
    Segment an image into color clusters.

    Args:
        image: Encoded raster bytes, binary file object, PIL image or
               uint8 (H, W, 3|4) array
        algorithm: 'kmeans' | 'dbscan' | 'meanshift' (or an alias such as
                   'centroid', 'density', 'mode_seeking')
        options: Preprocessing options. If None, uses defaults.
        config: Algorithm config (KMeansConfig, DBSCANConfig or
                MeanShiftConfig). If None, uses defaults.
        rng: Pseudo-random source for the randomized algorithms
        should_abort: Cancellation hook polled during clustering

    Returns:
        result: SegmentationResult

    Raises:
        ConfigurationError: Unknown algorithm or invalid configuration
        UnsupportedInputError: Non-raster input (e.g. PDF)
        DecodeError: Unreadable image bytes
        SegmentationAborted: should_abort() returned True

    Example:
        >>> result = segment(png_bytes, 'kmeans', ProcessingOptions.from_preset('basic'))
        >>> [stat.percentage for stat in result.cluster_stats]
        [41.2, 30.5, 15.1, 9.0, 4.2]
    """
    options = options or ProcessingOptions()
    algorithm = Algorithm.parse(algorithm)
    clusterer = create_clusterer(algorithm, config, rng=rng)

    start = time.perf_counter()
    buffer = preprocess(image, options)
    h, w = buffer.shape[:2]
    logger.info("Segmenting %dx%d image with %s", w, h, algorithm.value)

    features = extract_features(buffer)
    clustering = clusterer.fit_predict(features, should_abort=should_abort)
    report = report_clusters(clustering.labels, (h, w))

    if options.compute_metrics:
        metrics = compute_quality_metrics(
            features, clustering.labels,
            random_state=getattr(clusterer.config, 'random_state', 42)
        )
    else:
        metrics = placeholder_metrics()
    elapsed = time.perf_counter() - start

    logger.info(
        "%s produced %d clusters (%d noise pixels) in %.3fs",
        algorithm.value, report.n_clusters, report.noise_count, elapsed
    )

    return SegmentationResult(
        algorithm=algorithm.value,
        n_clusters=report.n_clusters,
        cluster_stats=report.stats,
        segmented_image=encode_png(report.segmented),
        cluster_images=[encode_png(cluster_image) for cluster_image in report.cluster_images],
        preprocessed_image=encode_png(buffer),
        processing_time=elapsed,
        metrics=metrics,
        centers=clustering.centers,
        edge_map=encode_png(buffer) if options.edge_detection else None,
        noise_count=report.noise_count,
        width=w,
        height=h
    )
