"""
PixelPrism - Unsupervised color image segmentation.

This package partitions the pixels of a raster image into a small number of
visually coherent clusters using K-Means, DBSCAN or Mean Shift over 5D
(color + weighted position) feature vectors, and reports per-cluster
statistics and recolored images.

Example:
    >>> from pixel_prism import segment, ProcessingOptions
    >>> with open("photo.jpg", "rb") as f:
    ...     result = segment(f.read(), "kmeans", ProcessingOptions(color_space="lab"))
    >>> print(result.n_clusters, result.processing_time)
"""

from .config import ProcessingOptions, PRESETS
from .errors import (
    SegmentationError,
    DecodeError,
    UnsupportedInputError,
    ConfigurationError,
    SegmentationAborted
)
from .segmenter import segment, SegmentationResult

__all__ = [
    'segment',
    'SegmentationResult',
    'ProcessingOptions',
    'PRESETS',
    'SegmentationError',
    'DecodeError',
    'UnsupportedInputError',
    'ConfigurationError',
    'SegmentationAborted',
]

__version__ = "0.1.0"
