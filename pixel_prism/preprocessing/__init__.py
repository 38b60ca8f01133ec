"""
Preprocessing Pipeline and Feature Extractor.

Decodes/resizes the source image, applies the configured kernels and
converts the resulting PixelBuffer into 5D feature vectors.
"""

from .pipeline import (
    decode_image,
    resolve_target_size,
    preprocess
)

from .features import (
    N_FEATURES,
    extract_features
)

__all__ = [
    'decode_image',
    'resolve_target_size',
    'preprocess',
    'N_FEATURES',
    'extract_features'
]
