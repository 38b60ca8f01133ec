"""
Feature Extraction

Converts a PixelBuffer into one 5D feature vector per pixel:

    [c0, c1, c2, x / width * scale, y / height * scale]

Vectors are emitted in row-major pixel order, which is the join key between
features, labels and the original buffer.
"""

import numpy as np

from ..config import SPATIAL_SCALE


N_FEATURES = 5


def extract_features(buffer: np.ndarray, spatial_scale: float = SPATIAL_SCALE) -> np.ndarray:
    """
    Build per-pixel feature vectors from a PixelBuffer.

    Args:
        buffer: uint8 array of shape (H, W, 4) or (H, W, 3)
        spatial_scale: Multiplier applied to coordinates normalized to [0, 1)

    Returns:
        features: float64 array of shape (H*W, 5)

    Raises:
        ValueError: If buffer is not (H, W, C) with at least 3 channels
    """
    if buffer.ndim != 3 or buffer.shape[2] < 3:
        raise ValueError(f"buffer must have shape (H, W, 3|4), got {buffer.shape}")

    h, w = buffer.shape[:2]
    ys, xs = np.mgrid[0:h, 0:w]

    features = np.empty((h * w, N_FEATURES), dtype=np.float64)
    features[:, :3] = buffer[..., :3].reshape(-1, 3)
    features[:, 3] = xs.ravel() / w * spatial_scale
    features[:, 4] = ys.ravel() / h * spatial_scale
    return features
