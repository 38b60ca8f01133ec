"""
Filter Kernels

Box-blur approximation of a Gaussian blur and a per-channel Sobel edge
magnitude, both operating on RGBA PixelBuffers (uint8, shape (H, W, 4)).
Each function returns a new buffer; the input is never modified.
"""

import numpy as np
import cv2

from .color_space import to_uint8


def box_blur(buffer: np.ndarray, radius: float) -> np.ndarray:
    """
    Approximate a Gaussian blur with a box average.

    The window is a square of side 2 * floor(radius) + 1 centered on each
    pixel. At the image borders the window is clipped, so boundary pixels
    average over fewer samples (no wrapping or mirroring). All four
    channels, alpha included, are averaged.

    Args:
        buffer: uint8 array of shape (H, W, 4)
        radius: Blur radius. Values whose floor is 0 are a no-op.

    Returns:
        blurred: New buffer, or the input buffer itself when radius < 1
    """
    half = int(np.floor(radius))
    if half <= 0:
        return buffer

    ksize = (2 * half + 1, 2 * half + 1)
    h, w = buffer.shape[:2]

    sums = cv2.boxFilter(
        buffer.astype(np.float64), -1, ksize,
        normalize=False, borderType=cv2.BORDER_CONSTANT
    )
    counts = cv2.boxFilter(
        np.ones((h, w), dtype=np.float64), -1, ksize,
        normalize=False, borderType=cv2.BORDER_CONSTANT
    )
    sums = sums.reshape(h, w, -1)
    return to_uint8(sums / counts.reshape(h, w, 1))


def sobel_edges(buffer: np.ndarray) -> np.ndarray:
    """
    Per-channel Sobel gradient magnitude.

    For each of R, G, B the 3x3 Sobel gradients gx, gy are computed and the
    magnitude sqrt(gx^2 + gy^2) is clamped to 255. Alpha is forced to 255.
    The 1-pixel image border is not processed: its color channels are zero
    (opaque black). Images narrower or shorter than 3 pixels are all border.

    Args:
        buffer: uint8 array of shape (H, W, 4)

    Returns:
        edges: New uint8 array of shape (H, W, 4)
    """
    h, w = buffer.shape[:2]
    edges = np.zeros_like(buffer)
    edges[..., 3] = 255

    if h < 3 or w < 3:
        return edges

    rgb = np.ascontiguousarray(buffer[..., :3], dtype=np.float64)
    gx = cv2.Sobel(rgb, cv2.CV_64F, 1, 0, ksize=3)
    gy = cv2.Sobel(rgb, cv2.CV_64F, 0, 1, ksize=3)
    magnitude = np.minimum(np.sqrt(gx * gx + gy * gy), 255.0)

    edges[1:-1, 1:-1, :3] = to_uint8(magnitude[1:-1, 1:-1])
    return edges
