"""
Color & Filter Kernels.

Pure pixel-buffer transforms used by the preprocessing pipeline:
1. Color space conversion (RGB <-> LAB, RGB -> HSV)
2. Box-blur approximation of a Gaussian blur
3. Sobel edge magnitude
"""

from .color_space import (
    rgb_to_xyz,
    rgb_to_lab,
    lab_to_rgb,
    encode_lab,
    decode_lab,
    rgb_to_hsv,
    convert_color_space,
    to_uint8
)

from .kernels import (
    box_blur,
    sobel_edges
)

__all__ = [
    # Color space
    'rgb_to_xyz',
    'rgb_to_lab',
    'lab_to_rgb',
    'encode_lab',
    'decode_lab',
    'rgb_to_hsv',
    'convert_color_space',
    'to_uint8',
    # Kernels
    'box_blur',
    'sobel_edges'
]
