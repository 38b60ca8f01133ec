"""
Visualization palette.

Cluster identity is rendered with maximally distinguishable hues, not with
the measured cluster color.
"""

from typing import Tuple

Color = Tuple[int, int, int]

VIBRANT_PALETTE: Tuple[Color, ...] = (
    (255, 0, 0),
    (0, 255, 0),
    (0, 0, 255),
    (255, 255, 0),
    (255, 0, 255),
    (0, 255, 255),
    (255, 128, 0),
    (128, 0, 255),
    (255, 128, 128),
    (128, 255, 128),
)

NOISE_COLOR: Color = (0, 0, 0)


def palette_color(index: int) -> Color:
    """Palette entry for the index-th cluster, cycling after 10."""
    return VIBRANT_PALETTE[index % len(VIBRANT_PALETTE)]
