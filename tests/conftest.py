"""Shared test fixtures."""

from __future__ import annotations

import io

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest
from PIL import Image


RED = (255, 0, 0)
BLUE = (0, 0, 255)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def make_buffer(height: int, width: int, color=RED) -> np.ndarray:
    """Solid opaque RGBA buffer."""
    buffer = np.zeros((height, width, 4), dtype=np.uint8)
    buffer[..., :3] = color
    buffer[..., 3] = 255
    return buffer


def to_png(buffer: np.ndarray) -> bytes:
    stream = io.BytesIO()
    Image.fromarray(buffer).save(stream, format='PNG')
    return stream.getvalue()


@pytest.fixture
def solid_red() -> np.ndarray:
    """4x4 solid red image."""
    return make_buffer(4, 4, RED)


@pytest.fixture
def solid_red_png(solid_red) -> bytes:
    return to_png(solid_red)


@pytest.fixture
def black_white() -> np.ndarray:
    """2x2 image: top row black, bottom row white."""
    buffer = make_buffer(2, 2, BLACK)
    buffer[1, :, :3] = WHITE
    return buffer


@pytest.fixture
def black_white_png(black_white) -> bytes:
    return to_png(black_white)


@pytest.fixture
def red_blue() -> np.ndarray:
    """8x8 image: left half red, right half blue."""
    buffer = make_buffer(8, 8, RED)
    buffer[:, 4:, :3] = BLUE
    return buffer


@pytest.fixture
def red_blue_png(red_blue) -> bytes:
    return to_png(red_blue)


@pytest.fixture
def noisy_image() -> np.ndarray:
    """12x10 image with random colors, seeded."""
    rng = np.random.default_rng(7)
    buffer = make_buffer(10, 12)
    buffer[..., :3] = rng.integers(0, 256, size=(10, 12, 3), dtype=np.uint8)
    return buffer
