"""
Raster encoding and JSON export.

Image payloads cross the engine boundary as PNG bytes; summaries are
written as indented JSON.
"""

import io
import json
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from ..errors import DecodeError


def encode_png(buffer: np.ndarray) -> bytes:
    """
    Encode an RGBA (or RGB) uint8 buffer as PNG bytes.

    Args:
        buffer: Array of shape (H, W, 4) or (H, W, 3)

    Returns:
        png: Encoded bytes
    """
    stream = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(buffer, dtype=np.uint8)).save(stream, format='PNG')
    return stream.getvalue()


def decode_png(data: bytes) -> np.ndarray:
    """Decode PNG (or any Pillow-readable) bytes into an RGBA buffer."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return np.array(image.convert('RGBA'), dtype=np.uint8)
    except OSError as exc:
        raise DecodeError(f"Could not decode image: {exc}") from exc


def save_json(data: dict, path: Union[str, Path]) -> Path:
    """
    Write a JSON document, creating parent directories.

    Returns:
        path: The written path
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(data, f, indent=2)
    return path
