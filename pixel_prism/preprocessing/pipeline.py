"""
Preprocessing Pipeline

Decodes the source image into an RGBA PixelBuffer and applies, in fixed
order, the configured steps:

    resize -> color space conversion -> box blur -> Sobel edge detection

Each step is skipped when its option disables it.
"""

import io
import logging
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..config import ProcessingOptions
from ..errors import DecodeError, UnsupportedInputError
from ..filters import convert_color_space, box_blur, sobel_edges

logger = logging.getLogger(__name__)

PDF_MAGIC = b'%PDF'

ImageInput = Union[bytes, bytearray, memoryview, io.IOBase, Image.Image, np.ndarray]


def _read_bytes(image) -> bytes:
    if isinstance(image, (bytes, bytearray, memoryview)):
        return bytes(image)
    if hasattr(image, 'read'):
        data = image.read()
        if isinstance(data, (bytes, bytearray)):
            return bytes(data)
    raise UnsupportedInputError(
        f"Expected encoded image bytes, a binary file object, a PIL image or "
        f"a numpy array, got {type(image).__name__}"
    )


def _array_to_image(array: np.ndarray) -> Image.Image:
    if array.ndim != 3 or array.shape[2] not in (3, 4):
        raise UnsupportedInputError(
            f"Image array must have shape (H, W, 3) or (H, W, 4), got {array.shape}"
        )
    if array.dtype != np.uint8:
        raise UnsupportedInputError(f"Image array must be uint8, got {array.dtype}")
    return Image.fromarray(np.ascontiguousarray(array))


def decode_image(image: ImageInput) -> Image.Image:
    """
    Turn any supported input into an RGBA PIL image.

    Args:
        image: Encoded raster bytes (PNG, JPEG, ...), a binary file object,
               a PIL image, or a uint8 array of shape (H, W, 3|4)

    Returns:
        decoded: PIL image in RGBA mode

    Raises:
        UnsupportedInputError: For PDF payloads or unsupported input types
        DecodeError: If the bytes cannot be decoded as a raster image
    """
    if isinstance(image, Image.Image):
        return image.convert('RGBA')
    if isinstance(image, np.ndarray):
        return _array_to_image(image).convert('RGBA')

    data = _read_bytes(image)
    if data.lstrip()[:4] == PDF_MAGIC:
        raise UnsupportedInputError("PDF documents are not supported, upload a raster image")
    if not data:
        raise DecodeError("Image payload is empty")

    try:
        decoded = Image.open(io.BytesIO(data))
        decoded.load()
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError,
            Image.DecompressionBombError) as exc:
        raise DecodeError(f"Could not decode image: {exc}") from exc

    return decoded.convert('RGBA')


def resolve_target_size(
    native_size: Tuple[int, int],
    options: ProcessingOptions
) -> Tuple[int, int]:
    """Return (width, height), falling back to the native size per axis."""
    native_w, native_h = native_size
    return (
        options.target_width or native_w,
        options.target_height or native_h,
    )


def preprocess(image: ImageInput, options: Optional[ProcessingOptions] = None) -> np.ndarray:
    """
    Decode and preprocess an image into a PixelBuffer.

    Args:
        image: Any input accepted by decode_image()
        options: Processing options. If None, uses defaults (no-op steps).

    Returns:
        buffer: uint8 array of shape (H, W, 4)

    Raises:
        UnsupportedInputError: Input rejected before decoding
        DecodeError: Input could not be decoded

    Example:
        >>> options = ProcessingOptions(target_width=200, color_space='lab')
        >>> buffer = preprocess(png_bytes, options)
        >>> buffer.shape
        (150, 200, 4)
    """
    options = options or ProcessingOptions()
    decoded = decode_image(image)

    target = resolve_target_size(decoded.size, options)
    if target != decoded.size:
        logger.debug("Resizing %dx%d -> %dx%d", decoded.width, decoded.height, *target)
        decoded = decoded.resize(target, Image.Resampling.BILINEAR)

    buffer = np.array(decoded, dtype=np.uint8)

    if options.color_space != 'rgb':
        logger.debug("Converting to %s", options.color_space)
        buffer = convert_color_space(buffer, options.color_space)

    if options.blur_radius > 0:
        logger.debug("Box blur radius %.2f", options.blur_radius)
        buffer = box_blur(buffer, options.blur_radius)

    if options.edge_detection:
        logger.debug("Sobel edge detection")
        buffer = sobel_edges(buffer)

    return buffer
