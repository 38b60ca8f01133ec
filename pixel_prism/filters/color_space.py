"""
Color Space Conversion

Vectorized sRGB <-> CIE L*a*b* and sRGB -> HSV conversions. The low-level
functions work on float arrays of shape (..., 3); convert_color_space()
applies them to an RGBA PixelBuffer and re-scales the result into [0, 255]
so it can be stored back in an 8-bit buffer.

8-bit LAB encoding:
    L in [0, 100]     -> L * 255 / 100
    a, b in ~[-128, 127] -> a + 128, b + 128
"""

import numpy as np


# ============================================================================
# Constants
# ============================================================================

D65_WHITE = np.array([95.047, 100.0, 108.883])
"""Reference white (X, Y, Z) for the D65 illuminant."""

RGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
])
"""Linear sRGB -> XYZ (scaled to [0, 1]) matrix."""

XYZ_TO_RGB = np.linalg.inv(RGB_TO_XYZ)

LAB_EPSILON = 0.008856
LAB_KAPPA = 7.787
LAB_OFFSET = 16.0 / 116.0


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Round and clamp float values to uint8, like a clamped byte array."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


# ============================================================================
# sRGB <-> LAB
# ============================================================================

def _linearize(channel: np.ndarray) -> np.ndarray:
    return np.where(
        channel > 0.04045,
        np.power((channel + 0.055) / 1.055, 2.4),
        channel / 12.92
    )


def _delinearize(channel: np.ndarray) -> np.ndarray:
    channel = np.clip(channel, 0.0, None)
    return np.where(
        channel > 0.0031308,
        1.055 * np.power(channel, 1.0 / 2.4) - 0.055,
        channel * 12.92
    )


def rgb_to_xyz(rgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB values in [0, 255] to CIE XYZ scaled to [0, ~100].

    Args:
        rgb: Array of shape (..., 3)

    Returns:
        xyz: Array of shape (..., 3)
    """
    linear = _linearize(np.asarray(rgb, dtype=np.float64) / 255.0)
    return linear @ RGB_TO_XYZ.T * 100.0


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB values in [0, 255] to L*a*b* in natural ranges.

    Args:
        rgb: Array of shape (..., 3)

    Returns:
        lab: Array of shape (..., 3) with L in [0, 100]
    """
    xyz = rgb_to_xyz(rgb) / D65_WHITE
    f = np.where(
        xyz > LAB_EPSILON,
        np.cbrt(xyz),
        LAB_KAPPA * xyz + LAB_OFFSET
    )
    fx, fy, fz = f[..., 0], f[..., 1], f[..., 2]
    return np.stack([
        116.0 * fy - 16.0,
        500.0 * (fx - fy),
        200.0 * (fy - fz),
    ], axis=-1)


def lab_to_rgb(lab: np.ndarray) -> np.ndarray:
    """
    Inverse of rgb_to_lab().

    Args:
        lab: Array of shape (..., 3) with L in [0, 100]

    Returns:
        rgb: Float array of shape (..., 3), clipped to [0, 255]
    """
    lab = np.asarray(lab, dtype=np.float64)
    fy = (lab[..., 0] + 16.0) / 116.0
    fx = fy + lab[..., 1] / 500.0
    fz = fy - lab[..., 2] / 200.0
    f = np.stack([fx, fy, fz], axis=-1)

    cubed = f ** 3
    xyz = np.where(cubed > LAB_EPSILON, cubed, (f - LAB_OFFSET) / LAB_KAPPA)
    xyz = xyz * D65_WHITE / 100.0

    linear = xyz @ XYZ_TO_RGB.T
    return np.clip(_delinearize(linear) * 255.0, 0.0, 255.0)


def encode_lab(lab: np.ndarray) -> np.ndarray:
    """Scale natural-range LAB into [0, 255] per channel (float)."""
    encoded = np.empty_like(lab, dtype=np.float64)
    encoded[..., 0] = lab[..., 0] * 255.0 / 100.0
    encoded[..., 1] = lab[..., 1] + 128.0
    encoded[..., 2] = lab[..., 2] + 128.0
    return encoded


def decode_lab(encoded: np.ndarray) -> np.ndarray:
    """Inverse of encode_lab()."""
    encoded = np.asarray(encoded, dtype=np.float64)
    lab = np.empty_like(encoded)
    lab[..., 0] = encoded[..., 0] * 100.0 / 255.0
    lab[..., 1] = encoded[..., 1] - 128.0
    lab[..., 2] = encoded[..., 2] - 128.0
    return lab


# ============================================================================
# sRGB -> HSV
# ============================================================================

def rgb_to_hsv(rgb: np.ndarray) -> np.ndarray:
    """
    Convert sRGB values in [0, 255] to HSV scaled to [0, 255].

    Hue is computed in degrees [0, 360) with the max/min/delta sector
    formula and then rescaled by 255/360. Saturation and value are scaled
    from [0, 1] to [0, 255].

    Args:
        rgb: Array of shape (..., 3)

    Returns:
        hsv: Float array of shape (..., 3)
    """
    rgb = np.asarray(rgb, dtype=np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    c_max = rgb.max(axis=-1)
    c_min = rgb.min(axis=-1)
    delta = c_max - c_min

    safe_delta = np.where(delta == 0, 1.0, delta)
    hue = np.select(
        [delta == 0, c_max == r, c_max == g],
        [
            0.0,
            np.mod((g - b) / safe_delta, 6.0),
            (b - r) / safe_delta + 2.0,
        ],
        default=(r - g) / safe_delta + 4.0
    ) * 60.0
    hue = np.mod(hue, 360.0)

    saturation = np.where(c_max == 0, 0.0, delta / np.where(c_max == 0, 1.0, c_max))

    return np.stack([
        hue / 360.0 * 255.0,
        saturation * 255.0,
        c_max * 255.0,
    ], axis=-1)


# ============================================================================
# Buffer-level conversion
# ============================================================================

def convert_color_space(buffer: np.ndarray, color_space: str) -> np.ndarray:
    """
    Convert the color channels of an RGBA PixelBuffer.

    Alpha is carried over unchanged. 'rgb' returns the input buffer itself.

    Args:
        buffer: uint8 array of shape (H, W, 4)
        color_space: 'rgb', 'lab' or 'hsv'

    Returns:
        converted: New uint8 array of shape (H, W, 4) (or the input for 'rgb')

    Raises:
        ValueError: If color_space is not supported
    """
    color_space = color_space.lower()
    if color_space == 'rgb':
        return buffer
    if color_space == 'lab':
        converted = encode_lab(rgb_to_lab(buffer[..., :3]))
    elif color_space == 'hsv':
        converted = rgb_to_hsv(buffer[..., :3])
    else:
        raise ValueError(f"Unsupported color space '{color_space}'. Use 'rgb', 'lab' or 'hsv'.")

    output = np.empty_like(buffer)
    output[..., :3] = to_uint8(converted)
    output[..., 3] = buffer[..., 3]
    return output
