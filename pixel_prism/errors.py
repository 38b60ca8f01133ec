"""
Exception hierarchy for the segmentation engine.

Every failure surfaced to callers derives from SegmentationError so a host
application can catch a single type. Empty clusters, zero-neighbour queries
and empty mean-shift windows are normal states and never raise.
"""


class SegmentationError(Exception):
    """Base class for all segmentation failures."""


class DecodeError(SegmentationError):
    """The input bytes could not be decoded as a raster image."""


class UnsupportedInputError(SegmentationError):
    """The input is not a raster image (e.g. a PDF document)."""


class ConfigurationError(SegmentationError, ValueError):
    """Invalid processing options or algorithm configuration."""


class SegmentationAborted(SegmentationError):
    """The caller's abort hook requested cancellation mid-computation."""
