"""Conversions between float image arrays and the buffers OpenCV expects.

Images are handled as (H, W) or (H, W, C) arrays. Float images hold
intensities in [0, 1]; OpenCV routines take 8-bit or 32-bit float
buffers.
"""
import logging

import cv2
import numpy as np

from cvflow.errors import ShapeMismatchError

logger = logging.getLogger(__name__)


def first_channel(image, caller='cvflow'):
    """Reduce an image to a single channel.

    Multi-channel images keep only their first channel, with a warning.

    Args:
        image: (H, W) or (H, W, C) array.
        caller: Name used in the warning message.

    Returns:
        (H, W) array.
    """
    image = np.asarray(image)
    if image.ndim == 2:
        return image
    if image.ndim != 3:
        raise ShapeMismatchError(
            f"expected an (H, W) or (H, W, C) image, got shape {image.shape}"
        )
    if image.shape[2] > 1:
        logger.warning('%s: computing on first channel of %d', caller, image.shape[2])
    return image[:, :, 0]


def to_8u(image):
    """Convert an image to an 8-bit buffer.

    Float images are taken to be in [0, 1] and mapped to [0, 255] with
    rounding; integer images are clipped to [0, 255].
    """
    image = np.asarray(image)
    if image.dtype == np.uint8:
        return np.ascontiguousarray(image)
    if np.issubdtype(image.dtype, np.floating):
        image = np.floor(np.clip(image, 0.0, 1.0) * 255.0 + 0.5)
    return np.ascontiguousarray(np.clip(image, 0, 255).astype(np.uint8))


def to_32f(image):
    """Convert an image to a 32-bit float buffer.

    8-bit images are mapped to [0, 1]; other data keeps its values.
    """
    image = np.asarray(image)
    if image.dtype == np.uint8:
        return np.ascontiguousarray(image.astype(np.float32) / 255.0)
    return np.ascontiguousarray(image.astype(np.float32))


def from_8u(buffer):
    """Convert an 8-bit buffer back to a float64 image in [0, 1]."""
    return np.asarray(buffer, dtype=np.uint8).astype(np.float64) / 255.0


def to_bgr8u(image):
    """Convert a gray or RGB float image to an 8-bit BGR buffer for drawing."""
    buf = to_8u(image)
    if buf.ndim == 2:
        return cv2.cvtColor(buf, cv2.COLOR_GRAY2BGR)
    if buf.shape[2] == 1:
        return cv2.cvtColor(np.ascontiguousarray(buf[:, :, 0]), cv2.COLOR_GRAY2BGR)
    return cv2.cvtColor(np.ascontiguousarray(buf[:, :, :3]), cv2.COLOR_RGB2BGR)


def from_bgr8u(buffer, like):
    """Convert an 8-bit BGR buffer to RGB, in the value range of like.

    Args:
        buffer: (H, W, 3) uint8 BGR array.
        like: The image the buffer was made from. Float images get a float
            result in [0, 1], uint8 images a uint8 result.

    Returns:
        (H, W, 3) RGB array. Gray inputs come back as RGB so drawn colours
        survive.
    """
    rgb = cv2.cvtColor(buffer, cv2.COLOR_BGR2RGB)
    if np.asarray(like).dtype != np.uint8:
        return from_8u(rgb)
    return rgb
