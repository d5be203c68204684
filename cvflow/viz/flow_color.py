"""HSL colour coding of flow magnitude and direction."""
import numpy as np


def hsl_to_rgb(hsl):
    """Convert an (H, W, 3) HSL image with channels in [0, 1] to RGB in [0, 1]."""
    h = np.mod(hsl[:, :, 0], 1.0) * 6.0
    s = np.clip(hsl[:, :, 1], 0, 1)
    l = np.clip(hsl[:, :, 2], 0, 1)

    c = (1.0 - np.abs(2.0 * l - 1.0)) * s
    x = c * (1.0 - np.abs(np.mod(h, 2.0) - 1.0))
    m = l - c / 2.0
    zero = np.zeros_like(c)

    sector = np.floor(h).astype(int) % 6
    r = np.choose(sector, [c, x, zero, zero, x, c])
    g = np.choose(sector, [x, c, c, x, zero, zero])
    b = np.choose(sector, [zero, zero, x, c, c, x])
    return np.stack([r + m, g + m, b + m], axis=2)


def flow_to_hsl(norm, angle, max_norm=None):
    """Colour-code a derived flow field.

    Hue follows the direction (angle / 360), saturation the magnitude
    relative to max_norm, lightness is fixed at 0.5.

    Args:
        norm: Flow magnitude (H, W).
        angle: Flow direction in degrees (H, W).
        max_norm: Magnitude mapped to full saturation. If None, uses
            max(norm.max(), 1e-2).

    Returns:
        img: (H, W, 3) uint8 RGB image.
    """
    norm = np.asarray(norm, dtype=float)
    angle = np.asarray(angle, dtype=float)
    if max_norm is None:
        max_norm = max(norm.max(), 1e-2) if norm.size else 1e-2

    hsl = np.empty((*norm.shape, 3))
    hsl[:, :, 0] = angle / 360.0
    hsl[:, :, 1] = norm / max_norm
    hsl[:, :, 2] = 0.5

    rgb = hsl_to_rgb(hsl)
    return np.floor(255 * np.clip(rgb, 0, 1) + 0.5).astype(np.uint8)
