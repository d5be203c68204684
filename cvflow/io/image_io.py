"""Image loading for the demonstration routines."""
import os

import numpy as np


def load_image(filename, gray=False):
    """Load an image file as a float array in [0, 1].

    Args:
        filename: Path to any image format Pillow reads.
        gray: Convert to a single channel (H, W).

    Returns:
        im: float64 array, (H, W) or (H, W, 3).

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    from PIL import Image

    if not os.path.exists(filename):
        raise FileNotFoundError(f"Image file not found: {filename}")

    with Image.open(filename) as img:
        img = img.convert('L' if gray else 'RGB')
        im = np.array(img).astype(np.float64)
    return im / 255.0


def synthetic_pair(height=120, width=160, shift=(2, 1), seed=0):
    """Smooth random texture and a copy translated by shift.

    Args:
        height, width: Image size.
        shift: (dx, dy) integer displacement of the second image.
        seed: Random seed.

    Returns:
        im1, im2: float64 images (H, W) in [0, 1].
    """
    from skimage.filters import gaussian

    rng = np.random.default_rng(seed)
    texture = gaussian(rng.random((height + 20, width + 20)), sigma=2)
    texture = (texture - texture.min()) / (texture.max() - texture.min())

    dx, dy = shift
    im1 = texture[10:10 + height, 10:10 + width]
    im2 = texture[10 - dy:10 - dy + height, 10 - dx:10 - dx + width]
    return im1.copy(), im2.copy()
