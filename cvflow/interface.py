"""
High-level interface to the vision primitives.

Every call takes plain numpy images, (H, W) gray or (H, W, C) colour,
float in [0, 1] or uint8. Multi-channel input is reduced to its first
channel, as the underlying routines work on single-channel buffers.
"""
import contextlib
import copy
import logging

import cv2
import numpy as np

from cvflow.core.flow_field import derive, postprocess_flow
from cvflow.errors import BackendError, ShapeMismatchError
from cvflow.methods.backends import compute_raw_flow
from cvflow.methods.config import (
    FeaturesConfig, HarrisConfig, PyrLKConfig, load_flow_config
)
from cvflow.utils.conversions import (
    first_channel, to_8u, to_32f, to_bgr8u, from_bgr8u
)

logger = logging.getLogger(__name__)

YELLOW = (0, 255, 255)  # BGR
RED = (0, 0, 255)

_SUBPIX_CRITERIA = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 20, 0.03)


@contextlib.contextmanager
def _vision_call(name):
    try:
        yield
    except cv2.error as exc:
        raise BackendError(f"{name} failed: {exc}") from exc


def _gray_pair(pair, caller):
    if len(pair) != 2:
        raise ShapeMismatchError(f"{caller} expects a pair of images, got {len(pair)}")
    im1, im2 = (np.asarray(im) for im in pair)
    for im in (im1, im2):
        if im.ndim not in (2, 3):
            raise ShapeMismatchError(
                f"{caller}: inconsistent input size {im.shape}"
            )
    if im1.shape[:2] != im2.shape[:2]:
        raise ShapeMismatchError(
            f"{caller}: image sizes differ: {im1.shape[:2]} vs {im2.shape[:2]}"
        )
    return to_8u(first_channel(im1, caller)), to_8u(first_channel(im2, caller))


def calc_optical_flow(pair, method='BM', params=None, config=None):
    """Compute the optical flow between two images.

    The flow is computed with one of three methods: block matching (BM),
    Lucas-Kanade (LK) or Horn-Schunck (HS), then turned into magnitude and
    direction maps.

    Args:
        pair: (im1, im2), two images of the same size.
        method: 'BM', 'LK' or 'HS'. Ignored when config is given.
        params: Optional dict of FlowConfig overrides, e.g.
            {'block_w': 15, 'raw': True}.
        config: A FlowConfig. It is not modified; params are applied to a
            copy.

    Returns:
        With config.raw: (flow_x, flow_y).
        Otherwise: (norm, angle, flow_x, flow_y), angle in degrees.
        All fields have the image size when config.autoscale is set;
        otherwise they keep the backend's resolution (BM returns one cell
        per block).

    Raises:
        ShapeMismatchError: If the images do not form a valid pair.
        ConfigError: On invalid options or an unknown method.
        BackendError: If the vision library fails.
    """
    if config is None:
        config = load_flow_config(method, params)
    elif params is not None:
        config = copy.copy(config).parse_input_parameter(params)

    prev, nxt = _gray_pair(pair, 'calc_optical_flow')
    flow_x, flow_y = compute_raw_flow(prev, nxt, config)
    return postprocess_flow(flow_x, flow_y, target_size=prev.shape,
                            raw=config.raw, autoscale=config.autoscale)


def corner_harris(image, blocksize=9, aperturesize=3, k=0.04):
    """Harris corner response of an image.

    Args:
        image: Input image; only the first channel is used.
        blocksize: Neighbourhood size.
        aperturesize: Sobel aperture size, odd and at most 31. An even
            size is lowered by one.
        k: Harris detector free parameter.

    Returns:
        harris: Response map (H, W).
    """
    config = HarrisConfig(blocksize=blocksize, aperturesize=aperturesize, k=k)
    img = to_32f(first_channel(image, 'corner_harris'))
    with _vision_call('corner_harris'):
        harris = cv2.cornerHarris(img, config.blocksize, config.aperturesize, config.k)
    return harris.astype(float)


def _draw_points(image, points, radius=3):
    buf = to_bgr8u(image)
    for x, y in points:
        cv2.circle(buf, (int(round(x)), int(round(y))), radius, YELLOW, 1)
    return from_bgr8u(buf, image)


def good_features_to_track(image, count=500, quality=0.01, min_distance=10, win_size=10):
    """Find strong corners with sub-pixel accuracy.

    Args:
        image: Input image; only the first channel is used for detection.
        count: Maximum number of points to return.
        quality: Minimal accepted corner quality, relative to the best.
        min_distance: Minimum distance in pixels between points.
        win_size: Half size of the sub-pixel refinement window.

    Returns:
        points: (2, n) array of sub-pixel (x, y) positions, n <= count.
        image_out: RGB copy of the image with yellow circles around the
            points.
    """
    config = FeaturesConfig(count=count, quality=quality,
                            min_distance=min_distance, win_size=win_size)
    gray = to_8u(first_channel(image, 'good_features_to_track'))
    H, W = gray.shape

    with _vision_call('good_features_to_track'):
        corners = cv2.goodFeaturesToTrack(gray, config.count, config.quality,
                                          config.min_distance)
        if corners is None:
            corners = np.zeros((0, 1, 2), dtype=np.float32)
        win = min(config.win_size, (W - 5) // 2, (H - 5) // 2)
        if len(corners) and win > 0:
            corners = cv2.cornerSubPix(gray, corners, (win, win), (-1, -1),
                                       _SUBPIX_CRITERIA)

    xy = corners.reshape(-1, 2).astype(float)
    logger.debug('good_features_to_track: %d points', len(xy))
    return xy.T, _draw_points(image, xy)


def calc_optical_flow_pyr_lk(pair, count=500, quality=0.01, min_distance=5,
                             win_size=25, levels=3):
    """Sparse optical flow with pyramidal Lucas-Kanade.

    Good features are detected in the first image and tracked into the
    second. The displacement of every tracked point is written into
    full-size flow fields at the point's position in the first image;
    all other cells are zero.

    Args:
        pair: (im1, im2), two images of the same size.
        count: Maximum number of points to track.
        quality, min_distance: Feature detection options.
        win_size: Tracking window size at each pyramid level.
        levels: Pyramid depth (0 means a single level).

    Returns:
        norm, angle, flow_x, flow_y: (H, W) fields as in calc_optical_flow.
        points: (n, 2) tracked (x, y) positions in the second image.
        image_out: RGB copy of the second image with the flow drawn as
            lines ending in yellow circles.
    """
    config = PyrLKConfig(count=count, quality=quality, min_distance=min_distance,
                         win_size=win_size, levels=levels)
    prev, nxt = _gray_pair(pair, 'calc_optical_flow_pyr_lk')
    H, W = prev.shape

    flow_x = np.zeros((H, W))
    flow_y = np.zeros((H, W))

    with _vision_call('calc_optical_flow_pyr_lk'):
        p0 = cv2.goodFeaturesToTrack(prev, config.count, config.quality,
                                     config.min_distance)
        if p0 is None:
            src = dst = np.zeros((0, 2))
        else:
            p1, status, _ = cv2.calcOpticalFlowPyrLK(
                prev, nxt, p0, None,
                winSize=(config.win_size, config.win_size),
                maxLevel=config.levels,
                criteria=_SUBPIX_CRITERIA)
            found = status.ravel() == 1
            src = p0.reshape(-1, 2)[found].astype(float)
            dst = p1.reshape(-1, 2)[found].astype(float)

    logger.debug('calc_optical_flow_pyr_lk: tracked %d points', len(dst))

    cols = np.clip(np.round(src[:, 0]).astype(int), 0, W - 1)
    rows = np.clip(np.round(src[:, 1]).astype(int), 0, H - 1)
    flow_x[rows, cols] = dst[:, 0] - src[:, 0]
    flow_y[rows, cols] = dst[:, 1] - src[:, 1]
    norm, angle = derive(flow_x, flow_y)

    buf = to_bgr8u(pair[1])
    for (x0, y0), (x1, y1) in zip(src, dst):
        start = (int(round(x0)), int(round(y0)))
        end = (int(round(x1)), int(round(y1)))
        cv2.line(buf, start, end, RED, 1)
        cv2.circle(buf, end, 2, YELLOW, 1)
    image_out = from_bgr8u(buf, pair[1])

    return norm, angle, flow_x, flow_y, dst, image_out
