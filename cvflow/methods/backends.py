"""
Dense optical flow backends.

Each Method maps to one routine of an external vision library:

    BM  OpenCV DIS patch matching, sampled on a block grid
    LK  scikit-image iterative Lucas-Kanade
    HS  OpenCV variational refinement (brightness constancy + smoothness)

All backends take two 8-bit single-channel images of the same shape and
return the horizontal and vertical flow components as float arrays.
"""
import logging

import cv2
import numpy as np
from skimage.registration import optical_flow_ilk

from cvflow.core.flow_field import rescale
from cvflow.errors import BackendError, ShapeMismatchError, UnsupportedMethodError
from cvflow.methods.config import Method
from cvflow.utils.conversions import to_32f

logger = logging.getLogger(__name__)


def block_grid_shape(image_shape, block_w, block_h, shift_x, shift_y):
    """Size of the block-matching output grid for an image.

    One cell per block position, blocks placed every shift pixels.

    Returns:
        (rows, cols) of the output fields.
    """
    H, W = image_shape
    if block_w > W or block_h > H:
        raise ShapeMismatchError(
            f"block {block_w}x{block_h} does not fit in image {W}x{H}"
        )
    return (H - block_h) // shift_y + 1, (W - block_w) // shift_x + 1


def _initial_flow(config, image_shape):
    """Previous flow resampled to image resolution, as an (H, W, 2) float32."""
    H, W = image_shape
    fx = rescale(config.flow_x, W, H)
    fy = rescale(config.flow_y, W, H)
    return np.ascontiguousarray(np.dstack([fx, fy]).astype(np.float32))


def _dis_frame(image_shape, patch):
    """Frame size and finest pyramid level that DIS can process safely.

    DIS picks its coarsest pyramid level from the longer image side, so a
    thin image can shrink below one patch there. The frame is grown until
    the shorter side holds a patch at that level, and the finest level is
    kept at or below the coarsest one.

    Returns:
        (height, width), finest_scale
    """
    H, W = image_shape
    side = max(H, W, 2 * patch)
    coarsest = max(0, int(np.log2(side / (4.0 * patch)) + 0.5))
    need = max(2 * patch, patch * 2 ** coarsest)
    return (max(H, need), max(W, need)), min(1, coarsest)


def _pad_to(image, shape):
    H, W = image.shape[:2]
    pad = ((0, shape[0] - H), (0, shape[1] - W)) + ((0, 0),) * (image.ndim - 2)
    return np.pad(image, pad, mode='edge')


def block_matching_flow(prev, nxt, config):
    """Block-matching flow.

    Patches of max(block_w, block_h) pixels are matched with OpenCV's DIS
    optical flow. Images too thin for its pyramid are padded by edge
    replication first (see _dis_frame). The dense result is read at the
    centre of every block of the block grid (see block_grid_shape).
    Displacements are limited to the search window (window_w, window_h).

    Args:
        prev, nxt: uint8 images (H, W).
        config: FlowConfig.

    Returns:
        flow_x, flow_y: Flow on the block grid.
    """
    H, W = prev.shape
    rows, cols = block_grid_shape((H, W), config.block_w, config.block_h,
                                  config.shift_x, config.shift_y)

    patch = max(config.block_w, config.block_h)
    stride = max(1, min(config.shift_x, config.shift_y, patch - 1))

    frame, finest = _dis_frame((H, W), patch)
    if frame != (H, W):
        logger.debug('BM: padding %dx%d images to %dx%d', W, H, frame[1], frame[0])

    dis = cv2.DISOpticalFlow_create(cv2.DISOPTICAL_FLOW_PRESET_MEDIUM)
    dis.setPatchSize(patch)
    dis.setPatchStride(stride)
    dis.setFinestScale(finest)

    init = None
    if config.reuse:
        dis.setUseInitialFlow(True)
        init = _pad_to(_initial_flow(config, (H, W)), frame)
    flow = dis.calc(_pad_to(prev, frame), _pad_to(nxt, frame), init)

    r = np.arange(rows) * config.shift_y + config.block_h // 2
    c = np.arange(cols) * config.shift_x + config.block_w // 2
    grid = flow[np.ix_(r, c)]

    flow_x = np.clip(grid[:, :, 0], -config.window_w, config.window_w)
    flow_y = np.clip(grid[:, :, 1], -config.window_h, config.window_h)
    return flow_x.astype(float), flow_y.astype(float)


def lucas_kanade_flow(prev, nxt, config):
    """Dense Lucas-Kanade flow over a square window of the block size."""
    if config.reuse:
        logger.warning('LK does not start from a previous flow; ignoring reuse')
    radius = max(1, max(config.block_w, config.block_h) // 2)
    v, u = optical_flow_ilk(to_32f(prev), to_32f(nxt), radius=radius)
    return u.astype(float), v.astype(float)


def horn_schunck_flow(prev, nxt, config):
    """Variational flow with a brightness constancy data term.

    The smoothness weight is config.lagrangian and the solver runs
    config.iterations fixed point iterations.
    """
    H, W = prev.shape
    vr = cv2.VariationalRefinement_create()
    vr.setAlpha(float(config.lagrangian))
    vr.setDelta(1.0)
    vr.setGamma(0.0)
    vr.setFixedPointIterations(int(config.iterations))

    if config.reuse:
        flow = _initial_flow(config, (H, W))
    else:
        flow = np.zeros((H, W, 2), dtype=np.float32)
    flow = vr.calc(prev, nxt, flow)
    return flow[:, :, 0].astype(float), flow[:, :, 1].astype(float)


_BACKENDS = {
    Method.BM: block_matching_flow,
    Method.LK: lucas_kanade_flow,
    Method.HS: horn_schunck_flow,
}


def compute_raw_flow(prev, nxt, config):
    """Run the backend selected by config.method.

    Args:
        prev: First image, uint8 (H, W).
        nxt: Second image, uint8 (H, W).
        config: Validated FlowConfig.

    Returns:
        flow_x, flow_y: Raw flow components. BM returns a block grid,
            LK and HS return (H, W) fields.

    Raises:
        UnsupportedMethodError: If the method has no backend.
        BackendError: If the vision library fails.
    """
    if prev.shape != nxt.shape:
        raise ShapeMismatchError(
            f"image pair shapes differ: {prev.shape} vs {nxt.shape}"
        )
    try:
        backend = _BACKENDS[config.method]
    except KeyError:
        raise UnsupportedMethodError(
            f"No backend for optical flow method {config.method!r}"
        ) from None

    logger.debug('%s flow on %dx%d images', config.method.value,
                 prev.shape[1], prev.shape[0])
    try:
        return backend(prev, nxt, config)
    except cv2.error as exc:
        raise BackendError(f"{config.method.value} optical flow failed: {exc}") from exc
