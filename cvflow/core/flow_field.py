"""Post-processing of raw optical flow fields.

A flow field is a pair of equal-shaped 2-D arrays (flow_x, flow_y) holding
the horizontal and vertical displacement of every cell. This module turns
such a pair into per-cell magnitude and direction, and resamples fields to
the resolution of the source images.
"""
import numpy as np

from cvflow.errors import ShapeMismatchError, InvalidDimensionError


def _as_field(field, name):
    field = np.asarray(field, dtype=float)
    if field.ndim != 2:
        raise ShapeMismatchError(
            f"{name} must be a 2-D field, got shape {field.shape}"
        )
    if field.size == 0:
        raise ShapeMismatchError(f"{name} is empty, got shape {field.shape}")
    return field


def _check_pair(flow_x, flow_y):
    flow_x = _as_field(flow_x, 'flow_x')
    flow_y = _as_field(flow_y, 'flow_y')
    if flow_x.shape != flow_y.shape:
        raise ShapeMismatchError(
            f"flow_x and flow_y shapes differ: {flow_x.shape} vs {flow_y.shape}"
        )
    return flow_x, flow_y


def derive(flow_x, flow_y):
    """Compute the magnitude and direction of a flow field.

    The direction is the angle of the vector (fx, fy) in degrees, measured
    counter-clockwise from the positive x axis and folded into [0, 360).
    Cells with fx == 0 are resolved directly to 90 or 270 degrees; the
    reference angle atan(|fy / fx|) is only evaluated where fx != 0.

    Args:
        flow_x: Horizontal flow component (H, W).
        flow_y: Vertical flow component (H, W).

    Returns:
        norm: Euclidean magnitude (H, W), >= 0.
        angle: Direction in degrees (H, W), in [0, 360). NaN where either
            component is NaN.

    Raises:
        ShapeMismatchError: If the two components are not non-empty 2-D
            arrays of the same shape.
    """
    fx, fy = _check_pair(flow_x, flow_y)

    norm = np.sqrt(fx * fx + fy * fy)

    vertical = fx == 0
    ratio = np.zeros_like(fx)
    np.divide(np.abs(fy), np.abs(fx), out=ratio, where=~vertical)
    h = np.arctan(ratio) * (180.0 / np.pi)

    up = fy >= 0
    right = fx >= 0
    angle = np.select(
        [vertical & up, vertical, right & up, right, up],
        [90.0, 270.0, h, 360.0 - h, 180.0 - h],
        default=180.0 + h,
    )
    # 360 - h rounds up to 360 when fy is a tiny negative number
    angle[angle >= 360.0] -= 360.0
    angle[np.isnan(fx) | np.isnan(fy)] = np.nan

    return norm, angle


def rescale(field, target_width, target_height):
    """Resample a field to a new size with nearest-neighbour lookup.

    Output cell (j, i) takes the value of source cell
    (floor(j * H / target_height), floor(i * W / target_width)), clamped
    to the source bounds. Values are copied, never interpolated or scaled.

    Args:
        field: Input field (H, W).
        target_width: Output width, positive integer.
        target_height: Output height, positive integer.

    Returns:
        out: New array of shape (target_height, target_width).

    Raises:
        InvalidDimensionError: If a target dimension is not a positive
            integer.
        ShapeMismatchError: If the field is not 2-D or is empty.
    """
    for name, value in (('target_width', target_width),
                        ('target_height', target_height)):
        if isinstance(value, (bool, np.bool_)) or \
                not isinstance(value, (int, np.integer)) or value <= 0:
            raise InvalidDimensionError(
                f"{name} must be a positive integer, got {value!r}"
            )

    field = _as_field(field, 'field')
    H, W = field.shape
    if (H, W) == (target_height, target_width):
        return field.copy()

    rows = np.arange(target_height) * H // target_height
    cols = np.arange(target_width) * W // target_width
    rows = np.minimum(rows, H - 1)
    cols = np.minimum(cols, W - 1)
    return field[np.ix_(rows, cols)]


def postprocess_flow(flow_x, flow_y, target_size=None, raw=False, autoscale=True):
    """Turn a raw flow field into the outputs returned to callers.

    Args:
        flow_x, flow_y: Raw flow components (H, W) from a vision backend.
        target_size: (height, width) to resample every output to. Required
            when autoscale is True.
        raw: If True, return only the (rescaled) components.
        autoscale: Resample outputs to target_size.

    Returns:
        (flow_x, flow_y) if raw, else (norm, angle, flow_x, flow_y).
    """
    fx, fy = _check_pair(flow_x, flow_y)

    if autoscale and target_size is None:
        raise ValueError("target_size is required when autoscale is set")

    def scale(f):
        if not autoscale:
            return f
        return rescale(f, target_size[1], target_size[0])

    if raw:
        return scale(fx), scale(fy)

    norm, angle = derive(fx, fy)
    return scale(norm), scale(angle), scale(fx), scale(fy)
