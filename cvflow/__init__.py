"""
cvflow: optical flow and feature detection on numpy images.

Wraps OpenCV and scikit-image routines for Harris corners, good features
to track, dense optical flow (block matching, Lucas-Kanade, Horn-Schunck)
and pyramidal Lucas-Kanade tracking, and turns raw flow fields into
magnitude and direction maps.
"""

from cvflow.interface import (
    calc_optical_flow,
    calc_optical_flow_pyr_lk,
    corner_harris,
    good_features_to_track,
)
from cvflow.core.flow_field import derive, rescale, postprocess_flow
from cvflow.methods.config import Method, FlowConfig, load_flow_config
from cvflow.errors import (
    CVFlowError,
    ShapeMismatchError,
    InvalidDimensionError,
    ConfigError,
    UnsupportedMethodError,
    BackendError,
)

__all__ = [
    'calc_optical_flow',
    'calc_optical_flow_pyr_lk',
    'corner_harris',
    'good_features_to_track',
    'derive',
    'rescale',
    'postprocess_flow',
    'Method',
    'FlowConfig',
    'load_flow_config',
    'CVFlowError',
    'ShapeMismatchError',
    'InvalidDimensionError',
    'ConfigError',
    'UnsupportedMethodError',
    'BackendError',
]
