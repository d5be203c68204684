"""Optical flow method selection and options."""
from cvflow.methods.config import (
    Method, FlowConfig, HarrisConfig, FeaturesConfig, PyrLKConfig,
    load_flow_config,
)
from cvflow.methods.backends import compute_raw_flow

__all__ = [
    'Method',
    'FlowConfig',
    'HarrisConfig',
    'FeaturesConfig',
    'PyrLKConfig',
    'load_flow_config',
    'compute_raw_flow',
]
