"""Flow-field post-processing."""
from cvflow.core.flow_field import derive, rescale, postprocess_flow

__all__ = [
    'derive',
    'rescale',
    'postprocess_flow',
]
