"""
Option objects for the vision calls.

Each call takes one configuration object holding every option with its
default. Options are validated once, when the object is built, instead of
on every use.
"""
from abc import ABC, abstractmethod
import copy
import enum
import logging

import numpy as np

from cvflow.errors import ConfigError, UnsupportedMethodError

logger = logging.getLogger(__name__)


class Method(enum.Enum):
    """Optical flow algorithms available through calc_optical_flow."""
    BM = 'BM'  # block matching
    LK = 'LK'  # Lucas-Kanade
    HS = 'HS'  # Horn-Schunck

    @classmethod
    def parse(cls, value):
        """Return the member named by value (member or case-insensitive str)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.upper()]
            except KeyError:
                pass
        names = ' | '.join(m.value for m in cls)
        raise UnsupportedMethodError(
            f"Unknown optical flow method: {value!r} (expected {names})"
        )


class _Config(ABC):
    """Shared parameter parsing for the option objects."""

    def parse_input_parameter(self, params):
        """Set parameters from a dictionary or list of key-value pairs.

        The overrides are validated on a copy and only applied when every
        option is valid, so a failed call leaves the object unchanged.

        Args:
            params: dict or flat list [key, value, key, value, ...].

        Raises:
            ConfigError: On an unknown key, odd-length list or invalid value.
        """
        if isinstance(params, dict):
            items = list(params.items())
        elif isinstance(params, (list, tuple)):
            if len(params) % 2:
                raise ConfigError("parameter list must hold key/value pairs")
            items = list(zip(params[0::2], params[1::2]))
        else:
            raise ConfigError(f"cannot parse parameters of type {type(params).__name__}")

        updated = copy.copy(self)
        for key, val in items:
            if not isinstance(key, str) or key.startswith('_') or not hasattr(self, key):
                raise ConfigError(
                    f"Unknown parameter for {type(self).__name__}: {key!r}"
                )
            setattr(updated, key, val)
        updated.validate()
        vars(self).update(vars(updated))
        return self

    @abstractmethod
    def validate(self):
        """Check the options, raising ConfigError on the first bad one."""
        pass

    def _require_int(self, *names, minimum=1):
        for name in names:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) \
                    or value < minimum:
                raise ConfigError(f"{name} must be an integer >= {minimum}, got {value!r}")

    def _require_number(self, name, minimum=None):
        value = getattr(self, name)
        if isinstance(value, bool) or not isinstance(value, (int, float, np.number)):
            raise ConfigError(f"{name} must be a number, got {value!r}")
        if minimum is not None and value < minimum:
            raise ConfigError(f"{name} must be >= {minimum}, got {value!r}")

    def _require_bool(self, *names):
        for name in names:
            if not isinstance(getattr(self, name), (bool, np.bool_)):
                raise ConfigError(f"{name} must be a bool, got {getattr(self, name)!r}")

    def __repr__(self):
        fields = ', '.join(f'{k}={v!r}' for k, v in vars(self).items()
                           if not k.startswith('flow_'))
        return f'{type(self).__name__}({fields})'


class FlowConfig(_Config):
    """Options for calc_optical_flow.

    Attributes:
        method: Method.BM, Method.LK or Method.HS (default BM).
        block_w, block_h: Matching block size, BM and LK (default 9).
        shift_x, shift_y: Block grid step, BM only (default 4).
        window_w, window_h: Largest displacement searched, BM only
            (default 30).
        lagrangian: Smoothness weight, HS only (default 1).
        iterations: Number of iterations, HS only (default 5).
        autoscale: Resample results to the input resolution (default True).
        raw: Return only the X and Y components (default False).
        reuse: Start from flow_x/flow_y, BM and HS only (default False).
        flow_x, flow_y: Previous flow field used when reuse is set.
    """

    def __init__(self, method=Method.BM, **params):
        self.method = Method.parse(method)
        self.block_w = 9
        self.block_h = 9
        self.shift_x = 4
        self.shift_y = 4
        self.window_w = 30
        self.window_h = 30
        self.lagrangian = 1.0
        self.iterations = 5
        self.autoscale = True
        self.raw = False
        self.reuse = False
        self.flow_x = None
        self.flow_y = None
        if params:
            self.parse_input_parameter(params)
        else:
            self.validate()

    def validate(self):
        """Check every option, normalising method and previous flow fields.

        Raises:
            ConfigError: If an option is out of range or inconsistent.
        """
        self.method = Method.parse(self.method)
        self._require_int('block_w', 'block_h', 'shift_x', 'shift_y',
                           'window_w', 'window_h', 'iterations')
        self._require_number('lagrangian', minimum=0)
        self._require_bool('autoscale', 'raw', 'reuse')

        if (self.flow_x is None) != (self.flow_y is None):
            raise ConfigError("flow_x and flow_y must be given together")
        if self.flow_x is not None:
            self.flow_x = np.asarray(self.flow_x, dtype=float)
            self.flow_y = np.asarray(self.flow_y, dtype=float)
            if self.flow_x.ndim != 2 or self.flow_x.shape != self.flow_y.shape:
                raise ConfigError(
                    f"previous flow fields must be 2-D and equal-shaped, got "
                    f"{self.flow_x.shape} and {self.flow_y.shape}"
                )
        if self.reuse and self.flow_x is None:
            raise ConfigError("reuse requires previous flow_x and flow_y")
        return self


class HarrisConfig(_Config):
    """Options for corner_harris: neighbourhood size, Sobel aperture, k."""

    def __init__(self, **params):
        self.blocksize = 9
        self.aperturesize = 3
        self.k = 0.04
        if params:
            self.parse_input_parameter(params)
        else:
            self.validate()

    def validate(self):
        self._require_int('blocksize', 'aperturesize')
        if self.aperturesize % 2 == 0:
            logger.warning('aperturesize (Sobel kernel size) must be odd, using %d',
                           self.aperturesize - 1)
            self.aperturesize -= 1
        if self.aperturesize > 31:
            raise ConfigError(
                f"aperturesize must not be larger than 31, got {self.aperturesize}"
            )
        self._require_number('k')
        return self


class FeaturesConfig(_Config):
    """Options for good_features_to_track."""

    def __init__(self, **params):
        self.count = 500
        self.quality = 0.01
        self.min_distance = 10
        self.win_size = 10
        if params:
            self.parse_input_parameter(params)
        else:
            self.validate()

    def validate(self):
        self._require_int('count', 'win_size')
        self._require_number('min_distance', minimum=0)
        self._require_number('quality')
        if not 0 < self.quality <= 1:
            raise ConfigError(f"quality must be in (0, 1], got {self.quality!r}")
        return self


class PyrLKConfig(FeaturesConfig):
    """Options for calc_optical_flow_pyr_lk.

    Feature detection options as in FeaturesConfig (min_distance defaults
    to 5), plus win_size (tracking window, default 25) and levels (pyramid
    depth, default 3).
    """

    def __init__(self, **params):
        self.levels = 3
        super().__init__()
        self.min_distance = 5
        self.win_size = 25
        if params:
            self.parse_input_parameter(params)
        else:
            self.validate()

    def validate(self):
        super().validate()
        self._require_int('levels', minimum=0)
        return self


def load_flow_config(method='BM', params=None):
    """Build a validated FlowConfig.

    Args:
        method: 'BM', 'LK', 'HS' or a Method member.
        params: Optional dict or key/value list of overrides.

    Returns:
        config: FlowConfig.
    """
    config = FlowConfig(method)
    if params is not None:
        config.parse_input_parameter(params)
    return config
