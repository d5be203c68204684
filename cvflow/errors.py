"""Exceptions raised by the cvflow package."""


class CVFlowError(Exception):
    """Base class for all cvflow errors."""
    pass


class ShapeMismatchError(CVFlowError, ValueError):
    """Two fields (or an image pair) do not have compatible shapes."""
    pass


class InvalidDimensionError(CVFlowError, ValueError):
    """A rescale target size is not a positive integer."""
    pass


class ConfigError(CVFlowError, ValueError):
    """An option passed to one of the vision calls is invalid."""
    pass


class UnsupportedMethodError(ConfigError):
    """The requested optical flow method is not one of BM, LK or HS."""
    pass


class BackendError(CVFlowError, RuntimeError):
    """The underlying vision library failed.

    The original exception is kept as ``__cause__``.
    """
    pass
