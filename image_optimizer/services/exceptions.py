"""Errors raised by the optimization service."""


class OptimizerError(Exception):
    """Base class for optimization failures."""


class ValidationError(OptimizerError):
    """The request cannot be optimized as given (empty upload, bad parameters)."""


class CodecError(OptimizerError):
    """The codec could not decode, resize or encode the image."""
